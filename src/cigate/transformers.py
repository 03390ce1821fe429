from __future__ import annotations

"""Output transformers: captured tool output -> Annotations.

CONTRACT
- Inputs: combined output of one step, the Step itself
- Outputs (required):
  - list[Annotation] (possibly empty)
- Invariants:
  - Advisory steps only ever produce "warning" annotations (unless keep_level)
  - DiffTransformer annotations are "error" for blocking steps
  - Transformers are pure and deterministic (same output -> same annotations)
- Failure:
  - Raises TransformError when the output cannot be parsed; for a failing
    step the orchestrator turns that into one fallback annotation carrying
    the raw output, for a passing step it is dropped
"""

import re
from dataclasses import dataclass, fields
from typing import Any, Protocol

from .errors import TransformError
from .models import Annotation, Step


class Transformer(Protocol):
    name: str

    def __call__(self, output: str, step: Step) -> list[Annotation]: ...


_DIFF_HEADER = "diff --git "
_HEADER_B_PATH_RE = re.compile(r' "?b/(?P<path>.+?)"?$')


def _strip_prefix(path: str, prefix: str) -> str | None:
    path = path.rstrip("\t").strip('"')
    if path == "/dev/null":
        return None
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def _block_path(block: list[str]) -> str:
    header = block[0]
    old_path = None
    for line in block[1:]:
        if line.startswith("+++ "):
            new_path = _strip_prefix(line[4:], "b/")
            if new_path:
                return new_path
        elif line.startswith("--- "):
            old_path = _strip_prefix(line[4:], "a/")
        elif line.startswith("@@"):
            break
    if old_path:
        return old_path
    m = _HEADER_B_PATH_RE.search(header)
    if not m:
        raise TransformError("diff", f"cannot find file path in header: {header!r}")
    return m.group("path")


def split_diff(text: str) -> list[tuple[str, str]]:
    """Split `git diff` output into (path, diff_text) pairs, one per file.

    Text before the first `diff --git` header (tool chatter) is ignored.
    Files whose block has nothing but a header are skipped.
    """
    blocks: list[list[str]] = []
    for line in text.splitlines():
        if line.startswith(_DIFF_HEADER):
            blocks.append([line])
        elif blocks:
            blocks[-1].append(line)
    if not blocks:
        raise TransformError("diff", "output is not empty but contains no `diff --git` headers")

    out: list[tuple[str, str]] = []
    for block in blocks:
        body = "\n".join(block).rstrip()
        if len(block) < 2 or not body.partition("\n")[2].strip():
            continue
        out.append((_block_path(block), body))
    return out


@dataclass(frozen=True)
class DiffTransformer:
    """One annotation per changed file of a formatter diff."""

    hint: str = "Please run the formatter."
    name: str = "diff"

    def __call__(self, output: str, step: Step) -> list[Annotation]:
        if not output.strip():
            return []
        annotations = []
        for path, diff_text in split_diff(output):
            message = f"{self.hint}\n{diff_text}" if self.hint else diff_text
            annotations.append(
                Annotation(
                    severity=step.annotation_level,
                    message=message,
                    file=path,
                    title=step.name,
                )
            )
        return annotations


_COMPILER_LINE_RE = re.compile(
    r"^(?P<file>[^\s:][^:]*):(?P<line>\d+):(?:(?P<col>\d+):)?\s*"
    r"(?P<level>error|warning)(?:\[(?P<code>[^\]]+)\])?:\s*(?P<message>.+)$"
)


@dataclass(frozen=True)
class CompilerTransformer:
    """Parse `path:line:col: level[code]: message` diagnostics.

    Covers rustc/clippy `--message-format=short`, gcc/clang and most linters
    with a "short" output mode. Lines that do not match are ignored.
    """

    keep_level: bool = False
    name: str = "compiler"

    def __call__(self, output: str, step: Step) -> list[Annotation]:
        annotations = []
        for raw in output.splitlines():
            m = _COMPILER_LINE_RE.match(raw.strip())
            if not m:
                continue
            # Advisory steps downgrade errors unless told to keep tool levels.
            level = m.group("level") if self.keep_level or step.blocking else "warning"
            code = m.group("code")
            annotations.append(
                Annotation(
                    severity=level,
                    message=m.group("message"),
                    file=m.group("file"),
                    line=int(m.group("line")),
                    col=int(m.group("col")) if m.group("col") else None,
                    title=f"{step.name}: {code}" if code else step.name,
                )
            )
        return annotations


TRANSFORMERS: dict[str, type] = {
    "diff": DiffTransformer,
    "compiler": CompilerTransformer,
}


def get_transformer(name: str, **options: Any) -> Transformer:
    cls = TRANSFORMERS.get(name)
    if cls is None:
        known = ", ".join(sorted(TRANSFORMERS))
        raise ValueError(f"Unknown transformer: {name} (known: {known})")
    allowed = {f.name for f in fields(cls)} - {"name"}
    unknown = set(options) - allowed
    if unknown:
        raise ValueError(f"Unknown options for {name} transformer: {', '.join(sorted(unknown))}")
    return cls(**options)
