from __future__ import annotations

"""Annotation escaping and workflow-command formatting.

CONTRACT
- Inputs: multi-line diagnostic text, Annotation objects
- Outputs (required):
  - escape_for_annotation(text) -> single-line text
  - unescape_annotation(text) -> original text
  - format_workflow_command(annotation) -> `::error file=...::message`
- Invariants:
  - escape_for_annotation output never contains "\\n" or "\\r"
  - unescape_annotation(escape_for_annotation(t)) == t for every string t
  - Decoding is a single left-to-right pass ("%250A" decodes to "%0A")
- Failure:
  - None; unknown "%XX" sequences are left untouched on decode
"""

import re

from .models import Annotation

# "%" must be encoded first so the other escapes are not double-encoded.
_DATA_ESCAPES = (("%", "%25"), ("\r", "%0D"), ("\n", "%0A"))
_PROPERTY_ESCAPES = _DATA_ESCAPES + ((":", "%3A"), (",", "%2C"))

_DECODE = {"%25": "%", "%0D": "\r", "%0A": "\n", "%3A": ":", "%2C": ","}
_DECODE_RE = re.compile(r"%(?:25|0D|0A|3A|2C)", re.IGNORECASE)


def escape_for_annotation(text: str) -> str:
    out = text
    for raw, escaped in _DATA_ESCAPES:
        out = out.replace(raw, escaped)
    return out


def escape_property(value: str) -> str:
    out = value
    for raw, escaped in _PROPERTY_ESCAPES:
        out = out.replace(raw, escaped)
    return out


def unescape_annotation(text: str) -> str:
    return _DECODE_RE.sub(lambda m: _DECODE[m.group(0).upper()], text)


def format_workflow_command(annotation: Annotation, *, default_title: str | None = None) -> str:
    """Render an annotation as a GitHub Actions workflow command line."""
    props: list[str] = []
    if annotation.file:
        props.append(f"file={escape_property(annotation.file)}")
    if annotation.line is not None:
        props.append(f"line={annotation.line}")
    if annotation.col is not None:
        props.append(f"col={annotation.col}")
    title = annotation.title or default_title
    if title:
        props.append(f"title={escape_property(title)}")
    head = f"::{annotation.severity}"
    if props:
        head += " " + ",".join(props)
    return f"{head}::{escape_for_annotation(annotation.message)}"


_COMMAND_RE = re.compile(r"^::(?P<level>error|warning)(?: (?P<props>[^:]*))?::(?P<message>.*)$")


def parse_workflow_command(line: str) -> Annotation | None:
    """Inverse of format_workflow_command; None if the line is not an annotation."""
    m = _COMMAND_RE.match(line.rstrip("\r\n"))
    if not m:
        return None
    props: dict[str, str] = {}
    for part in (m.group("props") or "").split(","):
        key, sep, value = part.partition("=")
        if sep:
            props[key.strip()] = unescape_annotation(value)
    return Annotation(
        severity=m.group("level"),
        message=unescape_annotation(m.group("message")),
        file=props.get("file"),
        line=int(props["line"]) if props.get("line", "").isdigit() else None,
        col=int(props["col"]) if props.get("col", "").isdigit() else None,
        title=props.get("title"),
    )
