from __future__ import annotations

"""Environment health checks.

CONTRACT
- Inputs: Repo path, optional gates file path
- Outputs (required):
  - DoctorReport (ok=bool, items=[(name, status, details)])
- Invariants:
  - Checks: gates file validity, git binary, one executable check per step
  - Does not modify system state and never runs step commands
- Failure:
  - Returns DoctorReport with ok=False if critical checks fail (gates file,
    executables of blocking steps)
"""

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import RunConfig, load_gates_file
from .models import Step
from .util.shell import which

_SHELL_BUILTINS = {"cd", "echo", "exit", "export", "false", "set", "test", "true", "[", ":"}


@dataclass(frozen=True)
class DoctorItem:
    name: str
    status: str
    details: str


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    items: list[DoctorItem]


def step_executable(step: Step) -> str | None:
    """First program a step runs, or None if it cannot be determined statically."""
    if isinstance(step.command, str):
        try:
            tokens = shlex.split(step.command)
        except ValueError:
            return None
    else:
        tokens = list(step.command)
    # Skip leading `VAR=value` assignments.
    for tok in tokens:
        if "=" in tok and not tok.startswith(("/", ".")):
            continue
        return tok
    return None


def _check_step(step: Step, repo: Path) -> DoctorItem:
    label = f"step {step.name}"
    if step.workdir and not (repo / step.workdir).is_dir():
        return DoctorItem(label, "FAIL", f"workdir missing: {step.workdir}")
    exe = step_executable(step)
    if exe is None:
        return DoctorItem(label, "INFO", "cannot determine executable; not checked")
    if exe in _SHELL_BUILTINS:
        return DoctorItem(label, "OK", f"{exe} (shell builtin)")
    if os.sep in exe:
        path = (repo / exe) if not os.path.isabs(exe) else Path(exe)
        found = str(path) if path.exists() and os.access(path, os.X_OK) else None
    else:
        found = which(exe)
    if found:
        return DoctorItem(label, "OK", found)
    status = "FAIL" if step.blocking else "WARN"
    return DoctorItem(label, status, f"{exe} not found in PATH")


def doctor_report(
    repo: Path,
    config_file: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> DoctorReport:
    env = os.environ if env is None else env
    items: list[DoctorItem] = []
    ok = True

    # 1. Critical: gates file
    cfg_path = RunConfig(repo_path=repo, config_file=config_file).resolved_config_file()
    steps: list[Step] = []
    try:
        gates = load_gates_file(cfg_path)
        steps = gates.steps
        blocking = sum(1 for s in steps if s.blocking)
        items.append(
            DoctorItem(
                "gates file",
                "OK",
                f"{cfg_path}: {len(steps)} steps ({blocking} blocking)",
            )
        )
    except ValueError as e:
        ok = False
        items.append(DoctorItem("gates file", "FAIL", f"{e} (run `cigate init`)"))

    # 2. git is needed by the stock formatter step to produce diffs
    git_bin = which("git")
    if git_bin:
        items.append(DoctorItem("git binary", "OK", git_bin))
    else:
        items.append(DoctorItem("git binary", "WARN", "git not found; diff-based steps will fail"))

    # 3. One check per step
    for step in steps:
        item = _check_step(step, repo)
        if item.status == "FAIL":
            ok = False
        items.append(item)

    # 4. Annotation channel
    if env.get("GITHUB_ACTIONS") == "true":
        items.append(DoctorItem("annotations", "OK", "GitHub Actions detected; workflow commands"))
    else:
        items.append(DoctorItem("annotations", "INFO", "not on GitHub Actions; console output"))

    return DoctorReport(ok=ok, items=items)
