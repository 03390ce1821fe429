from __future__ import annotations

"""Run ids and step names.

CONTRACT
- new_run_id() -> "gates_<UTC timestamp>_<4 hex>", sortable by start time
- validate_run_id() / validate_step_name() return the value unchanged or raise
- Invariants:
  - Both are safe as a single path component (artifact dir, log file name)
- Failure:
  - ValueError naming the kind of id and the allowed characters
"""

import re
import secrets
import time

# kind -> (pattern, max length, punctuation allowed after the first char)
_RULES: dict[str, tuple[re.Pattern[str], int, str]] = {
    "run id": (re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]{0,63}"), 64, "._-"),
    "step name": (re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]{0,31}"), 32, "_-"),
}


def _validated(kind: str, value: str) -> str:
    pattern, limit, punct = _RULES[kind]
    if pattern.fullmatch(value) is None:
        raise ValueError(
            f"Invalid {kind} {value!r}: use 1-{limit} letters/digits or '{punct}', "
            "starting with a letter or digit."
        )
    return value


def new_run_id() -> str:
    return f"gates_{time.strftime('%Y%m%dT%H%M%S', time.gmtime())}_{secrets.token_hex(2)}"


def validate_run_id(run_id: str) -> str:
    return _validated("run id", run_id)


def validate_step_name(name: str) -> str:
    return _validated("step name", name)
