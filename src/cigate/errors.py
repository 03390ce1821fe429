from __future__ import annotations

"""Error taxonomy.

CONTRACT
- ToolInvocationError: a step's command could not be started
- StepFailure: one or more blocking steps ran and failed
- TransformError: an output transformer could not parse captured output
- Invariants:
  - None of these is fatal to a run; the orchestrator converts the first and
    last into annotations and only raises StepFailure on explicit request
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import StepResult


class GateError(Exception):
    """Base class for cigate errors."""


class ToolInvocationError(GateError):
    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to invoke `{command}`: {reason}")


class StepFailure(GateError):
    def __init__(self, results: list[StepResult]):
        self.results = results
        names = ", ".join(r.step.name for r in results)
        super().__init__(f"Blocking steps failed: {names}")


class TransformError(GateError):
    def __init__(self, transformer: str, reason: str):
        self.transformer = transformer
        self.reason = reason
        super().__init__(f"{transformer} transformer could not parse output: {reason}")
