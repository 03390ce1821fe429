from __future__ import annotations

"""Core gate models.

CONTRACT
- Step: one verification task (name, command, severity, optional transformer)
- StepResult: outcome of one Step (ok, exit_code, combined output, annotations)
- Annotation: one user-facing diagnostic (file?, severity, message)
- RunReport: ordered StepResults + overall status
- Invariants:
  - RunReport.status == "failure" iff some blocking StepResult is not ok
  - Models are immutable and carry no timing data, so identical runs compare equal
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from .errors import StepFailure
from .util.ids import validate_step_name

if TYPE_CHECKING:
    from .transformers import Transformer

Severity = Literal["blocking", "advisory"]
AnnotationLevel = Literal["error", "warning"]
Status = Literal["success", "failure"]


@dataclass(frozen=True)
class Annotation:
    severity: AnnotationLevel
    message: str
    file: str | None = None
    line: int | None = None
    col: int | None = None
    title: str | None = None


@dataclass(frozen=True)
class Step:
    """One gate step.

    `env` is excluded from equality and hashing: it is an overlay that can
    carry per-runner secrets, and two runs of the same gate compare equal
    regardless of it.
    """

    name: str
    command: str | tuple[str, ...]
    severity: Severity = "blocking"
    transformer: Transformer | None = None
    env: dict[str, str] = field(default_factory=dict, compare=False)
    timeout_s: float | None = None
    success_codes: tuple[int, ...] = (0,)
    workdir: str | None = None

    def __post_init__(self) -> None:
        validate_step_name(self.name)
        if self.severity not in ("blocking", "advisory"):
            raise ValueError(f"Invalid severity for step {self.name}: {self.severity!r}")
        # Lists are accepted for convenience; stored as a tuple to stay hashable.
        if isinstance(self.command, list):
            object.__setattr__(self, "command", tuple(self.command))
        if not self.command:
            raise ValueError(f"Step {self.name} has an empty command")

    @property
    def blocking(self) -> bool:
        return self.severity == "blocking"

    @property
    def annotation_level(self) -> AnnotationLevel:
        return "error" if self.blocking else "warning"

    def is_success(self, exit_code: int) -> bool:
        return exit_code in self.success_codes

    def command_text(self) -> str:
        return self.command if isinstance(self.command, str) else " ".join(self.command)


@dataclass(frozen=True)
class StepResult:
    step: Step
    ok: bool
    exit_code: int | None
    output: str = ""
    annotations: tuple[Annotation, ...] = ()
    invoked: bool = True

    @property
    def blocking_failure(self) -> bool:
        return self.step.blocking and not self.ok


@dataclass(frozen=True)
class RunReport:
    results: tuple[StepResult, ...]

    @property
    def ok(self) -> bool:
        return not any(r.blocking_failure for r in self.results)

    @property
    def status(self) -> Status:
        return "success" if self.ok else "failure"

    @property
    def annotation_count(self) -> int:
        return sum(len(r.annotations) for r in self.results)

    @property
    def annotations(self) -> list[Annotation]:
        return [a for r in self.results for a in r.annotations]

    def failed(self, *, blocking_only: bool = False) -> list[StepResult]:
        return [
            r for r in self.results if not r.ok and (r.step.blocking or not blocking_only)
        ]

    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def summary_line(self) -> str:
        passed = sum(1 for r in self.results if r.ok)
        line = (
            f"{self.status.upper()}: {passed}/{len(self.results)} steps passed, "
            f"{self.annotation_count} annotation(s)"
        )
        failed = self.failed()
        if failed:
            parts = [f"{r.step.name} ({r.step.severity})" for r in failed]
            line += f"; failed: {', '.join(parts)}"
        return line

    def raise_for_status(self) -> None:
        failures = self.failed(blocking_only=True)
        if failures:
            raise StepFailure(failures)
