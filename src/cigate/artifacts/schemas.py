from __future__ import annotations

"""Artifact schemas.

CONTRACT
- Inputs: RunReport / StepResult / Annotation models
- Outputs:
  - Validated JSON-serializable objects (REPORT.json, RUN_STATUS.json)
- Invariants:
  - All top-level schemas have schema_version int field
  - report_from_run() preserves step order
- Failure:
  - Raises ValidationError on schema mismatch
"""

from typing import Literal

from pydantic import BaseModel, Field

from ..models import Annotation, RunReport, StepResult


class AnnotationRecord(BaseModel):
    severity: Literal["error", "warning"]
    message: str
    file: str | None = None
    line: int | None = None
    col: int | None = None
    title: str | None = None


class StepRecord(BaseModel):
    name: str
    command: str
    severity: Literal["blocking", "advisory"]
    ok: bool
    exit_code: int | None
    invoked: bool = True
    transformer: str | None = None
    log_file: str | None = None
    annotations: list[AnnotationRecord] = Field(default_factory=list)


class ReportArtifact(BaseModel):
    schema_version: int = 1
    run_id: str
    status: Literal["success", "failure"]
    summary: str
    annotation_count: int
    steps: list[StepRecord] = Field(default_factory=list)


class RunStatus(BaseModel):
    schema_version: int = 1
    run_id: str
    status: Literal["RUNNING", "DONE", "FAIL"]
    message: str = ""


def annotation_record(a: Annotation) -> AnnotationRecord:
    return AnnotationRecord(
        severity=a.severity, message=a.message, file=a.file, line=a.line, col=a.col, title=a.title
    )


def step_record(r: StepResult, log_file: str | None = None) -> StepRecord:
    return StepRecord(
        name=r.step.name,
        command=r.step.command_text(),
        severity=r.step.severity,
        ok=r.ok,
        exit_code=r.exit_code,
        invoked=r.invoked,
        transformer=getattr(r.step.transformer, "name", None),
        log_file=log_file,
        annotations=[annotation_record(a) for a in r.annotations],
    )


def report_from_run(
    run_id: str, report: RunReport, log_files: dict[str, str] | None = None
) -> ReportArtifact:
    log_files = log_files or {}
    return ReportArtifact(
        run_id=run_id,
        status=report.status,
        summary=report.summary_line(),
        annotation_count=report.annotation_count,
        steps=[step_record(r, log_files.get(r.step.name)) for r in report.results],
    )
