from __future__ import annotations

"""Gate orchestrator.

CONTRACT
- Inputs: ordered, non-empty list of Steps with unique names; checkout dir
- Outputs (required):
  - RunReport with one StepResult per Step, in Step order
  - Annotations written to the sink as each step finishes, then one summary line
  - (session only) REPORT.json, SUMMARY.md, RUN_STATUS.json, logs/ in the run dir
- Invariants:
  - Steps run sequentially in declaration order; a failure never stops later steps
  - RunReport.status is "failure" iff a blocking step failed
  - Commands that cannot be started become failing results with a synthetic annotation
  - A transformer that cannot parse a failing step's output, or that crashes,
    yields one fallback annotation with the raw output; a passing step's
    unparseable output yields none
  - Never reads environment variables; everything comes in through arguments
- Failure:
  - Raises ValueError only for invalid input (empty steps, duplicate names),
    before any step runs
"""

import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from loguru import logger

from .artifacts.schemas import RunStatus, report_from_run
from .artifacts.store import ArtifactStore
from .config import RunConfig, load_gates_file
from .errors import ToolInvocationError, TransformError
from .models import Annotation, RunReport, Step, StepResult
from .sinks import AnnotationSink
from .util.events import EventLog
from .util.ids import new_run_id
from .util.redaction import Redactor
from .util.shell import CmdResult, run_cmd

Executor = Callable[..., CmdResult]


@dataclass
class GateRunner:
    """Runs steps one after another and aggregates their results."""

    cwd: Path
    sink: AnnotationSink | None = None
    store: ArtifactStore | None = None
    redactor: Redactor | None = None
    events: EventLog | None = None
    executor: Executor = run_cmd

    def run(self, steps: Sequence[Step]) -> RunReport:
        _validate_steps(steps)
        results: list[StepResult] = []
        for step in steps:
            result = self.run_step(step)
            results.append(result)
            self._publish(result)
        report = RunReport(results=tuple(results))
        if self.sink is not None:
            self.sink.summary(report.summary_line())
        if self.events is not None:
            self.events.run_finished(report)
        return report

    def run_step(self, step: Step) -> StepResult:
        cwd = self.cwd / step.workdir if step.workdir else self.cwd
        log_path = self.store.step_log_path(step.name) if self.store else None
        logger.info(f"[{step.name}] running ({step.severity})")
        logger.debug(f"[{step.name}] cmd: {step.command_text()} cwd={cwd}")
        if self.events is not None:
            self.events.step_started(step)

        command = step.command if isinstance(step.command, str) else list(step.command)
        try:
            res = self.executor(
                command,
                cwd,
                log_path=log_path,
                env=step.env or None,
                timeout_s=step.timeout_s,
            )
        except ToolInvocationError as e:
            logger.warning(f"[{step.name}] {e}")
            result = StepResult(
                step=step,
                ok=False,
                exit_code=None,
                output="",
                annotations=(
                    Annotation(
                        severity=step.annotation_level,
                        message=str(e),
                        title=f"{step.name}: invocation failed",
                    ),
                ),
                invoked=False,
            )
            if self.events is not None:
                self.events.step_finished(result)
            return result

        output = self.redactor.redact(res.output) if self.redactor else res.output
        if res.log_path is not None and output != res.output:
            res.log_path.write_text(output, encoding="utf-8")
        ok = step.is_success(res.returncode)
        annotations = self._annotate(step, output, ok)
        logger.info(
            f"[{step.name}] exit={res.returncode} ok={ok} annotations={len(annotations)} "
            f"elapsed={res.elapsed_s:.2f}s"
        )
        result = StepResult(
            step=step,
            ok=ok,
            exit_code=res.returncode,
            output=output,
            annotations=tuple(annotations),
        )
        if self.events is not None:
            self.events.step_finished(result, elapsed_s=res.elapsed_s)
        return result

    def _annotate(self, step: Step, output: str, ok: bool) -> list[Annotation]:
        if step.transformer is None:
            return []
        try:
            return list(step.transformer(output, step))
        except TransformError as e:
            if ok:
                # Chatter from a passing step (e.g. formatter config warnings).
                logger.debug(f"[{step.name}] {e}; step passed, no annotations")
                return []
            logger.warning(f"[{step.name}] {e}; falling back to raw output")
            return [_fallback(step, f"{e}\n{output}", ok)]
        except Exception as e:
            logger.exception(f"[{step.name}] transformer crashed; falling back to raw output")
            return [_fallback(step, f"transformer crashed: {e!r}\n{output}", ok)]

    def _publish(self, result: StepResult) -> None:
        if self.sink is None:
            return
        for a in result.annotations:
            self.sink.annotate(a, result.step)


def _fallback(step: Step, message: str, ok: bool) -> Annotation:
    return Annotation(
        severity="error" if step.blocking and not ok else "warning",
        message=message.rstrip(),
        title=f"{step.name}: unparsed output",
    )


def _validate_steps(steps: Sequence[Step]) -> None:
    if not steps:
        raise ValueError("At least one step is required")
    seen: set[str] = set()
    for s in steps:
        if s.name in seen:
            raise ValueError(f"Duplicate step name: {s.name}")
        seen.add(s.name)


def run(
    steps: Sequence[Step],
    *,
    cwd: Path,
    sink: AnnotationSink | None = None,
    store: ArtifactStore | None = None,
    redactor: Redactor | None = None,
) -> RunReport:
    """Run all steps in order and return the aggregated report."""
    events = EventLog(store.events_path()) if store else None
    runner = GateRunner(cwd=cwd, sink=sink, store=store, redactor=redactor, events=events)
    return runner.run(steps)


def run_gate_session(cfg: RunConfig, sink: AnnotationSink | None = None) -> RunReport:
    """Load the gates file, run the selected steps, write artifacts if requested.

    Raises ValueError on configuration problems; step failures are reported
    through the returned RunReport.
    """
    gates = load_gates_file(cfg.resolved_config_file())
    steps = gates.select(cfg.only)
    redactor = Redactor().with_patterns(gates.redact) if gates.redact else Redactor()

    run_id = cfg.run_id or new_run_id()
    store = None
    if cfg.artifacts_root is not None:
        store = ArtifactStore(cfg.artifacts_root / run_id)
        store.ensure()
        store.write_status(RunStatus(run_id=run_id, status="RUNNING"))

    try:
        events = EventLog(store.events_path(), run_id=run_id) if store else None
        runner = GateRunner(
            cwd=cfg.repo_path, sink=sink, store=store, redactor=redactor, events=events
        )
        report = runner.run(steps)
    except Exception as e:
        if store is not None:
            store.write_crash(traceback.format_exc())
            store.write_status(RunStatus(run_id=run_id, status="FAIL", message=str(e)))
        raise

    if store is not None:
        log_files = {
            r.step.name: str(store.step_log_path(r.step.name).relative_to(store.run_dir))
            for r in report.results
            if r.invoked
        }
        store.write_report(report_from_run(run_id, report, log_files))
        store.write_summary(report)
        store.write_status(
            RunStatus(
                run_id=run_id,
                status="DONE" if report.ok else "FAIL",
                message=report.summary_line(),
            )
        )
        logger.info(f"Artifacts written to {store.run_dir}")
    return report
