from __future__ import annotations

"""Structured step events (`logs/events.jsonl`).

CONTRACT
- Inputs: Steps, StepResults and the final RunReport as the orchestrator sees them
- Outputs:
  - One JSON object per line: step_started, step_finished, run_finished
- Invariants:
  - Every record has `event` and `ts_ms`; `run_id` when the log has one
  - Records never carry captured output (it lives in logs/<step>.log)
- Failure:
  - Raises OSError if the log path is not writable
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..models import RunReport, Step, StepResult


@dataclass
class EventLog:
    path: Path
    run_id: str | None = None

    def step_started(self, step: Step) -> None:
        self._append(
            "step_started",
            step=step.name,
            severity=step.severity,
            cmd=step.command_text(),
        )

    def step_finished(self, result: StepResult, elapsed_s: float | None = None) -> None:
        record: dict[str, Any] = {
            "step": result.step.name,
            "ok": result.ok,
            "invoked": result.invoked,
            "exit": result.exit_code,
            "annotations": len(result.annotations),
        }
        if elapsed_s is not None:
            record["elapsed_s"] = round(elapsed_s, 3)
        self._append("step_finished", **record)

    def run_finished(self, report: RunReport) -> None:
        self._append(
            "run_finished",
            status=report.status,
            failed=[r.step.name for r in report.failed()],
            annotations=report.annotation_count,
        )

    def _append(self, event: str, **fields: Any) -> None:
        record: dict[str, Any] = {"event": event, "ts_ms": int(time.time() * 1000)}
        if self.run_id:
            record["run_id"] = self.run_id
        record.update(fields)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
