from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from ..models import RunReport
from ..util.paths import safe_filename
from .schemas import ReportArtifact, RunStatus


@dataclass(frozen=True)
class ArtifactStore:
    """Files of one gate run.

    CONTRACT
    - Inputs: Run directory path (<artifacts-dir>/<run_id>)
    - Outputs:
      - REPORT.json, RUN_STATUS.json, SUMMARY.md, CRASH.txt
      - logs/<step>.log and logs/events.jsonl locations
    - Invariants:
      - Every path handed out resolves inside run_dir
      - JSON files are rendered from pydantic models only
    - Failure:
      - Raises ValueError for a path that escapes run_dir
    """
    run_dir: Path

    def ensure(self) -> None:
        (self.run_dir / "logs").mkdir(parents=True, exist_ok=True)

    def path(self, *parts: str) -> Path:
        p = self.run_dir.joinpath(*parts)
        if not p.resolve().is_relative_to(self.run_dir.resolve()):
            raise ValueError(f"Refusing to access path outside run dir {self.run_dir}: {p}")
        return p

    def step_log_path(self, step_name: str) -> Path:
        return self.path("logs", f"{safe_filename(step_name, default='step')}.log")

    def events_path(self) -> Path:
        return self.path("logs", "events.jsonl")

    def _write(self, name: str, text: str) -> Path:
        p = self.path(name)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p

    def _write_model(self, name: str, model: BaseModel) -> Path:
        return self._write(name, model.model_dump_json(indent=2) + "\n")

    def write_status(self, status: RunStatus) -> Path:
        return self._write_model("RUN_STATUS.json", status)

    def write_report(self, artifact: ReportArtifact) -> Path:
        return self._write_model("REPORT.json", artifact)

    def write_crash(self, traceback_text: str) -> Path:
        return self._write("CRASH.txt", traceback_text)

    def write_summary(self, report: RunReport) -> Path:
        md = ["# GATES", "", "## Steps", ""]
        for r in report.results:
            verdict = "PASS" if r.ok else "FAIL"
            exit_part = f"exit={r.exit_code}" if r.invoked else "not invoked"
            md.append(
                f"- `{r.step.name}` {verdict} {exit_part} severity={r.step.severity} "
                f"annotations={len(r.annotations)} cmd: `{r.step.command_text()}`"
            )
        md += ["", "## Result", "", report.summary_line(), ""]
        return self._write("SUMMARY.md", "\n".join(md))
