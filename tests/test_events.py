import json

from cigate.models import Annotation, RunReport, Step, StepResult
from cigate.util.events import EventLog


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_step_events_carry_step_fields(tmp_path):
    log = EventLog(tmp_path / "logs" / "events.jsonl", run_id="ci-1")
    step = Step("clippy", ["cargo", "clippy"], severity="advisory")
    result = StepResult(
        step=step, ok=False, exit_code=101, annotations=(Annotation("warning", "unused"),)
    )

    log.step_started(step)
    log.step_finished(result, elapsed_s=1.23456)
    log.run_finished(RunReport(results=(result,)))

    started, finished, done = _records(log.path)
    assert started["event"] == "step_started"
    assert started["cmd"] == "cargo clippy"
    assert started["severity"] == "advisory"
    assert started["run_id"] == "ci-1"
    assert finished["exit"] == 101
    assert finished["annotations"] == 1
    assert finished["elapsed_s"] == 1.235
    assert done == {
        "event": "run_finished",
        "ts_ms": done["ts_ms"],
        "run_id": "ci-1",
        "status": "success",
        "failed": ["clippy"],
        "annotations": 1,
    }


def test_uninvoked_step_has_no_timing(tmp_path):
    log = EventLog(tmp_path / "events.jsonl")
    result = StepResult(step=Step("fmt", "fmt"), ok=False, exit_code=None, invoked=False)
    log.step_finished(result)
    (rec,) = _records(log.path)
    assert rec["invoked"] is False
    assert rec["exit"] is None
    assert "elapsed_s" not in rec
    assert "run_id" not in rec
