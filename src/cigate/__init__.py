"""cigate package.

Simple API for CI scripts:

    import cigate

    # Run the repo's configured gates (.cigate/gates.yaml)
    report = cigate.check("/path/to/repo")

    # Or build the steps in code
    report = cigate.run(
        [
            cigate.Step("fmt", "cargo fmt --all && git diff --exit-code",
                        transformer=cigate.DiffTransformer(hint="Please run cargo fmt.")),
            cigate.Step("test", ["cargo", "test"], severity="advisory"),
        ],
        cwd=Path("/path/to/repo"),
    )
"""

from pathlib import Path
from typing import Optional

__version__ = "0.1.0"

from .annotations import escape_for_annotation, unescape_annotation
from .config import RunConfig, load_gates_file
from .errors import StepFailure, ToolInvocationError, TransformError
from .models import Annotation, RunReport, Step, StepResult
from .orchestrator import run, run_gate_session
from .sinks import ConsoleSink, GithubSink, MemorySink
from .transformers import CompilerTransformer, DiffTransformer


def check(
    repo: str | Path,
    *,
    config_file: Optional[str | Path] = None,
    only: Optional[list[str]] = None,
    raise_on_failure: bool = False,
) -> RunReport:
    """Run a repo's gates file and return the report.

    Args:
        repo: Checkout root the steps run in
        config_file: Gates YAML (default: <repo>/.cigate/gates.yaml)
        only: Optional subset of step names
        raise_on_failure: Raise StepFailure if a blocking step failed

    Returns:
        RunReport with one StepResult per step, in order
    """
    repo_path = Path(repo).resolve()
    cfg = RunConfig(
        repo_path=repo_path,
        config_file=Path(config_file) if config_file else None,
        only=list(only or []),
    )
    report = run_gate_session(cfg)
    if raise_on_failure:
        report.raise_for_status()
    return report


__all__ = [
    "Annotation",
    "CompilerTransformer",
    "ConsoleSink",
    "DiffTransformer",
    "GithubSink",
    "MemorySink",
    "RunConfig",
    "RunReport",
    "Step",
    "StepFailure",
    "StepResult",
    "ToolInvocationError",
    "TransformError",
    "check",
    "escape_for_annotation",
    "load_gates_file",
    "run",
    "run_gate_session",
    "unescape_annotation",
]
