"""CLI entrypoint.

Primary command:
- cigate run ...

Utilities:
- cigate init
- cigate doctor
- cigate unescape

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit code 0 when every blocking step passed, 1 when one failed,
    2 on configuration errors
  - Annotations + summary on stdout; logs and configuration errors on stderr
- Invariants:
  - The CLI is the only place that looks at the environment (GITHUB_ACTIONS);
    the orchestrator receives fully-resolved configuration
- Failure:
  - Invalid arguments raise Typer exit/error
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from . import __version__
from .annotations import parse_workflow_command, unescape_annotation
from .config import RunConfig
from .doctor import doctor_report
from .models import RunReport
from .orchestrator import run_gate_session
from .sinks import AnnotationSink, ConsoleSink, GithubSink
from .util.ids import new_run_id, validate_run_id

app = typer.Typer(add_completion=False, help="Run CI gate steps and turn their output into annotations.")

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool):
    if value:
        console.print(f"cigate version: {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
):
    _configure_logging(verbose)


_REPO_OPTION = typer.Option(
    Path("."),
    "--repo",
    help="Checkout root the steps run in (default: current dir).",
)
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Gates YAML file (default: <repo>/.cigate/gates.yaml).",
)
_FORMAT_OPTION = typer.Option(
    "auto",
    "--format",
    help="Annotation output: auto, github or console.",
)
_ONLY_OPTION = typer.Option(
    None,
    "--only",
    help="Run only the named step (repeatable).",
)
_ARTIFACTS_DIR_OPTION = typer.Option(
    None,
    "--artifacts-dir",
    help="Write REPORT.json, SUMMARY.md and step logs under this dir.",
)
_RUN_ID_OPTION = typer.Option(
    None,
    "--run-id",
    help="Run id for the artifacts dir (default: auto).",
)


def _resolve_format(fmt: str) -> str:
    if fmt == "auto":
        return "github" if os.environ.get("GITHUB_ACTIONS") == "true" else "console"
    if fmt not in ("github", "console"):
        raise typer.BadParameter(f"Unknown format: {fmt}", param_hint="--format")
    return fmt


def _sink_for(fmt: str) -> AnnotationSink:
    if fmt == "github":
        return GithubSink(stream=sys.stdout)
    return ConsoleSink(console=console)


def _results_table(report: RunReport) -> Table:
    table = Table(title="cigate run")
    table.add_column("Step")
    table.add_column("Severity")
    table.add_column("Status")
    table.add_column("Exit")
    table.add_column("Annotations")
    for r in report.results:
        status = "[green]PASS[/green]" if r.ok else "[red]FAIL[/red]"
        exit_code = str(r.exit_code) if r.invoked else "not invoked"
        table.add_row(r.step.name, r.step.severity, status, exit_code, str(len(r.annotations)))
    return table


@app.command()
def run(
    repo: Path = _REPO_OPTION,
    config: Path | None = _CONFIG_OPTION,
    fmt: str = _FORMAT_OPTION,
    only: list[str] | None = _ONLY_OPTION,
    artifacts_dir: Path | None = _ARTIFACTS_DIR_OPTION,
    run_id: str | None = _RUN_ID_OPTION,
) -> None:
    """Run every configured step in order and report the verdict."""
    resolved = _resolve_format(fmt)
    rid = validate_run_id(run_id) if run_id else new_run_id()
    cfg = RunConfig(
        repo_path=repo,
        config_file=config,
        run_id=rid,
        artifacts_root=artifacts_dir,
        only=list(only or []),
    )
    try:
        report = run_gate_session(cfg, sink=_sink_for(resolved))
    except ValueError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=2)

    if resolved == "console":
        console.print(_results_table(report))
    if artifacts_dir is not None:
        console.print(f"Artifacts: {artifacts_dir / rid}")
    raise typer.Exit(code=report.exit_code())


@app.command()
def init(
    repo: Path = _REPO_OPTION,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing gates file."),
) -> None:
    """Write a starter `.cigate/gates.yaml` into a target repo."""
    from .init import write_templates

    written = write_templates(repo, force=force)
    if written is None:
        console.print("[yellow]Gates file already exists; use --force to overwrite.[/yellow]")
    else:
        console.print(f"[green]Wrote[/green] {written}")


@app.command()
def doctor(
    repo: Path = _REPO_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Preflight checks: gates file and step executables."""
    report = doctor_report(repo=repo, config_file=config)
    table = Table(title="cigate doctor")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    for item in report.items:
        table.add_row(item.name, item.status, item.details)
    console.print(table)
    if report.ok:
        console.print("[green]OK[/green]")
    else:
        raise typer.Exit(code=2)


@app.command()
def unescape(
    text: str | None = typer.Argument(None, help="Escaped annotation text or workflow command."),
    file: Path | None = typer.Option(None, "--file", help="Read lines from a CI log file."),
) -> None:
    """Decode annotation messages copied out of a CI log."""
    if file is not None:
        if not file.exists():
            raise typer.BadParameter(f"File not found: {file}", param_hint="--file")
        lines = file.read_text(encoding="utf-8").splitlines()
    elif text is not None:
        lines = [text]
    else:
        lines = sys.stdin.read().splitlines()

    for line in lines:
        ann = parse_workflow_command(line)
        if ann is None:
            typer.echo(unescape_annotation(line))
            continue
        where = f" {ann.file}" if ann.file else ""
        if ann.line is not None:
            where += f":{ann.line}"
        typer.echo(f"[{ann.severity}]{where}")
        typer.echo(ann.message)


if __name__ == "__main__":
    app()
