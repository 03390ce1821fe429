from __future__ import annotations

"""Annotation sinks.

CONTRACT
- Inputs: Annotations (with the Step that produced them), summary lines
- Outputs:
  - GithubSink: one `::error ...::message` workflow command per annotation
  - ConsoleSink: rich-formatted human output
  - MemorySink: in-memory lists (library use, tests)
- Invariants:
  - GithubSink writes every annotation on exactly one line
"""

import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from rich.console import Console
from rich.markup import escape

from .annotations import format_workflow_command
from .models import Annotation, Step


class AnnotationSink(Protocol):
    def annotate(self, annotation: Annotation, step: Step) -> None: ...
    def summary(self, line: str) -> None: ...


@dataclass
class GithubSink:
    stream: TextIO = field(default_factory=lambda: sys.stdout)

    def annotate(self, annotation: Annotation, step: Step) -> None:
        self.stream.write(format_workflow_command(annotation, default_title=step.name) + "\n")
        self.stream.flush()

    def summary(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()


_STYLES = {"error": "red", "warning": "yellow"}


@dataclass
class ConsoleSink:
    console: Console = field(default_factory=Console)

    def annotate(self, annotation: Annotation, step: Step) -> None:
        style = _STYLES.get(annotation.severity, "white")
        where = annotation.file or "-"
        if annotation.line is not None:
            where += f":{annotation.line}"
            if annotation.col is not None:
                where += f":{annotation.col}"
        self.console.print(
            f"[{style}]{annotation.severity}[/{style}] [bold]{escape(step.name)}[/bold] "
            f"{escape(where)}"
        )
        self.console.print(escape(annotation.message), highlight=False)

    def summary(self, line: str) -> None:
        style = "green" if line.startswith("SUCCESS") else "red"
        self.console.print(f"[{style}]{escape(line)}[/{style}]")


@dataclass
class MemorySink:
    annotations: list[tuple[str, Annotation]] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)

    def annotate(self, annotation: Annotation, step: Step) -> None:
        self.annotations.append((step.name, annotation))

    def summary(self, line: str) -> None:
        self.summaries.append(line)
