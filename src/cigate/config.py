from __future__ import annotations

"""Configuration models.

CONTRACT
- Inputs: YAML file path (gates.yaml) or dictionary data
- Outputs (required):
  - Validated GateFileConfig holding fully-resolved Step objects
  - RunConfig describing one CLI/library invocation
- Invariants:
  - Step names match `[A-Za-z0-9][A-Za-z0-9_-]{0,31}` and are unique
  - Severity defaults to "blocking"
  - Nothing here reads environment variables; env for a step comes from the file
- Failure:
  - Raises ValueError on invalid schema, names, or transformer options
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .models import Step
from .transformers import get_transformer

OutputFormat = Literal["auto", "github", "console"]

DEFAULT_CONFIG_PATH = Path(".cigate") / "gates.yaml"

_COMMAND_SCHEMA = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {"type": "array", "items": {"type": "string"}, "minItems": 1},
    ]
}

GATES_SCHEMA = {
    "type": "object",
    "properties": {
        "schema_version": {"type": "integer", "enum": [1]},
        "redact": {"type": "array", "items": {"type": "string"}},
        "steps": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "pattern": "^[A-Za-z0-9][A-Za-z0-9_-]{0,31}$"},
                    "run": _COMMAND_SCHEMA,
                    "severity": {"type": "string", "enum": ["blocking", "advisory"]},
                    "transform": {
                        "oneOf": [
                            {"type": "string"},
                            {
                                "type": "object",
                                "properties": {"name": {"type": "string"}},
                                "required": ["name"],
                            },
                            {"type": "null"},
                        ]
                    },
                    "env": {"type": "object", "additionalProperties": {"type": "string"}},
                    "timeout_s": {"type": "number", "exclusiveMinimum": 0},
                    "success_codes": {
                        "type": "array",
                        "items": {"type": "integer"},
                        "minItems": 1,
                    },
                    "workdir": {"type": "string"},
                },
                "required": ["name", "run"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["steps"],
}


@dataclass(frozen=True)
class GateFileConfig:
    steps: list[Step]
    redact: list[str] = field(default_factory=list)

    def select(self, names: list[str] | None) -> list[Step]:
        if not names:
            return list(self.steps)
        known = {s.name for s in self.steps}
        missing = [n for n in names if n not in known]
        if missing:
            raise ValueError(f"Unknown step(s): {', '.join(missing)}")
        wanted = set(names)
        # Keep declaration order regardless of the order names were given in.
        return [s for s in self.steps if s.name in wanted]


@dataclass(frozen=True)
class RunConfig:
    repo_path: Path
    config_file: Path | None = None
    run_id: str | None = None
    artifacts_root: Path | None = None
    only: list[str] = field(default_factory=list)

    def resolved_config_file(self) -> Path:
        if self.config_file is not None:
            return self.config_file
        return self.repo_path / DEFAULT_CONFIG_PATH


def _transformer_from(raw: Any):
    if raw is None:
        return None
    if isinstance(raw, str):
        return get_transformer(raw)
    opts = dict(raw)
    name = str(opts.pop("name"))
    return get_transformer(name, **opts)


def _step_from(raw: dict[str, Any]) -> Step:
    command = raw["run"]
    return Step(
        name=str(raw["name"]),
        command=command if isinstance(command, str) else tuple(str(c) for c in command),
        severity=raw.get("severity", "blocking"),
        transformer=_transformer_from(raw.get("transform")),
        env={str(k): str(v) for k, v in (raw.get("env") or {}).items()},
        timeout_s=raw.get("timeout_s"),
        success_codes=tuple(int(c) for c in raw.get("success_codes", [0])),
        workdir=raw.get("workdir"),
    )


def parse_gates(data: dict[str, Any]) -> GateFileConfig:
    import jsonschema  # lazy import

    try:
        jsonschema.validate(instance=data, schema=GATES_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        suffix = f" (at {where})" if where else ""
        raise ValueError(f"Invalid gates.yaml schema: {e.message}{suffix}") from e

    steps = [_step_from(s) for s in data["steps"]]
    seen: set[str] = set()
    for s in steps:
        if s.name in seen:
            raise ValueError(f"Duplicate step name: {s.name}")
        seen.add(s.name)
    return GateFileConfig(steps=steps, redact=list(data.get("redact", [])))


def load_gates_file(path: Path) -> GateFileConfig:
    if not path.exists():
        raise ValueError(f"Gates file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid gates.yaml: top level must be a mapping ({path})")
    return parse_gates(data)
