import importlib.resources

import pytest
import yaml

from cigate import templates
from cigate.config import GateFileConfig, RunConfig, load_gates_file, parse_gates
from cigate.models import Step
from cigate.transformers import CompilerTransformer, DiffTransformer


def test_parse_gates_defaults():
    cfg = parse_gates({"steps": [{"name": "test", "run": "cargo test"}]})
    (step,) = cfg.steps
    assert step.severity == "blocking"
    assert step.transformer is None
    assert step.success_codes == (0,)
    assert step.env == {}
    assert cfg.redact == []


def test_parse_gates_full_step():
    cfg = parse_gates(
        {
            "schema_version": 1,
            "redact": ["CODECOV_[A-Z0-9]+"],
            "steps": [
                {
                    "name": "fmt",
                    "run": ["cargo", "fmt", "--all"],
                    "severity": "advisory",
                    "transform": {"name": "diff", "hint": "Please run cargo fmt."},
                    "env": {"CARGO_TERM_COLOR": "never"},
                    "timeout_s": 60,
                    "success_codes": [0, 1],
                    "workdir": "crates/core",
                },
                {"name": "clippy", "run": "cargo clippy", "transform": "compiler"},
            ],
        }
    )
    fmt, clippy = cfg.steps
    assert fmt.command == ("cargo", "fmt", "--all")
    assert fmt.severity == "advisory"
    assert fmt.transformer == DiffTransformer(hint="Please run cargo fmt.")
    assert fmt.env == {"CARGO_TERM_COLOR": "never"}
    assert fmt.timeout_s == 60
    assert fmt.success_codes == (0, 1)
    assert fmt.workdir == "crates/core"
    assert isinstance(clippy.transformer, CompilerTransformer)
    assert cfg.redact == ["CODECOV_[A-Z0-9]+"]


@pytest.mark.parametrize(
    "data, match",
    [
        ({}, "'steps' is a required property"),
        ({"steps": []}, "Invalid gates.yaml schema"),
        ({"steps": [{"name": "x"}]}, "'run' is a required property"),
        ({"steps": [{"name": "bad name", "run": "true"}]}, "Invalid gates.yaml schema"),
        ({"steps": [{"name": "x", "run": "true", "severity": "fatal"}]}, "Invalid gates.yaml"),
        ({"steps": [{"name": "x", "run": "true", "retries": 3}]}, "Invalid gates.yaml"),
        ({"steps": [{"name": "x", "run": ""}]}, "Invalid gates.yaml"),
    ],
)
def test_parse_gates_schema_errors(data, match):
    with pytest.raises(ValueError, match=match):
        parse_gates(data)


def test_parse_gates_duplicate_names():
    data = {"steps": [{"name": "a", "run": "true"}, {"name": "a", "run": "false"}]}
    with pytest.raises(ValueError, match="Duplicate step name: a"):
        parse_gates(data)


def test_parse_gates_unknown_transformer():
    with pytest.raises(ValueError, match="Unknown transformer"):
        parse_gates({"steps": [{"name": "a", "run": "true", "transform": "sed"}]})


def test_load_gates_file(tmp_path):
    p = tmp_path / "gates.yaml"
    p.write_text("steps:\n  - name: test\n    run: cargo test\n", encoding="utf-8")
    assert [s.name for s in load_gates_file(p).steps] == ["test"]


def test_load_gates_file_errors(tmp_path):
    with pytest.raises(ValueError, match="Gates file not found"):
        load_gates_file(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("steps: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_gates_file(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(ValueError, match="top level must be a mapping"):
        load_gates_file(scalar)


def test_select_keeps_declaration_order():
    cfg = GateFileConfig(steps=[Step("fmt", "a"), Step("clippy", "b"), Step("test", "c")])
    assert [s.name for s in cfg.select(["test", "fmt"])] == ["fmt", "test"]
    assert [s.name for s in cfg.select(None)] == ["fmt", "clippy", "test"]
    with pytest.raises(ValueError, match="Unknown step"):
        cfg.select(["bench"])


def test_run_config_paths(tmp_path):
    cfg = RunConfig(repo_path=tmp_path)
    assert cfg.resolved_config_file() == tmp_path / ".cigate" / "gates.yaml"
    cfg = RunConfig(repo_path=tmp_path, config_file=tmp_path / "ci.yaml")
    assert cfg.resolved_config_file() == tmp_path / "ci.yaml"


def test_bundled_template_is_valid():
    text = importlib.resources.files(templates).joinpath("gates.yaml").read_text(encoding="utf-8")
    cfg = parse_gates(yaml.safe_load(text))
    assert [s.name for s in cfg.steps] == ["fmt", "clippy", "test"]
    assert isinstance(cfg.steps[0].transformer, DiffTransformer)
    assert cfg.steps[0].transformer.hint == "Please run cargo fmt."
