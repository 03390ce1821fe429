import pytest

from cigate.errors import TransformError
from cigate.models import Step
from cigate.transformers import (
    CompilerTransformer,
    DiffTransformer,
    get_transformer,
    split_diff,
)

TWO_FILE_DIFF = """\
diff --git a/src/game.rs b/src/game.rs
index 1111111..2222222 100644
--- a/src/game.rs
+++ b/src/game.rs
@@ -10,7 +10,7 @@
-    let x=1;
+    let x = 1;
diff --git a/src/main.rs b/src/main.rs
index 3333333..4444444 100644
--- a/src/main.rs
+++ b/src/main.rs
@@ -1 +1 @@
-fn main(){}
+fn main() {}
"""


def _step(severity="blocking"):
    return Step(name="fmt", command="cargo fmt", severity=severity)


def test_split_diff_per_file():
    parts = split_diff(TWO_FILE_DIFF)
    assert [p for p, _ in parts] == ["src/game.rs", "src/main.rs"]
    assert parts[0][1].startswith("diff --git a/src/game.rs")
    assert "+    let x = 1;" in parts[0][1]
    assert "main" not in parts[0][1]


def test_split_diff_ignores_preamble():
    parts = split_diff("Formatting 2 files\n" + TWO_FILE_DIFF)
    assert len(parts) == 2
    assert "Formatting" not in parts[0][1]


def test_split_diff_skips_header_only_blocks():
    text = "diff --git a/empty.rs b/empty.rs\n" + TWO_FILE_DIFF
    assert [p for p, _ in split_diff(text)] == ["src/game.rs", "src/main.rs"]


def test_split_diff_deleted_and_new_files():
    text = """\
diff --git a/old.rs b/old.rs
deleted file mode 100644
--- a/old.rs
+++ /dev/null
@@ -1 +0,0 @@
-fn old() {}
diff --git a/new.rs b/new.rs
new file mode 100644
--- /dev/null
+++ b/new.rs
@@ -0,0 +1 @@
+fn new() {}
"""
    assert [p for p, _ in split_diff(text)] == ["old.rs", "new.rs"]


def test_split_diff_mode_change_uses_header():
    text = "diff --git a/run.sh b/run.sh\nold mode 100644\nnew mode 100755\n"
    assert [p for p, _ in split_diff(text)] == ["run.sh"]


def test_split_diff_without_headers_raises():
    with pytest.raises(TransformError, match="no `diff --git` headers"):
        split_diff("error: could not find `Cargo.toml`")


def test_diff_transformer_annotations():
    ann = DiffTransformer(hint="Please run cargo fmt.")(TWO_FILE_DIFF, _step())
    assert len(ann) == 2
    assert ann[0].file == "src/game.rs"
    assert ann[0].severity == "error"
    assert ann[0].title == "fmt"
    assert ann[0].message.startswith("Please run cargo fmt.\ndiff --git a/src/game.rs")


def test_diff_transformer_advisory_is_warning():
    ann = DiffTransformer()(TWO_FILE_DIFF, _step("advisory"))
    assert {a.severity for a in ann} == {"warning"}


def test_diff_transformer_empty_output():
    assert DiffTransformer()("", _step()) == []
    assert DiffTransformer()("  \n", _step()) == []


def test_diff_transformer_no_hint():
    ann = DiffTransformer(hint="")(TWO_FILE_DIFF, _step())
    assert ann[0].message.startswith("diff --git")


CLIPPY_SHORT = """\
    Checking sudoku v0.1.0 (/work)
src/game.rs:42:13: warning: this `if` has identical blocks
src/game/bitset.rs:7:5: error[E0308]: mismatched types
error: could not compile `sudoku` due to previous error
"""


def test_compiler_transformer_parses_short_format():
    ann = CompilerTransformer()(CLIPPY_SHORT, Step(name="clippy", command="cargo clippy"))
    assert len(ann) == 2
    first, second = ann
    assert (first.file, first.line, first.col, first.severity) == ("src/game.rs", 42, 13, "warning")
    assert first.message == "this `if` has identical blocks"
    assert first.title == "clippy"
    assert (second.file, second.severity) == ("src/game/bitset.rs", "error")
    assert second.title == "clippy: E0308"


def test_compiler_transformer_without_column():
    ann = CompilerTransformer()("lib.c:3: warning: implicit declaration\n", _step())
    assert ann[0].line == 3
    assert ann[0].col is None


def test_compiler_transformer_advisory_downgrades():
    step = Step(name="clippy", command="cargo clippy", severity="advisory")
    assert {a.severity for a in CompilerTransformer()(CLIPPY_SHORT, step)} == {"warning"}
    kept = CompilerTransformer(keep_level=True)(CLIPPY_SHORT, step)
    assert [a.severity for a in kept] == ["warning", "error"]


def test_get_transformer():
    t = get_transformer("diff", hint="Run fmt.")
    assert isinstance(t, DiffTransformer)
    assert t.hint == "Run fmt."
    assert get_transformer("compiler").name == "compiler"


def test_get_transformer_errors():
    with pytest.raises(ValueError, match="Unknown transformer"):
        get_transformer("sed")
    with pytest.raises(ValueError, match="Unknown options"):
        get_transformer("diff", color=True)
