import sys
import tempfile
import unittest
from pathlib import Path

import cigate


@unittest.skipIf(sys.platform == "win32", "POSIX shell required")
class TestPublicAPI(unittest.TestCase):
    def setUp(self):
        self.tmp_dir_obj = tempfile.TemporaryDirectory()
        self.repo = Path(self.tmp_dir_obj.name)
        gates = self.repo / ".cigate" / "gates.yaml"
        gates.parent.mkdir()
        gates.write_text(
            "steps:\n"
            "  - name: build\n"
            "    run: echo built\n"
            "  - name: test\n"
            "    run: exit 1\n",
            encoding="utf-8",
        )

    def tearDown(self):
        self.tmp_dir_obj.cleanup()

    def test_check_returns_report(self):
        report = cigate.check(self.repo)
        self.assertIsInstance(report, cigate.RunReport)
        self.assertEqual([r.step.name for r in report.results], ["build", "test"])
        self.assertEqual(report.status, "failure")

    def test_check_only(self):
        report = cigate.check(self.repo, only=["build"])
        self.assertEqual(report.status, "success")

    def test_check_raise_on_failure(self):
        with self.assertRaises(cigate.StepFailure):
            cigate.check(self.repo, raise_on_failure=True)

    def test_run_with_steps_in_code(self):
        sink = cigate.MemorySink()
        report = cigate.run(
            [cigate.Step("hello", ["echo", "hi"]), cigate.Step("lint", "exit 2", severity="advisory")],
            cwd=self.repo,
            sink=sink,
        )
        self.assertTrue(report.ok)
        self.assertEqual(len(sink.summaries), 1)
