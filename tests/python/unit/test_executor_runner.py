import os
import time
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from services.executor import (
    ExecutionFailure,
    ExecutionRequest,
    ExecutionSuccess,
    ExecutionTimeout,
    run,
    run_command,
)
from services.executor.runner import _OutputBudget, runner_env
from services.executor.secrets import MASK


class TestRunCommand(unittest.TestCase):
    def test_zero_exit_is_success_with_both_streams(self) -> None:
        result = run("printf 'out1\\n'; printf 'err1\\n' 1>&2", timeout=5)

        self.assertIsInstance(result, ExecutionSuccess)
        self.assertTrue(result.ok)
        self.assertEqual(result.stdout, "out1\n")
        self.assertEqual(result.stderr, "err1\n")

    def test_non_zero_exit_is_failure_with_stderr(self) -> None:
        result = run("echo boom 1>&2; exit 7", timeout=5)

        self.assertIsInstance(result, ExecutionFailure)
        self.assertFalse(result.ok)
        self.assertEqual(result.exit_code, 7)
        self.assertIsNone(result.signal)
        self.assertEqual(result.stderr, "boom\n")

    def test_sleeping_past_timeout_is_timeout_not_failure(self) -> None:
        started = time.monotonic()
        result = run("sleep 10", timeout=0.3)
        elapsed = time.monotonic() - started

        self.assertIsInstance(result, ExecutionTimeout)
        self.assertEqual(result.timeout, 0.3)
        self.assertEqual(result.reason, "Command timeout")
        self.assertLess(elapsed, 5)

    def test_timeout_kills_the_whole_process_group(self) -> None:
        with TemporaryDirectory() as tmp:
            marker = Path(tmp) / "survived"
            # the background child must die with its parent
            result = run(f"(sleep 1; touch {marker}) & sleep 10", timeout=0.3)
            self.assertIsInstance(result, ExecutionTimeout)

            time.sleep(1.5)
            self.assertFalse(marker.exists())

    def test_output_ceiling_is_failure_not_truncation(self) -> None:
        result = run("head -c 100000 /dev/zero; sleep 5", timeout=10, max_output_bytes=1024)

        self.assertIsInstance(result, ExecutionFailure)
        self.assertIn("output exceeded 1024 bytes", result.reason)
        self.assertFalse(hasattr(result, "stdout"))

    def test_ceiling_counts_stdout_and_stderr_together(self) -> None:
        cmd = "head -c 600 /dev/zero; head -c 600 /dev/zero 1>&2"
        self.assertIsInstance(run(cmd, timeout=5, max_output_bytes=1000), ExecutionFailure)
        self.assertIsInstance(run(cmd, timeout=5, max_output_bytes=1200), ExecutionSuccess)

    def test_killed_by_signal_reports_signal(self) -> None:
        result = run("kill -TERM $$", timeout=5)

        self.assertIsInstance(result, ExecutionFailure)
        self.assertEqual(result.signal, 15)
        self.assertIsNone(result.exit_code)
        self.assertIn("SIGTERM", result.reason)

    def test_argv_is_not_interpreted_by_a_shell(self) -> None:
        result = run(["echo", "web;rm -rf /", "$(id)"], timeout=5)

        self.assertIsInstance(result, ExecutionSuccess)
        self.assertEqual(result.stdout, "web;rm -rf / $(id)\n")

    def test_missing_binary_is_failure(self) -> None:
        result = run(["/nonexistent/binary-for-tests"], timeout=5)

        self.assertIsInstance(result, ExecutionFailure)
        self.assertEqual(result.exit_code, 127)

    def test_cwd_and_secret_masking(self) -> None:
        with TemporaryDirectory() as tmp:
            request = ExecutionRequest(
                argv=("/bin/bash", "-c", "pwd; echo token is hunter2-xyz"),
                timeout=5,
                max_output_bytes=4096,
                cwd=Path(tmp),
                secrets=("hunter2-xyz",),
            )
            result = run_command(request)

        self.assertIsInstance(result, ExecutionSuccess)
        self.assertIn(os.path.realpath(tmp), result.stdout)
        self.assertNotIn("hunter2-xyz", result.stdout)
        self.assertIn(MASK, result.stdout)

    def test_plain_output_keeps_credential_shaped_lines(self) -> None:
        plain = run("echo token=abc", timeout=5)
        masked = run("echo token=abc", timeout=5, mask_patterns=True)

        self.assertEqual(plain.stdout, "token=abc\n")
        self.assertEqual(masked.stdout, f"token={MASK}\n")

    def test_agent_token_is_not_passed_to_children(self) -> None:
        with patch.dict(os.environ, {"AGENT_TOKEN": "do-not-leak", "OTHER": "kept"}):
            env = runner_env()
            result = run("echo \"[${AGENT_TOKEN:-}]\"", timeout=5)

        self.assertNotIn("AGENT_TOKEN", env)
        self.assertEqual(env["OTHER"], "kept")
        self.assertEqual(result.stdout, "[]\n")

    def test_shell_request_uses_bash(self) -> None:
        request = ExecutionRequest.shell("echo hi", timeout=1, max_output_bytes=10)
        self.assertEqual(request.argv, ("/bin/bash", "-c", "echo hi"))


class TestOutputBudget(unittest.TestCase):
    def test_snapshot_is_a_stable_copy(self) -> None:
        budget = _OutputBudget(100, on_exceeded=lambda: None)
        buf = bytearray()
        budget.take(buf, b"first")

        snap = budget.snapshot(buf)
        budget.take(buf, b"-second")

        self.assertIsInstance(snap, bytes)
        self.assertEqual(snap, b"first")
        self.assertEqual(budget.snapshot(buf), b"first-second")

    def test_exceeding_fires_once_and_stops_collecting(self) -> None:
        fired = []
        budget = _OutputBudget(4, on_exceeded=lambda: fired.append(True))
        buf = bytearray()
        budget.take(buf, b"abc")
        budget.take(buf, b"de")
        budget.take(buf, b"f")

        self.assertTrue(budget.exceeded)
        self.assertEqual(fired, [True])
        self.assertEqual(budget.snapshot(buf), b"abc")
