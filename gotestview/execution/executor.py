"""Runs `go test -json` for a package or a single test.

The executor streams decoded events into a channel while the process
runs. A non-zero exit status means tests failed, which is an ordinary
outcome; only failures to start or talk to the process are errors.
"""

from __future__ import annotations

import re
import subprocess
from typing import Sequence

from gotestview.events.channel import EventChannel
from gotestview.events.event import decode_lines

DEFAULT_COMMAND = ("go", "test", "-json")

OUTCOME_PASSED = "passed"
OUTCOME_TESTS_FAILED = "tests_failed"


class ExecutionError(RuntimeError):
    """The test process could not be started or did not complete."""


def run_pattern(test_name: str) -> str:
    """Build a `-run` pattern matching exactly one (sub)test name.

    `go test -run` splits the pattern on slashes and matches each level
    separately, so every segment is anchored on its own.
    """
    return "/".join(f"^{re.escape(part)}$" for part in test_name.split("/"))


class GoTestExecutor:
    """Executes go test and streams its JSON events."""

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_COMMAND,
        cwd: str | None = None,
    ) -> None:
        self.command = list(command)
        self.cwd = cwd

    def run_package(self, package: str, channel: EventChannel) -> str:
        """Run every test in a package."""
        return self._run([*self.command, package], channel)

    def run_test(self, package: str, test_name: str, channel: EventChannel) -> str:
        """Run one exact test (or subtest) of a package."""
        return self._run([*self.command, "-run", run_pattern(test_name), package], channel)

    def _run(self, args: list[str], channel: EventChannel) -> str:
        """Run the command, forwarding decoded stdout events to `channel`.

        Returns:
            OUTCOME_PASSED on exit status 0, otherwise OUTCOME_TESTS_FAILED.

        Raises:
            ExecutionError: If the process cannot be started or its output
                cannot be read.
        """
        try:
            proc = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            raise ExecutionError(f"executable not found: {args[0]}") from e
        except OSError as e:
            raise ExecutionError(f"failed to start test: {e}") from e

        with proc:
            assert proc.stdout is not None
            try:
                for event in decode_lines(proc.stdout, source=args[0]):
                    channel.put(event)
            except (OSError, ValueError) as e:
                proc.kill()
                raise ExecutionError(f"failed to read test output: {e}") from e
            returncode = proc.wait()

        if returncode == 0:
            return OUTCOME_PASSED
        return OUTCOME_TESTS_FAILED
