"""Cancellable subprocess execution.

Every external command agentwatch runs (version probes, package manager
queries) goes through ``run_command`` so that cancelling the detection
context kills the child process instead of waiting for it to finish.
"""

import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Callable

from agentwatch.errors import CommandError
from agentwatch.utils.context import Context

logger = logging.getLogger(__name__)

# Seconds to wait after terminate() before escalating to kill()
TERMINATE_GRACE = 2.0

# Poll interval for the wait loop
POLL_INTERVAL = 0.05


@dataclass
class CommandResult:
    """Captured output of a finished command."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr, as a terminal would show them."""
        if self.stderr:
            return f"{self.stdout}{self.stderr}"
        return self.stdout


# Signature shared by run_command and the fakes used in tests
CommandRunner = Callable[..., CommandResult]


class CancellableSubprocess:
    """Run a command to completion unless its context is cancelled.

    Provides:
    - Captured stdout and stderr (optionally merged)
    - Timeout support with proper cleanup
    - Cancellation through a shared Context
    """

    def __init__(
        self,
        command: list[str],
        ctx: Context,
        timeout: float | None = None,
        merge_stderr: bool = False,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize a cancellable subprocess.

        Args:
            command: Command and arguments to execute
            ctx: Context whose cancellation kills the process
            timeout: Maximum execution time in seconds
            merge_stderr: Send stderr into the stdout stream
            env: Environment variables for the subprocess
        """
        self.command = command
        self.ctx = ctx
        self.timeout = timeout
        self.merge_stderr = merge_stderr
        self.env = env
        self._process: subprocess.Popen | None = None
        self._stdout: list[str] = []
        self._stderr: list[str] = []
        self._threads: list[threading.Thread] = []

    def run(self) -> CommandResult:
        """Execute the command and wait for it.

        Returns:
            CommandResult with the exit code and captured output

        Raises:
            CommandError: If the command cannot be started or times out
            DetectionCancelled: If the context is cancelled while running
        """
        self.ctx.raise_if_cancelled()
        logger.debug(f"Starting subprocess: {' '.join(self.command)}")

        try:
            self._process = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if self.merge_stderr else subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                env=self.env,
            )
        except OSError as e:
            raise CommandError(f"Failed to start {self.command[0]}: {e}") from e

        try:
            self._start_reader(self._process.stdout, self._stdout)
            if not self.merge_stderr:
                self._start_reader(self._process.stderr, self._stderr)

            start_time = time.monotonic()
            while True:
                try:
                    returncode = self._process.wait(timeout=POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    if self.ctx.cancelled():
                        self._terminate()
                        self.ctx.raise_if_cancelled()

                    if self.timeout and (time.monotonic() - start_time) > self.timeout:
                        self._terminate()
                        raise CommandError(
                            f"{self.command[0]} timed out after {self.timeout}s"
                        )

            for thread in self._threads:
                thread.join(timeout=1)

            logger.debug(f"Subprocess {self.command[0]} exited with code: {returncode}")
            return CommandResult(
                args=list(self.command),
                returncode=returncode,
                stdout="".join(self._stdout),
                stderr="".join(self._stderr),
            )

        finally:
            self._cleanup()

    def _start_reader(self, pipe: IO[str] | None, sink: list[str]) -> None:
        thread = threading.Thread(target=self._read_output, args=(pipe, sink), daemon=True)
        self._threads.append(thread)
        thread.start()

    def _read_output(self, pipe: IO[str] | None, sink: list[str]) -> None:
        """Drain a pipe into a list of chunks."""
        if pipe is None:
            return
        try:
            for line in pipe:
                sink.append(line)
        except (OSError, ValueError) as e:
            logger.debug(f"Error reading output of {self.command[0]}: {e}")

    def _terminate(self) -> None:
        if self._process is None or self._process.poll() is not None:
            return
        self._process.terminate()
        try:
            self._process.wait(timeout=TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            self._process.kill()
            self._process.wait()

    def _cleanup(self) -> None:
        """Make sure the process is gone and its pipes are closed."""
        if self._process:
            self._terminate()
            for pipe in [self._process.stdout, self._process.stderr]:
                if pipe and not pipe.closed:
                    pipe.close()


def run_command(
    ctx: Context,
    command: list[str],
    timeout: float | None = None,
    merge_stderr: bool = False,
    check: bool = False,
) -> CommandResult:
    """Convenience function to run a command under a context.

    Args:
        ctx: Cancellation context
        command: Command and arguments to execute
        timeout: Maximum execution time in seconds
        merge_stderr: Capture stderr together with stdout
        check: Raise CommandError on a non-zero exit code

    Returns:
        CommandResult for the finished process

    Raises:
        CommandError: If the command cannot run, times out, or fails with check=True
        DetectionCancelled: If the context is cancelled
    """
    result = CancellableSubprocess(command, ctx, timeout=timeout, merge_stderr=merge_stderr).run()
    if check and not result.ok:
        raise CommandError(
            f"{command[0]} exited with code {result.returncode}",
            returncode=result.returncode,
            output=result.output,
        )
    return result
