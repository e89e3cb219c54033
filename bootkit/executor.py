"""
Command Executor

Runs external processes for the orchestrators:
- Standard streams are inherited so interactive installers keep working
- Blocks until the process exits, polling the execution context
- Cancellation terminates the child process
"""

import logging
import shlex
import subprocess
from typing import List, Protocol, Sequence

from .context import ExecutionContext
from .errors import CommandCancelledError, CommandFailedError

logger = logging.getLogger(__name__)


class ProcessRunner(Protocol):
    """Anything able to run one command line to completion"""

    def run(self, argv: Sequence[str], context: ExecutionContext) -> None:
        ...


def shell_command(command: str) -> List[str]:
    """Wrap a command string for execution by the shell"""
    return ['sh', '-c', command]


def split_command(command: str) -> List[str]:
    """Split a command string into argv without invoking a shell"""
    return shlex.split(command)


class SubprocessRunner:
    """ProcessRunner backed by subprocess.Popen"""

    def __init__(self, poll_interval: float = 0.1, kill_timeout: float = 5.0):
        """
        Args:
            poll_interval: Seconds between context checks while the child runs
            kill_timeout: Seconds to wait after SIGTERM before sending SIGKILL
        """
        self.poll_interval = poll_interval
        self.kill_timeout = kill_timeout

    def run(self, argv: Sequence[str], context: ExecutionContext) -> None:
        """
        Run a command with the invoking process's stdin/stdout/stderr attached

        Raises:
            CommandFailedError: non-zero exit or the process could not be started
            CommandCancelledError: the context was cancelled or its deadline passed
        """
        argv = list(argv)
        if not argv:
            raise CommandFailedError(argv, None, 'empty command')

        reason = context.reason
        if reason is not None:
            raise CommandCancelledError(argv, reason)

        logger.debug(f"📋 Executing command: {' '.join(argv)}")
        try:
            # None keeps the parent's file descriptors
            process = subprocess.Popen(argv, stdin=None, stdout=None, stderr=None)
        except OSError as e:
            raise CommandFailedError(argv, None, str(e)) from e

        returncode = self._wait(process, argv, context)

        if returncode != 0:
            reason = context.reason
            if reason is not None:
                raise CommandCancelledError(argv, reason)
            raise CommandFailedError(argv, returncode)

        logger.debug(f"✅ Command completed: {argv[0]}")

    def _wait(self, process: subprocess.Popen, argv: List[str],
              context: ExecutionContext) -> int:
        while True:
            reason = context.reason
            if reason is not None:
                self._terminate(process)
                raise CommandCancelledError(argv, reason)

            timeout = self.poll_interval
            remaining = context.remaining()
            if remaining is not None:
                timeout = min(timeout, remaining)
            try:
                return process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                continue

    def _terminate(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        logger.debug(f"🛑 Terminating process {process.pid}")
        process.terminate()
        try:
            process.wait(timeout=self.kill_timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


def describe(argv: Sequence[str]) -> str:
    """Human readable form of an argv list"""
    return ' '.join(shlex.quote(part) for part in argv)

