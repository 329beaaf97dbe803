"""Bounded-capture execution of the Velero CLI.

Commands run under an ExecutionContext. Cancelling the context, or letting
its deadline pass, kills the subprocess's whole process group and surfaces as
OperationCancelledError instead of a partial result.

Captured runs read standard output into a fixed-size window *before* waiting
for the process to exit. Waiting first would deadlock as soon as the command
wrote more than the OS pipe buffer holds.
"""
import logging
import os
import shlex
import signal
import subprocess
import threading
import time
from typing import IO, List, Optional, Sequence

from velero_e2e.errors import (
    OperationCancelledError,
    OutputTooLargeError,
    ProcessExecutionError,
    ProcessSpawnError,
)
from .models import DEFAULT_CAPTURE_LIMIT, CapturedOutput

logger = logging.getLogger("velero_e2e.velero.runner")


class ExecutionContext:
    """Cancellation token with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None, parent: Optional['ExecutionContext'] = None):
        self._event = threading.Event()
        self._parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    def child(self, timeout: Optional[float] = None) -> 'ExecutionContext':
        """Derive a context that is also cancelled when this one is."""
        return ExecutionContext(timeout=timeout, parent=self)

    @property
    def expired(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent.expired if self._parent is not None else False

    @property
    def cancelled(self) -> bool:
        if self._event.is_set() or self.expired:
            return True
        return self._parent.cancelled if self._parent is not None else False

    def remaining(self) -> Optional[float]:
        """Seconds left before the nearest deadline, or None if there is none."""
        candidates = []
        if self._deadline is not None:
            candidates.append(max(0.0, self._deadline - time.monotonic()))
        if self._parent is not None:
            parent_remaining = self._parent.remaining()
            if parent_remaining is not None:
                candidates.append(parent_remaining)
        return min(candidates) if candidates else None

    def check(self) -> None:
        """Raise OperationCancelledError if the context is done."""
        if self.cancelled:
            raise OperationCancelledError(
                "context deadline exceeded" if self.expired else "context cancelled"
            )


class OperationRunner:
    """Runs Velero CLI commands, either captured or streamed to the console."""

    POLL_INTERVAL = 0.05

    def __init__(self, capture_limit: int = DEFAULT_CAPTURE_LIMIT):
        if capture_limit <= 0:
            raise ValueError("capture_limit must be positive")
        self.capture_limit = capture_limit

    @staticmethod
    def _format(argv: Sequence[str]) -> str:
        return ' '.join(shlex.quote(a) for a in argv)

    def _spawn(self, argv: List[str], **kwargs) -> subprocess.Popen:
        try:
            # Own process group, so a kill also reaches children holding our pipes.
            return subprocess.Popen(argv, start_new_session=True, **kwargs)
        except OSError as e:
            raise ProcessSpawnError(argv, e.strerror or str(e)) from e

    def _watch(self, ctx: ExecutionContext, proc: subprocess.Popen, done: threading.Event) -> None:
        while not done.wait(self.POLL_INTERVAL):
            if ctx.cancelled:
                logger.debug(f"Context done, killing process group {proc.pid}")
                self._kill(proc)
                return

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            proc.kill()

    def _read_prefix(self, stream: IO[bytes]) -> bytes:
        buf = bytearray(self.capture_limit)
        view = memoryview(buf)
        total = 0
        # End of stream before the window is full is a normal, short read.
        while total < self.capture_limit:
            n = stream.readinto(view[total:])
            if not n:
                break
            total += n
        return bytes(buf[:total])

    def run_captured(self, ctx: ExecutionContext, argv: List[str]) -> CapturedOutput:
        """Run a command and capture a bounded prefix of its standard output.

        Args:
            ctx: Execution context; cancelling it kills the command
            argv: Executable followed by its arguments

        Returns:
            CapturedOutput holding exactly the bytes read

        Raises:
            ProcessSpawnError: If the command cannot be started
            OutputTooLargeError: If the output filled the capture window
            ProcessExecutionError: If the command exits non-zero
            OperationCancelledError: If the context was cancelled or expired
        """
        ctx.check()
        logger.info(f"💻 Running: {self._format(argv)}")
        proc = self._spawn(argv, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, bufsize=0)

        done = threading.Event()
        watcher = threading.Thread(target=self._watch, args=(ctx, proc, done), daemon=True)
        watcher.start()
        try:
            data = self._read_prefix(proc.stdout)
            if len(data) >= self.capture_limit:
                raise OutputTooLargeError(argv, self.capture_limit)
            returncode = proc.wait()
        finally:
            done.set()
            watcher.join()
            if proc.poll() is None:
                self._kill(proc)
                proc.wait()
            proc.stdout.close()

        if returncode != 0:
            ctx.check()
            raise ProcessExecutionError(argv, returncode)
        logger.debug(f"Captured {len(data)} bytes from {argv[0]}")
        return CapturedOutput(data=data, limit=self.capture_limit, returncode=returncode)

    def run_streamed(self, ctx: ExecutionContext, argv: List[str]) -> int:
        """Run a command with stdout and stderr going straight to the console.

        Raises:
            ProcessSpawnError: If the command cannot be started
            ProcessExecutionError: If the command exits non-zero
            OperationCancelledError: If the context was cancelled or expired
        """
        ctx.check()
        logger.info(f"💻 Running: {self._format(argv)}")
        proc = self._spawn(argv, stdin=subprocess.DEVNULL)

        try:
            while True:
                try:
                    returncode = proc.wait(timeout=self.POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    ctx.check()
        finally:
            if proc.poll() is None:
                self._kill(proc)
                proc.wait()

        if returncode != 0:
            ctx.check()
            raise ProcessExecutionError(argv, returncode)
        return returncode
