import io
import subprocess
import sys
import threading
import time

import pytest

from velero_e2e.errors import (
    OperationCancelledError,
    OutputTooLargeError,
    ProcessExecutionError,
    ProcessSpawnError,
)
from velero_e2e.modules.velero.models import DEFAULT_CAPTURE_LIMIT
from velero_e2e.modules.velero.runner import ExecutionContext, OperationRunner


def python(code):
    return [sys.executable, "-c", code]


def writer(size, exit_code=0):
    return python(f"import sys; sys.stdout.buffer.write(b'x' * {size}); sys.stdout.flush(); sys.exit({exit_code})")


def test_default_capture_limit_is_16k():
    assert DEFAULT_CAPTURE_LIMIT == 16384
    assert OperationRunner().capture_limit == 16384


def test_output_one_byte_short_of_the_limit_is_returned_whole():
    out = OperationRunner().run_captured(ExecutionContext(timeout=30), writer(16383))
    assert out.size == 16383
    assert out.data == b"x" * 16383
    assert out.returncode == 0
    assert not out.saturated


def test_output_filling_the_limit_is_rejected():
    with pytest.raises(OutputTooLargeError) as exc:
        OperationRunner().run_captured(ExecutionContext(timeout=30), writer(16384))
    assert exc.value.limit == 16384


def test_capture_limit_is_injectable():
    runner = OperationRunner(capture_limit=10)
    assert runner.run_captured(ExecutionContext(timeout=30), writer(9)).data == b"x" * 9
    with pytest.raises(OutputTooLargeError):
        runner.run_captured(ExecutionContext(timeout=30), writer(10))


def test_capture_limit_must_be_positive():
    with pytest.raises(ValueError):
        OperationRunner(capture_limit=0)


def test_output_larger_than_pipe_buffer_does_not_deadlock():
    # Far beyond any OS pipe buffer; waiting before reading would hang here.
    size = 4 * 1024 * 1024
    runner = OperationRunner(capture_limit=size + 1)
    out = runner.run_captured(ExecutionContext(timeout=60), writer(size))
    assert out.size == size


def test_too_large_takes_precedence_over_exit_status():
    with pytest.raises(OutputTooLargeError):
        OperationRunner(capture_limit=100).run_captured(ExecutionContext(timeout=30), writer(500, exit_code=3))


def test_non_zero_exit_is_an_execution_error():
    with pytest.raises(ProcessExecutionError) as exc:
        OperationRunner().run_captured(ExecutionContext(timeout=30), writer(10, exit_code=4))
    assert exc.value.returncode == 4


def test_missing_executable_is_a_spawn_error(tmp_path):
    with pytest.raises(ProcessSpawnError):
        OperationRunner().run_captured(ExecutionContext(), [str(tmp_path / "no-such-velero"), "version"])


def test_cancel_kills_in_flight_command_promptly():
    ctx = ExecutionContext()
    threading.Timer(0.2, ctx.cancel).start()
    start = time.monotonic()
    with pytest.raises(OperationCancelledError, match="cancelled"):
        OperationRunner().run_captured(ctx, python("import time; time.sleep(30)"))
    assert time.monotonic() - start < 10


def test_deadline_kills_in_flight_command():
    start = time.monotonic()
    with pytest.raises(OperationCancelledError, match="deadline"):
        OperationRunner().run_captured(ExecutionContext(timeout=0.2), python("import time; time.sleep(30)"))
    assert time.monotonic() - start < 10


def test_cancelled_context_never_spawns(monkeypatch):
    ctx = ExecutionContext()
    ctx.cancel()

    def boom(*args, **kwargs):
        raise AssertionError("spawned")

    monkeypatch.setattr(subprocess, "Popen", boom)
    with pytest.raises(OperationCancelledError):
        OperationRunner().run_captured(ctx, ["velero"])


def test_child_context_follows_parent():
    parent = ExecutionContext()
    child = parent.child(timeout=60)
    assert not child.cancelled
    parent.cancel()
    assert child.cancelled
    assert child.remaining() <= 60


class RecordingStream(io.BytesIO):
    def __init__(self, data, events):
        super().__init__(data)
        self.events = events

    def readinto(self, b):
        n = super().readinto(b)
        self.events.append(("read", n))
        return n


def test_read_completes_before_wait(monkeypatch):
    events = []

    class FakePopen:
        pid = 4242

        def __init__(self, argv, **kwargs):
            assert kwargs["stdout"] is subprocess.PIPE
            self.stdout = RecordingStream(b'{"status":{}}', events)
            self.returncode = None

        def wait(self, timeout=None):
            events.append(("wait", None))
            self.returncode = 0
            return 0

        def poll(self):
            return self.returncode

        def kill(self):
            events.append(("kill", None))

    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    out = OperationRunner().run_captured(ExecutionContext(), ["velero", "backup", "get"])

    assert out.data == b'{"status":{}}'
    wait_at = events.index(("wait", None))
    assert ("read", 0) in events[:wait_at]
    assert all(kind == "read" for kind, _ in events[:wait_at])


def test_streamed_success_and_failure():
    runner = OperationRunner()
    assert runner.run_streamed(ExecutionContext(timeout=30), python("print('hello')")) == 0
    with pytest.raises(ProcessExecutionError) as exc:
        runner.run_streamed(ExecutionContext(timeout=30), python("raise SystemExit(3)"))
    assert exc.value.returncode == 3


def test_streamed_cancel():
    ctx = ExecutionContext()
    threading.Timer(0.2, ctx.cancel).start()
    with pytest.raises(OperationCancelledError):
        OperationRunner().run_streamed(ctx, python("import time; time.sleep(30)"))


def test_cancel_kills_grandchildren_holding_the_pipe():
    # sleep inherits stdout from sh; killing only sh would leave the read blocked.
    ctx = ExecutionContext()
    threading.Timer(0.3, ctx.cancel).start()
    start = time.monotonic()
    with pytest.raises(OperationCancelledError):
        OperationRunner().run_captured(ctx, ["sh", "-c", "sleep 8; echo done"])
    assert time.monotonic() - start < 5


def test_streamed_cancel_kills_grandchildren():
    ctx = ExecutionContext()
    threading.Timer(0.3, ctx.cancel).start()
    start = time.monotonic()
    with pytest.raises(OperationCancelledError):
        OperationRunner().run_streamed(ctx, ["sh", "-c", "sleep 8; echo done"])
    assert time.monotonic() - start < 5


def test_commands_run_in_their_own_session(monkeypatch):
    seen = {}

    def fake_popen(argv, **kwargs):
        seen.update(kwargs)
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(subprocess, "Popen", fake_popen)
    with pytest.raises(ProcessSpawnError):
        OperationRunner().run_streamed(ExecutionContext(), ["velero"])
    assert seen["start_new_session"] is True
