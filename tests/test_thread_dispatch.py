"""Tests for session worker and completion signal."""

import threading
import time
import pytest
from audioline.concurrency.completion import CompletionSignal
from audioline.concurrency.worker import SessionWorker


def test_worker_start_join():
    """Test worker thread start and join."""
    ran = threading.Event()
    worker = SessionWorker(ran.set)

    worker.start()
    assert worker.join(timeout=1.0)
    assert ran.is_set()
    assert not worker.is_alive
    assert worker.error is None


def test_worker_runs_on_its_own_thread():
    """The task runs on a named worker thread."""
    names = []
    worker = SessionWorker(lambda: names.append(threading.current_thread().name), name="w-1")

    worker.start()
    worker.join(timeout=1.0)

    assert names == ["w-1"]


def test_worker_error_captured():
    """Test error handling in worker thread."""
    seen = []

    def failing_function():
        raise ValueError("Test error")

    worker = SessionWorker(failing_function, on_error=seen.append)
    worker.start()
    worker.join(timeout=1.0)

    assert isinstance(worker.error, ValueError)
    assert seen == [worker.error]


def test_worker_double_start():
    """A worker runs its task once."""
    worker = SessionWorker(lambda: None)
    worker.start()

    with pytest.raises(RuntimeError):
        worker.start()
    worker.join(timeout=1.0)


def test_worker_join_timeout():
    """join() reports a task that is still running."""
    release = threading.Event()
    worker = SessionWorker(lambda: release.wait(5.0))
    worker.start()

    assert not worker.join(timeout=0.05)
    release.set()
    assert worker.join(timeout=1.0)


def test_signal_set_once():
    """The first resolution wins."""
    signal = CompletionSignal()

    assert signal.set()
    assert not signal.set()
    assert not signal.interrupt()
    assert signal.is_set
    assert not signal.interrupted
    assert signal.wait(timeout=0)


def test_signal_wait_timeout():
    """wait() returns False when nothing resolves the signal in time."""
    signal = CompletionSignal(poll_interval=0.01)

    start = time.monotonic()
    assert not signal.wait(timeout=0.1)
    assert time.monotonic() - start >= 0.09


def test_signal_woken_from_other_thread():
    """A set() on another thread wakes the waiter."""
    signal = CompletionSignal(poll_interval=0.05)
    timer = threading.Timer(0.05, signal.set)
    timer.start()

    assert signal.wait(timeout=2.0)
    timer.join()


def test_signal_fail_and_interrupt():
    """Errors and interrupts are visible to waiters."""
    failed = CompletionSignal()
    error = RuntimeError("line died")
    failed.fail(error)
    assert failed.wait(timeout=0)
    assert failed.error is error

    interrupted = CompletionSignal()
    interrupted.interrupt()
    assert interrupted.wait(timeout=0)
    assert interrupted.interrupted
    assert interrupted.error is None
