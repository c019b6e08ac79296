"""Dedicated worker thread for a single session."""

import threading
from typing import Callable, Optional
from audioline.core.interfaces import ISessionWorker
from audioline.utils.log import get_logger

logger = get_logger(__name__)


class SessionWorker(ISessionWorker):
    """
    Worker thread that runs one session task.

    Playback uses it to register the line listener and start the line;
    recording uses it for the capture read loop. Exceptions raised by the
    task are captured and exposed through `error` so the caller can
    re-raise them on its own thread.
    """

    def __init__(
        self,
        task: Callable[[], None],
        name: str = "audioline-session",
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        """
        Initialize worker.

        Args:
            task: Function to run (no arguments).
            name: Thread name.
            on_error: Optional callback invoked in the worker thread when task raises.
        """
        self._task = task
        self._name = name
        self._on_error = on_error
        self._thread: Optional[threading.Thread] = None
        self._ready_event = threading.Event()  # Signals thread is running
        self._error: Optional[BaseException] = None

    def start(self) -> None:
        """
        Start the worker thread.

        Blocks until the thread is running.

        Raises:
            RuntimeError: If the worker was already started.
        """
        if self._thread is not None:
            raise RuntimeError(f"Worker {self._name} already started")

        # Daemon thread so an abandoned session cannot block interpreter exit
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

        if not self._ready_event.wait(timeout=5.0):
            raise RuntimeError("Worker thread failed to start within timeout")
        logger.debug(f"Session worker {self._name} started")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the task to finish.

        Args:
            timeout: Maximum seconds to wait (None = infinite).

        Returns:
            True if the thread has exited, False if it is still running.
        """
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning(f"Session worker {self._name} still running after {timeout}s")
            return False
        return True

    @property
    def error(self) -> Optional[BaseException]:
        """Exception raised by the task, if any."""
        return self._error

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        self._ready_event.set()
        try:
            self._task()
        except Exception as e:
            logger.exception(f"Error in session worker {self._name}")
            self._error = e
            if self._on_error is not None:
                self._on_error(e)
        finally:
            logger.debug(f"Session worker {self._name} exiting")
