"""Completion flag shared between a line listener and a waiting caller."""

import threading
import time
from typing import Optional
from audioline.utils.log import get_logger

logger = get_logger(__name__)


class CompletionSignal:
    """
    One-shot completion flag with wait/notify discipline.

    The first of set(), fail() or interrupt() wins; later calls are ignored.
    Waiters re-check the flag at bounded intervals so a missed or spurious
    wake-up never stalls them past the next poll.
    """

    def __init__(self, poll_interval: float = 0.1):
        """
        Initialize signal.

        Args:
            poll_interval: Maximum seconds a waiter sleeps between re-checks.
        """
        self._condition = threading.Condition()
        self._poll_interval = poll_interval
        self._done = False
        self._interrupted = False
        self._error: Optional[BaseException] = None

    def set(self) -> bool:
        """Mark completion. Returns False if already resolved."""
        return self._resolve()

    def fail(self, error: BaseException) -> bool:
        """Resolve with an error that waiters will see."""
        return self._resolve(error=error)

    def interrupt(self) -> bool:
        """Resolve as interrupted."""
        return self._resolve(interrupted=True)

    def _resolve(self, error: Optional[BaseException] = None, interrupted: bool = False) -> bool:
        with self._condition:
            if self._done:
                return False
            self._done = True
            self._error = error
            self._interrupted = interrupted
            self._condition.notify_all()
            return True

    @property
    def is_set(self) -> bool:
        return self._done

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the signal to resolve.

        Args:
            timeout: Maximum seconds to wait (None = until resolved).

        Returns:
            True if resolved, False if the timeout elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while not self._done:
                if deadline is None:
                    step = self._poll_interval
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    step = min(self._poll_interval, remaining)
                self._condition.wait(step)
            return True
