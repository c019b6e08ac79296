"""Service for managing audio engine lifecycle."""

from typing import Optional
from audioline.core.devices import DeviceRegistry
from audioline.core.exceptions import EngineNotStartedError
from audioline.core.interfaces import IAudioBackend
from audioline.core.registry import LineLeaseRegistry
from audioline.utils.log import get_logger

logger = get_logger(__name__)


class EngineLifecycleService:
    """
    Service for managing audio engine lifecycle.

    Responsibilities:
    - Own the device registry and the line lease registry
    - Gate new sessions on the started state

    Shutdown only stops new sessions from starting; sessions already
    running finish on their own and release their lines.
    """

    def __init__(self, backend: IAudioBackend, leases: Optional[LineLeaseRegistry] = None):
        """
        Initialize lifecycle service.

        Args:
            backend: Audio backend implementation.
            leases: Optional lease registry (creates new if None).
        """
        self._backend = backend
        self._registry = DeviceRegistry(backend)
        self._leases = leases or LineLeaseRegistry()
        self._started = False

    def start(self) -> None:
        """Start accepting sessions. Calling it twice is harmless."""
        if self._started:
            logger.warning("Engine already started")
            return
        self._started = True
        logger.info("Audio engine started")

    def shutdown(self) -> None:
        """
        Stop accepting new sessions.

        This method is idempotent and safe to call multiple times.
        """
        if not self._started:
            logger.debug("Engine not started, skipping shutdown")
            return
        active = self._leases.count()
        if active:
            logger.info(f"Shutting down with {active} session(s) still running")
        self._started = False
        logger.info("Audio engine shut down")

    def ensure_started(self) -> None:
        """
        Raises:
            EngineNotStartedError: If the engine is not started.
        """
        if not self._started:
            raise EngineNotStartedError("Engine must be started before running sessions")

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def backend(self) -> IAudioBackend:
        return self._backend

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    @property
    def leases(self) -> LineLeaseRegistry:
        return self._leases
