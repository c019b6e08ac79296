"""Lease registry guaranteeing exclusive line ownership."""

import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional
from audioline.core.exceptions import LineUnavailableError
from audioline.core.models import LineDirection


@dataclass(frozen=True)
class LineKey:
    """Identity of a line: device index (None = default) and direction."""

    device_index: Optional[int]
    direction: LineDirection

    def __str__(self) -> str:
        device = "default" if self.device_index is None else f"mixer {self.device_index}"
        return f"{self.direction.value} line on {device}"


@dataclass
class LeaseInfo:
    """Information about a held line."""

    key: LineKey
    owner: str
    acquired_at: float


class LineLeaseRegistry:
    """
    Registry of lines currently owned by a session.

    Responsibilities:
    - Refuse a second session on a line that is already held
    - Release leases when sessions finish
    - Provide thread-safe access, since sessions on distinct lines run concurrently
    """

    def __init__(self):
        """Initialize the registry."""
        self._leases: Dict[LineKey, LeaseInfo] = {}
        self._lock = threading.Lock()

    def acquire(self, key: LineKey, owner: str) -> LeaseInfo:
        """
        Take exclusive ownership of a line.

        Args:
            key: Line identity.
            owner: Session identifier.

        Returns:
            The new lease.

        Raises:
            LineUnavailableError: If another session holds the line.
        """
        with self._lock:
            held = self._leases.get(key)
            if held is not None:
                raise LineUnavailableError(f"The {key} is in use by session {held.owner}")
            lease = LeaseInfo(key=key, owner=owner, acquired_at=time.monotonic())
            self._leases[key] = lease
            return lease

    def release(self, key: LineKey, owner: str) -> None:
        """
        Release a lease. Leases held by another owner are left alone.

        Args:
            key: Line identity.
            owner: Session identifier.
        """
        with self._lock:
            held = self._leases.get(key)
            if held is not None and held.owner == owner:
                del self._leases[key]

    def get(self, key: LineKey) -> Optional[LeaseInfo]:
        with self._lock:
            return self._leases.get(key)

    def count(self) -> int:
        """
        Get number of held lines.

        Returns:
            Number of active leases.
        """
        with self._lock:
            return len(self._leases)
