"""Validation utilities."""

from typing import Optional
from audioline.core.exceptions import InvalidInputError, InvalidMixerIndexError

DEFAULT_DEVICE_INDEX = -1


def validate_device_index(index: Optional[int], device_count: int) -> Optional[int]:
    """
    Validate a mixer index against the enumerated device count.

    Args:
        index: Requested index. None or -1 selects the default line.
        device_count: Number of enumerated devices.

    Returns:
        The index, or None for the default line.

    Raises:
        InvalidMixerIndexError: If the index is out of range.
    """
    if index is None or index == DEFAULT_DEVICE_INDEX:
        return None
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidMixerIndexError(f"Invalid mixer number: {index!r} is not an integer")
    if index < 0 or index >= device_count:
        raise InvalidMixerIndexError(
            f"Invalid mixer number: {index} (available: 0..{device_count - 1})"
            if device_count
            else f"Invalid mixer number: {index} (no audio devices available)"
        )
    return index


def validate_duration_micros(
    duration_micros: int, max_duration_micros: Optional[int] = None
) -> int:
    """Validate a recording duration in microseconds."""
    if isinstance(duration_micros, bool) or not isinstance(duration_micros, int):
        raise InvalidInputError(f"Recording duration must be an integer, got {duration_micros!r}")
    if duration_micros <= 0:
        raise InvalidInputError(f"Recording duration must be positive, got {duration_micros}")
    if max_duration_micros is not None and duration_micros > max_duration_micros:
        raise InvalidInputError(
            f"Recording duration {duration_micros}us exceeds the configured "
            f"maximum of {max_duration_micros}us"
        )
    return duration_micros
