"""Discriminated result for callers that report errors instead of raising."""

from dataclasses import dataclass
from typing import Any, Callable, Optional
from audioline.core.exceptions import AudioError, ErrorKind


@dataclass(frozen=True)
class AudioResult:
    """Outcome of an engine operation."""

    ok: bool
    kind: Optional[ErrorKind] = None
    """Error kind when ok is False."""

    message: str = ""
    data: Any = None
    """Return value of the operation (captured bytes for recordings)."""

    @classmethod
    def success(cls, data: Any = None) -> "AudioResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: AudioError) -> "AudioResult":
        return cls(ok=False, kind=error.kind, message=str(error))

    @classmethod
    def capture(cls, func: Callable[..., Any], *args, **kwargs) -> "AudioResult":
        """
        Call func and wrap its outcome.

        Only AudioError is converted into a failure result; any other
        exception propagates.
        """
        try:
            return cls.success(func(*args, **kwargs))
        except AudioError as e:
            return cls.failure(e)
