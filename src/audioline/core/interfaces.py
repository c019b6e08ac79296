"""Protocol interfaces for audio backend abstraction."""

from typing import BinaryIO, Callable, Optional, Protocol
from audioline.core.models import (
    AudioDevice,
    AudioFormat,
    DecodedStream,
    LineDirection,
    LineEvent,
)

LineListener = Callable[[LineEvent], None]


class ILine(Protocol):
    """Interface for a device line (playback or capture data path)."""

    @property
    def direction(self) -> LineDirection:
        """Direction of this line."""
        ...

    @property
    def format(self) -> Optional[AudioFormat]:
        """Format the line was opened with (None before open)."""
        ...

    @property
    def buffer_size(self) -> int:
        """Internal buffer size in bytes (valid after open)."""
        ...

    @property
    def is_open(self) -> bool:
        ...

    def add_listener(self, listener: LineListener) -> None:
        """Register a callback for line lifecycle events."""
        ...

    def remove_listener(self, listener: LineListener) -> None:
        """Unregister a lifecycle callback (no-op if absent)."""
        ...

    def start(self) -> None:
        """Start moving data through the line."""
        ...

    def stop(self) -> None:
        """Stop the line; emits STOP once buffered data is settled."""
        ...

    def drain(self) -> None:
        """Block until already-accepted frames are flushed to their destination."""
        ...

    def close(self) -> None:
        """Release the line. Safe to call more than once."""
        ...


class ISourceLine(ILine, Protocol):
    """Playback line fed from a PCM stream."""

    def open(self, audio_format: AudioFormat, stream: BinaryIO) -> None:
        """Reserve the line and attach the PCM stream to play."""
        ...


class ITargetLine(ILine, Protocol):
    """Capture line read into caller buffers."""

    def open(self, audio_format: AudioFormat) -> None:
        """Reserve the line for capture in the given format."""
        ...

    def read(self, size: int) -> bytes:
        """
        Read up to size bytes of captured frames.

        Blocks until size bytes are available or the line is stopped. After
        stop, returns whatever is buffered (b"" once empty).
        """
        ...


class IAudioBackend(Protocol):
    """Interface for audio platform implementation."""

    def query_devices(self) -> list[AudioDevice]:
        """Enumerate devices in platform order (fresh on every call)."""
        ...

    def is_line_supported(self, direction: LineDirection, audio_format: AudioFormat) -> bool:
        """Check whether the default line of the given direction accepts the format."""
        ...

    def default_device_index(self, direction: LineDirection) -> Optional[int]:
        """Index of the device behind the default line (None if there is none)."""
        ...

    def get_line(
        self,
        device: Optional[AudioDevice],
        direction: LineDirection,
        audio_format: AudioFormat,
    ) -> ILine:
        """
        Obtain an unopened line.

        Args:
            device: Device to take the line from, or None for the default line.
            direction: SOURCE for playback, TARGET for capture.
            audio_format: Format the line must accept.

        Raises:
            LineUnavailableError: If no matching line exists.
        """
        ...


class IDecoder(Protocol):
    """Decode capability: compressed stream to PCM."""

    def decode(self, path: str, sample_width: Optional[int] = None) -> DecodedStream:
        """
        Decode a compressed file to little-endian PCM.

        Args:
            path: Path to the compressed file.
            sample_width: Bytes per output sample (None = decoder native).

        Raises:
            UnsupportedFormatError: If the data cannot be decoded.
        """
        ...


class IAudioFormat(Protocol):
    """Interface for audio container handlers."""

    @property
    def extensions(self) -> tuple[str, ...]:
        """
        File extensions handled (lower-case, without dot, e.g. ('wav',)).
        """
        ...

    def open(self, path: str):
        """
        Open a file and return an AudioSource positioned at frame 0.

        Raises:
            UnsupportedFormatError: If the content cannot be handled.
        """
        ...


class ISessionWorker(Protocol):
    """Interface for the per-session background worker."""

    def start(self) -> None:
        ...

    def join(self, timeout: Optional[float] = None) -> bool:
        ...

    @property
    def error(self) -> Optional[BaseException]:
        ...
