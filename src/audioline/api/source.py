"""AudioSource: a decoded PCM stream ready to be attached to a line."""

from typing import BinaryIO, Optional
from audioline.core.models import AudioFormat, SourceKind
from audioline.utils.pcm import micros_to_seconds


class AudioSource:
    """Represents an opened audio file."""

    kind: SourceKind

    def __init__(
        self,
        path: str,
        audio_format: AudioFormat,
        stream: BinaryIO,
        duration_micros: int,
    ):
        """
        Initialize AudioSource.

        Args:
            path: Path to the source file.
            audio_format: Format of the bytes stream yields.
            stream: PCM stream positioned at frame 0.
            duration_micros: Duration in microseconds (0 = unknown).
        """
        self._path = path
        self._format = audio_format
        self._stream = stream
        self._duration_micros = duration_micros

    @property
    def path(self) -> str:
        """Get source file path."""
        return self._path

    @property
    def format(self) -> AudioFormat:
        """Get the PCM format of the stream."""
        return self._format

    @property
    def stream(self) -> BinaryIO:
        """Get the PCM stream."""
        return self._stream

    @property
    def duration_micros(self) -> int:
        """Get duration in microseconds (0 = unknown)."""
        return self._duration_micros

    @property
    def duration(self) -> float:
        """Get duration in seconds."""
        return micros_to_seconds(self._duration_micros)

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        """Close the underlying stream."""
        if not self._stream.closed:
            self._stream.close()

    def __enter__(self) -> "AudioSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(path={self._path!r}, format={self._format}, "
            f"duration_micros={self._duration_micros})"
        )


class DirectFormatSource(AudioSource):
    """Source whose format comes straight from an uncompressed container header."""

    kind = SourceKind.DIRECT

    def __init__(
        self,
        path: str,
        audio_format: AudioFormat,
        stream: BinaryIO,
        duration_micros: int,
        frame_count: int,
    ):
        super().__init__(path, audio_format, stream, duration_micros)
        self._frame_count = frame_count

    @property
    def frame_count(self) -> int:
        """Number of frames in the payload."""
        return self._frame_count


class DecodedFormatSource(AudioSource):
    """Source re-framed from a decoder's output into canonical PCM."""

    kind = SourceKind.DECODED

    def __init__(
        self,
        path: str,
        audio_format: AudioFormat,
        stream: BinaryIO,
        duration_micros: int,
        base_format: Optional[AudioFormat] = None,
    ):
        super().__init__(path, audio_format, stream, duration_micros)
        self._base_format = base_format or audio_format

    @property
    def base_format(self) -> AudioFormat:
        """Format the decoder produced before re-framing."""
        return self._base_format
