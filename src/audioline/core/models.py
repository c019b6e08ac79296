"""Data models and configuration classes."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class LineDirection(Enum):
    """Direction of a device line."""

    SOURCE = "source"
    """Playback (output) line."""

    TARGET = "target"
    """Capture (input) line."""


class LineEventType(Enum):
    """Lifecycle events emitted by a line."""

    OPEN = "open"
    START = "start"
    STOP = "stop"
    CLOSE = "close"


class PlaybackState(Enum):
    """Playback session state."""

    IDLE = "idle"
    OPENED = "opened"
    PLAYING = "playing"
    COMPLETED = "completed"
    FAILED = "failed"


class RecordingState(Enum):
    """Recording session state."""

    IDLE = "idle"
    OPENED = "opened"
    CAPTURING = "capturing"
    DRAINING = "draining"
    COMPLETED = "completed"
    FAILED = "failed"


class SourceKind(Enum):
    """How an AudioSource obtains its PCM stream."""

    DIRECT = "direct"
    """Format read from an uncompressed container header."""

    DECODED = "decoded"
    """PCM produced by a decoder from a compressed container."""


@dataclass(frozen=True)
class AudioFormat:
    """Audio format specification."""

    sample_rate: float
    """Sample rate in Hz."""

    bits_per_sample: int
    """Bits per sample (8, 16, 24 or 32)."""

    channels: int
    """Number of channels (1=mono, 2=stereo)."""

    signed: bool = True
    """Whether samples are signed PCM."""

    big_endian: bool = False
    """Byte order of multi-byte samples."""

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.bits_per_sample <= 0 or self.bits_per_sample % 8:
            raise ValueError(
                f"bits_per_sample must be a positive multiple of 8, got {self.bits_per_sample}"
            )
        if self.channels <= 0:
            raise ValueError(f"channels must be positive, got {self.channels}")

    @property
    def bytes_per_sample(self) -> int:
        """Bytes per sample."""
        return self.bits_per_sample // 8

    @property
    def frame_size(self) -> int:
        """Frame size in bytes (channels x bytes per sample)."""
        return self.channels * self.bytes_per_sample

    @property
    def frame_rate(self) -> float:
        """Frames per second; equal to the sample rate for PCM."""
        return self.sample_rate

    @property
    def bytes_per_second(self) -> int:
        """Average bytes per second."""
        return int(self.sample_rate) * self.frame_size

    def with_byte_order(self, big_endian: bool) -> "AudioFormat":
        """Return a copy of this format with the given byte order."""
        return replace(self, big_endian=big_endian)

    @classmethod
    def canonical_pcm(
        cls, sample_rate: float, channels: int, big_endian: bool = False
    ) -> "AudioFormat":
        """16-bit signed PCM with the given rate and channel count."""
        return cls(
            sample_rate=sample_rate,
            bits_per_sample=16,
            channels=channels,
            signed=True,
            big_endian=big_endian,
        )

    def __str__(self) -> str:
        sign = "signed" if self.signed else "unsigned"
        order = "big-endian" if self.big_endian else "little-endian"
        return (
            f"PCM {self.sample_rate:g} Hz, {self.bits_per_sample} bit, "
            f"{self.channels}ch, {self.frame_size} bytes/frame, {sign}, {order}"
        )


DEFAULT_RECORD_FORMAT = AudioFormat(
    sample_rate=48000.0,
    bits_per_sample=16,
    channels=1,
    signed=True,
    big_endian=True,
)
"""Capture format used when a record request names none."""


@dataclass(frozen=True)
class LineInfo:
    """Descriptor of a line a device exposes."""

    direction: LineDirection
    formats: tuple[AudioFormat, ...] = ()
    max_channels: int = 0

    def supports(self, audio_format: AudioFormat) -> bool:
        """Check whether this line lists the given format."""
        return audio_format in self.formats


@dataclass(frozen=True)
class AudioDevice:
    """An addressable audio endpoint (mixer)."""

    index: int
    """Position in the platform enumeration order (public mixer index)."""

    name: str
    """Human-readable name."""

    source_lines: tuple[LineInfo, ...] = ()
    """Playback (output) lines."""

    target_lines: tuple[LineInfo, ...] = ()
    """Capture (input) lines."""

    host_api: str = ""
    default_sample_rate: Optional[float] = None

    def lines(self, direction: LineDirection) -> tuple[LineInfo, ...]:
        """Lines of the given direction."""
        if direction == LineDirection.SOURCE:
            return self.source_lines
        return self.target_lines

    def supports(self, direction: LineDirection, audio_format: AudioFormat) -> bool:
        """Check whether any line of the given direction lists the format."""
        return any(line.supports(audio_format) for line in self.lines(direction))

    @property
    def supported_formats(self) -> tuple[AudioFormat, ...]:
        """All distinct formats over every line, in enumeration order."""
        seen: list[AudioFormat] = []
        for line in self.source_lines + self.target_lines:
            for audio_format in line.formats:
                if audio_format not in seen:
                    seen.append(audio_format)
        return tuple(seen)


@dataclass(frozen=True)
class LineEvent:
    """Lifecycle event delivered to line listeners."""

    type: LineEventType
    line: Any
    frame_position: int = 0


@dataclass(frozen=True)
class AudioConfig:
    """Configuration for AudioEngine and its sessions."""

    record_format: AudioFormat = DEFAULT_RECORD_FORMAT
    """Capture format used when a record request names none."""

    default_record_duration_micros: int = 10_000_000
    """Recording duration used when a record request names none (10 s)."""

    chunk_ratio: int = 5
    """Line buffer size divided by this gives the capture transfer chunk."""

    wait_poll_interval: float = 0.1
    """Seconds between re-checks of a completion flag."""

    watchdog_grace_seconds: float = 0.5
    """Added to a source's duration to form the playback watchdog."""

    unknown_duration_timeout_seconds: float = 300.0
    """Playback watchdog for sources whose duration is unknown (0)."""

    max_record_duration_micros: Optional[int] = None
    """Upper bound on a single recording; None means unbounded."""

    line_buffer_seconds: float = 0.5
    """Internal buffer size of hardware capture lines."""

    worker_join_timeout: float = 5.0
    """Seconds to wait for a session worker to exit during cleanup."""

    def __post_init__(self):
        if self.chunk_ratio < 1:
            raise ValueError(f"chunk_ratio must be >= 1, got {self.chunk_ratio}")
        if self.wait_poll_interval <= 0:
            raise ValueError("wait_poll_interval must be positive")
        if self.watchdog_grace_seconds < 0:
            raise ValueError("watchdog_grace_seconds must not be negative")
        if self.unknown_duration_timeout_seconds <= 0:
            raise ValueError("unknown_duration_timeout_seconds must be positive")
        if self.default_record_duration_micros <= 0:
            raise ValueError("default_record_duration_micros must be positive")
        if self.max_record_duration_micros is not None and self.max_record_duration_micros <= 0:
            raise ValueError("max_record_duration_micros must be positive or None")
        if self.line_buffer_seconds <= 0:
            raise ValueError("line_buffer_seconds must be positive")


@dataclass
class DecodedStream:
    """Output of a decode capability."""

    format: AudioFormat
    """Format of the PCM bytes in stream."""

    stream: Any
    """Binary file-like object positioned at frame 0."""

    duration_micros: Optional[int] = None
    """Duration from decoder metadata; None when the decoder reports none."""

    base_format: Optional[AudioFormat] = None
    """Format of the compressed stream before conversion, if known."""
