"""Null backend for testing (simulated devices, no actual audio I/O)."""

import itertools
import threading
import time
from typing import Optional, Sequence
from audioline.backends.lines import BufferedTargetLine, StreamSourceLine
from audioline.core.exceptions import LineUnavailableError
from audioline.core.interfaces import IAudioBackend, ILine
from audioline.core.models import AudioDevice, AudioFormat, LineDirection, LineInfo
from audioline.utils.log import get_logger

logger = get_logger(__name__)

NULL_SAMPLE_RATES = (8000.0, 16000.0, 22050.0, 44100.0, 48000.0)
NULL_SAMPLE_SIZES = (8, 16, 24, 32)
NULL_CHANNELS = (1, 2)

# Simulated lines move data in steps of this many seconds
_STEP_SECONDS = 0.01


def default_null_formats() -> tuple[AudioFormat, ...]:
    """Every rate/size/channel combination, both signedness for 8-bit, both byte orders above."""
    formats = []
    for rate, bits, channels in itertools.product(
        NULL_SAMPLE_RATES, NULL_SAMPLE_SIZES, NULL_CHANNELS
    ):
        if bits == 8:
            variants = [(True, False), (False, False)]
        else:
            variants = [(True, False), (True, True)]
        for signed, big_endian in variants:
            formats.append(
                AudioFormat(
                    sample_rate=rate,
                    bits_per_sample=bits,
                    channels=channels,
                    signed=signed,
                    big_endian=big_endian,
                )
            )
    return tuple(formats)


class NullSourceLine(StreamSourceLine):
    """
    Simulated playback line.

    Consumes the attached stream on an internal thread at `speed` times
    real time and emits STOP once the stream is exhausted.
    """

    def __init__(self, name: str, speed: float = 1.0, emit_stop_events: bool = True):
        super().__init__(name)
        self._speed = speed
        self._emit_stop_events = emit_stop_events
        self._pump: Optional[threading.Thread] = None
        self._halt = threading.Event()
        self.played = bytearray()

    def _start_impl(self) -> None:
        self._halt.clear()
        self._pump = threading.Thread(target=self._pump_loop, name=f"{self.name}-pump", daemon=True)
        self._pump.start()

    def _pump_loop(self) -> None:
        step = max(self._format.frame_size, int(self._format.sample_rate * _STEP_SECONDS) * self._format.frame_size)
        while not self._halt.is_set():
            data = self._read_frames(step)
            if not data:
                break
            self.played.extend(data)
            seconds = len(data) / self._format.bytes_per_second
            if self._halt.wait(seconds / self._speed):
                return
        if self._emit_stop_events:
            self._mark_stopped()
        else:
            logger.debug(f"{self.name}: end of stream, STOP event suppressed")

    def _stop_impl(self) -> None:
        self._halt.set()
        if self._pump is not None and self._pump is not threading.current_thread():
            self._pump.join(timeout=1.0)
        self._pump = None


class NullTargetLine(BufferedTargetLine):
    """
    Simulated capture line.

    Produces frames of `fill` bytes at `speed` times real time. On stop the
    frames owed up to the stop instant are flushed into the line buffer
    before STOP is emitted.
    """

    def __init__(
        self,
        name: str,
        speed: float = 1.0,
        buffer_seconds: float = 0.5,
        fill: bytes = b"\x00",
    ):
        super().__init__(name, buffer_seconds)
        self._speed = speed
        self._fill = fill or b"\x00"
        self._producer: Optional[threading.Thread] = None
        self._halt = threading.Event()
        self._started_at = 0.0
        self._produced_frames = 0
        self._produce_lock = threading.Lock()

    def _start_impl(self) -> None:
        self._halt.clear()
        self._started_at = time.monotonic()
        self._produced_frames = 0
        self._producer = threading.Thread(
            target=self._produce_loop, name=f"{self.name}-producer", daemon=True
        )
        self._producer.start()

    def _produce_due(self) -> None:
        with self._produce_lock:
            elapsed = (time.monotonic() - self._started_at) * self._speed
            due = int(elapsed * self._format.sample_rate) - self._produced_frames
            if due <= 0:
                return
            self._produced_frames += due
            size = due * self._format.frame_size
            pattern = self._fill * (size // len(self._fill) + 1)
            self._push(pattern[:size])

    def _produce_loop(self) -> None:
        while not self._halt.wait(_STEP_SECONDS):
            self._produce_due()

    def _stop_impl(self) -> None:
        self._halt.set()
        if self._producer is not None:
            self._producer.join(timeout=1.0)
            self._producer = None
        # Flush frames accumulated since the last production step
        self._produce_due()


class NullBackend(IAudioBackend):
    """Null backend implementation for testing."""

    def __init__(
        self,
        device_count: int = 1,
        formats: Optional[Sequence[AudioFormat]] = None,
        speed: float = 1.0,
        emit_stop_events: bool = True,
        line_buffer_seconds: float = 0.5,
        capture_fill: bytes = b"\x00",
    ):
        """
        Initialize backend.

        Args:
            device_count: Number of simulated mixers, each with one output and one input line.
            formats: Formats every line accepts (default: default_null_formats()).
            speed: Playback/capture speed relative to real time.
            emit_stop_events: When False, playback lines never report STOP.
            line_buffer_seconds: Capture line buffer size in seconds.
            capture_fill: Byte pattern produced by capture lines.
        """
        self._device_count = device_count
        self._formats = tuple(formats) if formats is not None else default_null_formats()
        self._speed = speed
        self._emit_stop_events = emit_stop_events
        self._line_buffer_seconds = line_buffer_seconds
        self._capture_fill = capture_fill
        self._next_line_id = 0
        self.lines: list[ILine] = []
        self.query_count = 0

    def query_devices(self) -> list[AudioDevice]:
        """Enumerate simulated devices."""
        self.query_count += 1
        return [
            AudioDevice(
                index=i,
                name=f"Null Audio Device {i}",
                source_lines=(LineInfo(LineDirection.SOURCE, self._formats, max_channels=2),),
                target_lines=(LineInfo(LineDirection.TARGET, self._formats, max_channels=2),),
                host_api="null",
                default_sample_rate=48000.0,
            )
            for i in range(self._device_count)
        ]

    def is_line_supported(self, direction: LineDirection, audio_format: AudioFormat) -> bool:
        return self._device_count > 0 and audio_format in self._formats

    def default_device_index(self, direction: LineDirection) -> Optional[int]:
        """Simulated default lines live on device 0."""
        return 0 if self._device_count > 0 else None

    def get_line(
        self,
        device: Optional[AudioDevice],
        direction: LineDirection,
        audio_format: AudioFormat,
    ) -> ILine:
        """Create an unopened simulated line."""
        if self._device_count == 0:
            raise LineUnavailableError("No audio devices available")
        if audio_format not in self._formats:
            raise LineUnavailableError(f"No {direction.value} line supports {audio_format}")

        device_index = 0 if device is None else device.index
        name = f"null{device_index}-{direction.value}-{self._next_line_id}"
        self._next_line_id += 1
        if direction == LineDirection.SOURCE:
            line = NullSourceLine(name, self._speed, self._emit_stop_events)
        else:
            line = NullTargetLine(name, self._speed, self._line_buffer_seconds, self._capture_fill)
        self.lines.append(line)
        logger.debug(f"Created {name}")
        return line

    @property
    def open_lines(self) -> list[ILine]:
        """Lines currently open."""
        return [line for line in self.lines if line.is_open]
