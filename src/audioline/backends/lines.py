"""Line base classes shared by the backends."""

import threading
from typing import BinaryIO, Optional
from audioline.core.interfaces import ILine, LineListener
from audioline.core.models import AudioFormat, LineDirection, LineEvent, LineEventType
from audioline.utils.log import get_logger

logger = get_logger(__name__)


class BaseLine(ILine):
    """
    Listener bookkeeping and open/running state for a line.

    Subclasses implement the _open_*, _start_impl, _stop_impl and
    _close_impl hooks. STOP is emitted exactly once per start, whichever
    of stop() or the platform's own end-of-data notification gets there
    first.
    """

    def __init__(self, direction: LineDirection, name: str = ""):
        self._direction = direction
        self.name = name or f"{direction.value}-line"
        self._format: Optional[AudioFormat] = None
        self._listeners: list[LineListener] = []
        self._cond = threading.Condition()
        self._open = False
        self._running = False
        self._frames = 0
        self.open_count = 0
        self.close_count = 0

    @property
    def direction(self) -> LineDirection:
        return self._direction

    @property
    def format(self) -> Optional[AudioFormat]:
        return self._format

    @property
    def buffer_size(self) -> int:
        return 0

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def frame_position(self) -> int:
        """Frames moved through the line since open."""
        return self._frames

    def add_listener(self, listener: LineListener) -> None:
        with self._cond:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: LineListener) -> None:
        with self._cond:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event_type: LineEventType) -> None:
        with self._cond:
            listeners = list(self._listeners)
        event = LineEvent(type=event_type, line=self, frame_position=self._frames)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Line listener failed on {event_type.value} for {self.name}")

    def _mark_opened(self, audio_format: AudioFormat) -> None:
        with self._cond:
            self._format = audio_format
            self._open = True
            self._frames = 0
            self.open_count += 1
        logger.debug(f"{self.name}: opened with {audio_format}")
        self._emit(LineEventType.OPEN)

    def _mark_stopped(self) -> bool:
        """Leave the running state and emit STOP. Returns False if not running."""
        with self._cond:
            if not self._running:
                return False
            self._running = False
            self._cond.notify_all()
        logger.debug(f"{self.name}: stopped at frame {self._frames}")
        self._emit(LineEventType.STOP)
        return True

    def start(self) -> None:
        """Start moving data through the line."""
        if not self._open:
            raise RuntimeError(f"{self.name} is not open")
        with self._cond:
            if self._running:
                return
            self._running = True
        try:
            self._start_impl()
        except Exception:
            with self._cond:
                self._running = False
            raise
        logger.debug(f"{self.name}: started")
        self._emit(LineEventType.START)

    def stop(self) -> None:
        """Stop the line and emit STOP if it was running."""
        if not self._open:
            return
        self._stop_impl()
        self._mark_stopped()

    def drain(self) -> None:
        """Block until the line has finished moving already-accepted frames."""
        with self._cond:
            while self._running:
                self._cond.wait(0.1)

    def close(self) -> None:
        """Release the line. Safe to call more than once."""
        if not self._open:
            return
        if self._running:
            self.stop()
        try:
            self._close_impl()
        finally:
            with self._cond:
                self._open = False
                self.close_count += 1
                self._cond.notify_all()
            logger.debug(f"{self.name}: closed")
            self._emit(LineEventType.CLOSE)

    def _start_impl(self) -> None:
        pass

    def _stop_impl(self) -> None:
        pass

    def _close_impl(self) -> None:
        pass


class StreamSourceLine(BaseLine):
    """Playback line that pulls PCM from an attached stream."""

    def __init__(self, name: str = ""):
        super().__init__(LineDirection.SOURCE, name)
        self._stream: Optional[BinaryIO] = None

    def open(self, audio_format: AudioFormat, stream: BinaryIO) -> None:
        """Reserve the line and attach the PCM stream to play."""
        if self._open:
            raise RuntimeError(f"{self.name} is already open")
        self._stream = stream
        self._open_impl(audio_format)
        self._mark_opened(audio_format)

    def _open_impl(self, audio_format: AudioFormat) -> None:
        pass

    def _read_frames(self, size: int) -> bytes:
        """Read up to size bytes from the stream, whole frames only."""
        if self._stream is None:
            return b""
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        frame_size = self._format.frame_size
        data = data[: len(data) - len(data) % frame_size]
        self._frames += len(data) // frame_size
        return data


class BufferedTargetLine(BaseLine):
    """
    Capture line with an internal buffer.

    Subclasses push captured bytes with _push(); read() hands them out.
    Once stopped, read() returns the residual buffered frames and then b"".
    """

    def __init__(self, name: str = "", buffer_seconds: float = 0.5):
        super().__init__(LineDirection.TARGET, name)
        self._buffer = bytearray()
        self._buffer_seconds = buffer_seconds

    @property
    def buffer_size(self) -> int:
        if self._format is None:
            return 0
        frames = max(1, int(self._format.sample_rate * self._buffer_seconds))
        return frames * self._format.frame_size

    @property
    def available(self) -> int:
        """Bytes buffered and not yet read."""
        with self._cond:
            return len(self._buffer)

    def open(self, audio_format: AudioFormat) -> None:
        """Reserve the line for capture in the given format."""
        if self._open:
            raise RuntimeError(f"{self.name} is already open")
        with self._cond:
            self._buffer.clear()
        self._open_impl(audio_format)
        self._mark_opened(audio_format)

    def _open_impl(self, audio_format: AudioFormat) -> None:
        pass

    def _push(self, data: bytes) -> None:
        if not data:
            return
        with self._cond:
            self._buffer.extend(data)
            self._frames += len(data) // self._format.frame_size
            self._cond.notify_all()

    def read(self, size: int) -> bytes:
        """
        Read up to size bytes of whole frames.

        Blocks while the line is running and fewer than size bytes are
        buffered.
        """
        if not self._open:
            raise RuntimeError(f"{self.name} is not open")
        frame_size = self._format.frame_size
        size -= size % frame_size
        if size <= 0:
            return b""
        with self._cond:
            while self._running and len(self._buffer) < size:
                self._cond.wait(0.1)
            count = min(size, len(self._buffer))
            count -= count % frame_size
            data = bytes(self._buffer[:count])
            del self._buffer[:count]
            return data
