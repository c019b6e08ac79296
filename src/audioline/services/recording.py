"""Recording session: capture a fixed duration from an input line."""

import threading
import uuid
from typing import Optional
from audioline.concurrency.completion import CompletionSignal
from audioline.concurrency.worker import SessionWorker
from audioline.core.devices import DeviceRegistry
from audioline.core.exceptions import (
    AudioError,
    InterruptedWaitError,
    LineUnavailableError,
    UnsupportedFormatError,
)
from audioline.core.interfaces import ITargetLine
from audioline.core.models import (
    AudioConfig,
    AudioFormat,
    LineDirection,
    LineEvent,
    LineEventType,
    RecordingState,
)
from audioline.core.registry import LineLeaseRegistry
from audioline.utils.log import get_logger
from audioline.utils.pcm import micros_to_seconds
from audioline.utils.validate import validate_duration_micros

logger = get_logger(__name__)


class RecordingSession:
    """
    One capture of duration_micros from an input line.

    The caller thread sleeps for the duration and stops the line; a
    SessionWorker reads chunks into the output buffer until the line's
    STOP event, then drains the line and reads what is left.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        leases: LineLeaseRegistry,
        duration_micros: int,
        device_index: Optional[int] = None,
        audio_format: Optional[AudioFormat] = None,
        config: AudioConfig = AudioConfig(),
    ):
        """
        Initialize session.

        Args:
            registry: Device registry used to resolve the line.
            leases: Line ownership registry.
            duration_micros: Capture duration in microseconds.
            device_index: Mixer index, or None / -1 for any capable line.
            audio_format: Capture format (default: config.record_format).
            config: Engine configuration.

        Raises:
            InvalidInputError: If the duration is not positive or exceeds
                config.max_record_duration_micros.
        """
        self._registry = registry
        self._leases = leases
        self._duration_micros = validate_duration_micros(
            duration_micros, config.max_record_duration_micros
        )
        self._device_index = device_index
        self._format = audio_format or config.record_format
        self._config = config
        self._id = uuid.uuid4().hex[:8]
        self._state = RecordingState.IDLE
        self._completion = CompletionSignal(config.wait_poll_interval)
        self._wakeup = threading.Event()
        self._line_started = threading.Event()
        self._interrupted = False
        self._buffer = bytearray()
        self._chunk_size = 0
        self._line: Optional[ITargetLine] = None

    @property
    def session_id(self) -> str:
        return self._id

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def format(self) -> AudioFormat:
        return self._format

    @property
    def duration_micros(self) -> int:
        return self._duration_micros

    @property
    def chunk_size(self) -> int:
        """Bytes requested per read (valid after OPENED)."""
        return self._chunk_size

    @property
    def line(self) -> Optional[ITargetLine]:
        return self._line

    def interrupt(self) -> None:
        """Cut the capture short; run() then raises InterruptedWaitError."""
        self._interrupted = True
        self._wakeup.set()
        logger.info(f"Recording {self._id}: interrupt requested")

    def run(self) -> bytes:
        """
        Capture for the configured duration.

        Returns:
            Captured PCM bytes in the session format.

        Raises:
            UnsupportedFormatError: If no line on the system takes the format.
            InvalidMixerIndexError: If the device index is out of range.
            LineUnavailableError: If the line is held, missing or fails.
            InterruptedWaitError: If the capture was interrupted.
        """
        if self._state != RecordingState.IDLE:
            raise RuntimeError(f"Recording session {self._id} has already run")

        if not self._registry.is_line_supported(LineDirection.TARGET, self._format):
            logger.info(f"Recording {self._id}: no input line supports {self._format}")
            raise UnsupportedFormatError(f"The audio format is not supported: {self._format}")

        key = self._registry.lease_key(self._device_index, LineDirection.TARGET)
        self._leases.acquire(key, self._id)
        worker: Optional[SessionWorker] = None
        try:
            self._open_line()
            worker = SessionWorker(
                self._capture,
                name=f"audioline-recording-{self._id}",
                on_error=lambda e: self._wakeup.set(),
            )
            worker.start()
            self._sleep()
            self._stop_line()
            worker.join(self._config.worker_join_timeout)
            self._raise_worker_error(worker)
            if self._interrupted:
                raise InterruptedWaitError("Interrupted while recording")
            self._set_state(RecordingState.COMPLETED)
            logger.info(f"Recording {self._id}: captured {len(self._buffer)} bytes")
            return bytes(self._buffer)
        except BaseException:
            self._set_state(RecordingState.FAILED)
            raise
        finally:
            self._release_line(worker)
            self._leases.release(key, self._id)

    def _set_state(self, state: RecordingState) -> None:
        logger.debug(f"Recording {self._id}: {self._state.value} -> {state.value}")
        self._state = state

    def _open_line(self) -> None:
        self._line = self._registry.resolve_line(
            self._device_index, self._format, LineDirection.TARGET
        )
        try:
            self._line.open(self._format)
        except AudioError:
            raise
        except Exception as e:
            logger.error(f"Failed to open recording line: {e}")
            raise LineUnavailableError("The audio line for recording is unavailable") from e

        frame_size = self._format.frame_size
        chunk = self._line.buffer_size // self._config.chunk_ratio
        self._chunk_size = max(frame_size, chunk - chunk % frame_size)
        self._set_state(RecordingState.OPENED)
        logger.debug(
            f"Recording {self._id}: line buffer {self._line.buffer_size} bytes, "
            f"chunk {self._chunk_size} bytes"
        )

    def _capture(self) -> None:
        line = self._line
        line.add_listener(self._on_line_event)
        try:
            line.start()
            self._set_state(RecordingState.CAPTURING)
        finally:
            self._line_started.set()

        while not self._completion.is_set:
            data = line.read(self._chunk_size)
            if data:
                self._buffer.extend(data)

        self._set_state(RecordingState.DRAINING)
        line.drain()
        while True:
            data = line.read(self._chunk_size)
            if not data:
                break
            self._buffer.extend(data)

    def _on_line_event(self, event: LineEvent) -> None:
        if event.type == LineEventType.STOP:
            self._completion.set()

    def _sleep(self) -> None:
        seconds = micros_to_seconds(self._duration_micros)
        try:
            # The duration is measured from the moment the line is running
            self._line_started.wait(self._config.worker_join_timeout)
            logger.info(f"Recording {self._id}: capturing {seconds:.3f}s of {self._format}")
            self._wakeup.wait(seconds)
        except KeyboardInterrupt:
            self._interrupted = True
            logger.info(f"Recording {self._id}: interrupted by KeyboardInterrupt")

    def _stop_line(self) -> None:
        try:
            self._line.stop()
        finally:
            # A STOP that never arrives must not leave the worker reading forever
            self._completion.set()

    def _raise_worker_error(self, worker: SessionWorker) -> None:
        error = worker.error
        if error is None:
            return
        if isinstance(error, AudioError):
            raise error
        raise LineUnavailableError("The audio line for recording failed") from error

    def _release_line(self, worker: Optional[SessionWorker]) -> None:
        line = self._line
        if line is None:
            return
        if worker is not None and worker.is_alive:
            # Error path: the line may never have been stopped
            try:
                line.stop()
            except Exception as e:
                logger.warning(f"Recording {self._id}: error stopping line: {e}")
            self._completion.set()
            worker.join(self._config.worker_join_timeout)
        line.remove_listener(self._on_line_event)
        try:
            line.close()
        except Exception as e:
            logger.warning(f"Recording {self._id}: error closing line: {e}")
