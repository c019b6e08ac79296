"""Playback session: drive one source through one output line."""

import uuid
from typing import Optional
from audioline.api.source import AudioSource
from audioline.concurrency.completion import CompletionSignal
from audioline.concurrency.worker import SessionWorker
from audioline.core.devices import DeviceRegistry
from audioline.core.exceptions import (
    AudioError,
    InterruptedWaitError,
    LineUnavailableError,
    PlaybackTimeoutError,
)
from audioline.core.interfaces import ILine
from audioline.core.models import (
    AudioConfig,
    AudioFormat,
    LineDirection,
    LineEvent,
    LineEventType,
    PlaybackState,
)
from audioline.core.registry import LineLeaseRegistry
from audioline.utils.log import get_logger
from audioline.utils.pcm import micros_to_seconds

logger = get_logger(__name__)


class PlaybackSession:
    """
    One playback of an AudioSource on an output line.

    States: IDLE -> OPENED -> PLAYING -> COMPLETED, or FAILED from any
    of them. run() returns once the line reports STOP, or raises; the
    line is closed and its lease released on every path.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        leases: LineLeaseRegistry,
        source: AudioSource,
        device_index: Optional[int] = None,
        audio_format: Optional[AudioFormat] = None,
        config: AudioConfig = AudioConfig(),
    ):
        """
        Initialize session.

        Args:
            registry: Device registry used to resolve the line.
            leases: Line ownership registry.
            source: Opened audio source, positioned at frame 0.
            device_index: Mixer index, or None / -1 for any capable line.
            audio_format: Format used to pick the line (default: the source's
                format). The line still plays the source in its own format.
            config: Engine configuration.
        """
        self._registry = registry
        self._leases = leases
        self._source = source
        self._device_index = device_index
        self._format = source.format
        self._line_format = audio_format or source.format
        self._config = config
        self._id = uuid.uuid4().hex[:8]
        self._state = PlaybackState.IDLE
        self._completion = CompletionSignal(config.wait_poll_interval)
        self._line: Optional[ILine] = None

    @property
    def session_id(self) -> str:
        return self._id

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def format(self) -> AudioFormat:
        """Format the line is opened with (the source's)."""
        return self._format

    @property
    def line_format(self) -> AudioFormat:
        """Format the line was selected for."""
        return self._line_format

    @property
    def line(self) -> Optional[ILine]:
        """Line in use (None before OPENED)."""
        return self._line

    def watchdog_seconds(self) -> float:
        """Maximum time to wait for STOP once the line is started."""
        duration_micros = self._source.duration_micros
        if duration_micros <= 0:
            return self._config.unknown_duration_timeout_seconds
        return micros_to_seconds(duration_micros) + self._config.watchdog_grace_seconds

    def interrupt(self) -> None:
        """Wake the waiting caller; run() then raises InterruptedWaitError."""
        if self._completion.interrupt():
            logger.info(f"Playback {self._id}: interrupt requested")

    def run(self) -> None:
        """
        Play the source to completion.

        Raises:
            InvalidMixerIndexError: If the device index is out of range.
            LineUnavailableError: If the line is held, missing or fails.
            PlaybackTimeoutError: If STOP does not arrive within the watchdog.
            InterruptedWaitError: If the wait was interrupted.
        """
        if self._state != PlaybackState.IDLE:
            raise RuntimeError(f"Playback session {self._id} has already run")

        key = self._registry.lease_key(self._device_index, LineDirection.SOURCE)
        self._leases.acquire(key, self._id)
        worker: Optional[SessionWorker] = None
        try:
            self._open_line()
            worker = SessionWorker(
                self._start_line,
                name=f"audioline-playback-{self._id}",
                on_error=self._completion.fail,
            )
            worker.start()
            self._wait_for_stop()
            self._set_state(PlaybackState.COMPLETED)
        except BaseException:
            self._set_state(PlaybackState.FAILED)
            raise
        finally:
            self._release_line(worker)
            self._leases.release(key, self._id)

    def _set_state(self, state: PlaybackState) -> None:
        logger.debug(f"Playback {self._id}: {self._state.value} -> {state.value}")
        self._state = state

    def _open_line(self) -> None:
        self._line = self._registry.resolve_line(
            self._device_index, self._line_format, LineDirection.SOURCE
        )
        try:
            self._line.open(self._format, self._source.stream)
        except AudioError:
            raise
        except Exception as e:
            logger.error(f"Failed to open playback line: {e}")
            raise LineUnavailableError("The audio line for playing is unavailable") from e
        self._set_state(PlaybackState.OPENED)

    def _start_line(self) -> None:
        # Listener must be in place before start so a short source cannot
        # finish before anyone is listening for STOP
        self._line.add_listener(self._on_line_event)
        self._set_state(PlaybackState.PLAYING)
        self._line.start()

    def _on_line_event(self, event: LineEvent) -> None:
        if event.type == LineEventType.STOP:
            self._completion.set()

    def _wait_for_stop(self) -> None:
        timeout = self.watchdog_seconds()
        logger.info(f"Playback {self._id}: playing {self._source.path} (watchdog {timeout:.2f}s)")
        try:
            resolved = self._completion.wait(timeout)
        except KeyboardInterrupt as e:
            raise InterruptedWaitError("Interrupted while waiting for playback to finish") from e

        if not resolved:
            logger.warning(f"Playback {self._id}: no STOP event within {timeout:.2f}s")
            raise PlaybackTimeoutError(
                f"Playback of {self._source.path} did not complete within {timeout:.2f}s"
            )
        if self._completion.interrupted:
            raise InterruptedWaitError("Interrupted while waiting for playback to finish")
        error = self._completion.error
        if error is not None:
            if isinstance(error, AudioError):
                raise error
            raise LineUnavailableError("The audio line for playing failed to start") from error
        logger.info(f"Playback {self._id}: completed")

    def _release_line(self, worker: Optional[SessionWorker]) -> None:
        if worker is not None:
            worker.join(self._config.worker_join_timeout)
        line = self._line
        if line is None:
            return
        try:
            line.stop()
        except Exception as e:
            logger.warning(f"Playback {self._id}: error stopping line: {e}")
        line.remove_listener(self._on_line_event)
        try:
            line.close()
        except Exception as e:
            logger.warning(f"Playback {self._id}: error closing line: {e}")
