"""AudioEngine - main public API."""

from pathlib import Path
from typing import Optional, Union
from audioline.api.source import AudioSource
from audioline.core.interfaces import IAudioBackend, IDecoder
from audioline.core.models import AudioConfig, AudioDevice, AudioFormat
from audioline.formats import resolve
from audioline.formats.container import write_container_file
from audioline.formats.mp3 import Mp3Format
from audioline.services.engine_lifecycle import EngineLifecycleService
from audioline.services.playback import PlaybackSession
from audioline.services.recording import RecordingSession
from audioline.utils.log import get_logger

logger = get_logger(__name__)


class AudioEngine:
    """
    Main audio engine facade.

    Plays files to and records from device lines. Each play or record
    call runs one session to completion on the calling thread, with a
    dedicated worker thread per session; calls on distinct lines may run
    concurrently from different threads.
    """

    def __init__(
        self,
        config: AudioConfig = AudioConfig(),
        backend: Optional[IAudioBackend] = None,
        decoder: Optional[IDecoder] = None,
    ):
        """
        Initialize AudioEngine.

        Args:
            config: Engine configuration.
            backend: Optional backend implementation (default: SoundDeviceBackend).
            decoder: Optional decode capability for compressed files
                (default: PydubDecoder).
        """
        self._config = config
        if backend is None:
            # Lazy import to avoid loading PortAudio on import
            from audioline.backends.sounddevice_backend import SoundDeviceBackend
            backend = SoundDeviceBackend(line_buffer_seconds=config.line_buffer_seconds)
        self._lifecycle = EngineLifecycleService(backend)
        self._handlers = {"mp3": Mp3Format(decoder)} if decoder is not None else None

    @property
    def config(self) -> AudioConfig:
        return self._config

    @property
    def backend(self) -> IAudioBackend:
        return self._lifecycle.backend

    @property
    def is_started(self) -> bool:
        return self._lifecycle.is_started

    def start(self) -> None:
        """Start the audio engine."""
        self._lifecycle.start()

    def shutdown(self) -> None:
        """Stop accepting new sessions."""
        self._lifecycle.shutdown()

    def list_devices(self) -> list[AudioDevice]:
        """
        Enumerate mixers.

        Returns:
            Devices in platform order; the list position is the mixer index.
        """
        return self._lifecycle.registry.list_devices()

    def describe_devices(self) -> str:
        """Human-readable table of every mixer and its line formats."""
        return self._lifecycle.registry.describe_devices()

    def load(self, path: Union[str, Path]) -> AudioSource:
        """
        Open an audio file.

        Args:
            path: Path to a .wav or .mp3 file.

        Returns:
            AudioSource positioned at frame 0. The caller owns it and
            should close it.

        Raises:
            InvalidInputError: If path is not a regular file.
            UnsupportedFormatError: If the container is not supported.
        """
        return resolve(str(path), self._handlers)

    def play_audio(
        self,
        path: Union[str, Path],
        device_index: Optional[int] = None,
        audio_format: Optional[AudioFormat] = None,
    ) -> None:
        """
        Play a file to completion.

        Args:
            path: Path to a .wav or .mp3 file.
            device_index: Mixer index, or None / -1 for any capable line.
            audio_format: Format used to pick the line (default: the file's
                format). The file is still played in its own format.

        Raises:
            EngineNotStartedError: If the engine is not started.
            InvalidInputError, UnsupportedFormatError: If the file cannot be used.
            InvalidMixerIndexError, LineUnavailableError: If no line can play it.
            PlaybackTimeoutError: If the line never reported completion.
            InterruptedWaitError: If the wait was interrupted.
        """
        self._lifecycle.ensure_started()
        with self.load(path) as source:
            session = PlaybackSession(
                self._lifecycle.registry,
                self._lifecycle.leases,
                source,
                device_index=device_index,
                audio_format=audio_format,
                config=self._config,
            )
            session.run()

    def record_audio(
        self,
        duration_micros: Optional[int] = None,
        device_index: Optional[int] = None,
        audio_format: Optional[AudioFormat] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """
        Record from an input line.

        Args:
            duration_micros: Capture duration (default:
                config.default_record_duration_micros).
            device_index: Mixer index, or None / -1 for any capable line.
            audio_format: Capture format (default: config.record_format).
            output_path: Optional .wav file to write the recording to.

        Returns:
            Captured raw PCM bytes.

        Raises:
            EngineNotStartedError: If the engine is not started.
            InvalidInputError: If the duration is invalid.
            UnsupportedFormatError: If no line supports the format, or
                output_path is not a .wav file.
            InvalidMixerIndexError, LineUnavailableError: If no line can record.
            InterruptedWaitError: If the capture was interrupted.
        """
        self._lifecycle.ensure_started()
        if duration_micros is None:
            duration_micros = self._config.default_record_duration_micros
        session = RecordingSession(
            self._lifecycle.registry,
            self._lifecycle.leases,
            duration_micros,
            device_index=device_index,
            audio_format=audio_format,
            config=self._config,
        )
        data = session.run()
        if output_path is not None:
            self.save_recording(output_path, data, session.format)
        return data

    def save_recording(
        self,
        path: Union[str, Path],
        pcm: bytes,
        audio_format: Optional[AudioFormat] = None,
    ) -> int:
        """
        Write captured PCM to a canonical .wav file.

        Returns:
            Number of bytes written.
        """
        return write_container_file(path, pcm, audio_format or self._config.record_format)

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown()
