"""
audioline - audio capture and playback core for remote test harnesses.

This package plays WAV and MP3 files to, and records raw PCM from, the
lines of the host's audio devices (via PortAudio), and frames captured
PCM in a canonical WAV container.
"""

from audioline.api.engine import AudioEngine
from audioline.api.result import AudioResult
from audioline.api.source import AudioSource, DecodedFormatSource, DirectFormatSource
from audioline.core.models import (
    DEFAULT_RECORD_FORMAT,
    AudioConfig,
    AudioDevice,
    AudioFormat,
    LineDirection,
    PlaybackState,
    RecordingState,
    SourceKind,
)
from audioline.core.exceptions import (
    AudioError,
    ErrorKind,
    InvalidInputError,
    UnsupportedFormatError,
    InvalidMixerIndexError,
    LineUnavailableError,
    PlaybackTimeoutError,
    InterruptedWaitError,
    UnrecognizedContainerError,
    EngineNotStartedError,
    DeviceUnavailable,
)
from audioline.formats import resolve
from audioline.formats.container import from_container, to_canonical_container
from audioline.utils.log import set_log_level

__version__ = "0.1.0"

__all__ = [
    "AudioEngine",
    "AudioResult",
    "AudioSource",
    "DirectFormatSource",
    "DecodedFormatSource",
    "AudioConfig",
    "AudioDevice",
    "AudioFormat",
    "DEFAULT_RECORD_FORMAT",
    "LineDirection",
    "PlaybackState",
    "RecordingState",
    "SourceKind",
    "AudioError",
    "ErrorKind",
    "InvalidInputError",
    "UnsupportedFormatError",
    "InvalidMixerIndexError",
    "LineUnavailableError",
    "PlaybackTimeoutError",
    "InterruptedWaitError",
    "UnrecognizedContainerError",
    "EngineNotStartedError",
    "DeviceUnavailable",
    "resolve",
    "to_canonical_container",
    "from_container",
    "set_log_level",
]
