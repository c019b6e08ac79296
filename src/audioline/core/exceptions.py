"""Exception classes for audioline."""

from enum import Enum


class ErrorKind(Enum):
    """Discriminator carried by every AudioError."""

    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_MIXER_INDEX = "invalid_mixer_index"
    LINE_UNAVAILABLE = "line_unavailable"
    PLAYBACK_TIMEOUT = "playback_timeout"
    INTERRUPTED_WAIT = "interrupted_wait"
    UNRECOGNIZED_CONTAINER = "unrecognized_container"
    ENGINE_NOT_STARTED = "engine_not_started"


class AudioError(Exception):
    """Base exception for audio engine errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message = "Audio operation failed"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        cause = self.__cause__
        if cause is not None and str(cause) and str(cause) not in self.message:
            return f"{self.message}: {cause}"
        return self.message


class InvalidInputError(AudioError):
    """Raised when the supplied path is not a regular file or a request argument is invalid."""

    kind = ErrorKind.INVALID_INPUT
    default_message = "File object supplied is not a file"


class UnsupportedFormatError(AudioError):
    """Raised when a container or line format is not supported."""

    kind = ErrorKind.UNSUPPORTED_FORMAT
    default_message = "The specified audio file format is not supported"


class InvalidMixerIndexError(AudioError):
    """Raised when a device index is outside the enumerated range."""

    kind = ErrorKind.INVALID_MIXER_INDEX
    default_message = "The specified audio mixer is invalid"


class LineUnavailableError(AudioError):
    """Raised when no device line satisfies the requested format and direction."""

    kind = ErrorKind.LINE_UNAVAILABLE
    default_message = "The audio line is unavailable"


class PlaybackTimeoutError(AudioError):
    """Raised when a playback line never reported STOP within the watchdog."""

    kind = ErrorKind.PLAYBACK_TIMEOUT
    default_message = "Playback did not complete before the watchdog timeout"


class InterruptedWaitError(AudioError):
    """Raised when a blocking session wait was interrupted."""

    kind = ErrorKind.INTERRUPTED_WAIT
    default_message = "Interrupted while waiting for the session to finish"


class UnrecognizedContainerError(AudioError):
    """Raised when bytes do not carry a recognized container header."""

    kind = ErrorKind.UNRECOGNIZED_CONTAINER
    default_message = "Data does not carry a recognized audio container header"


class EngineNotStartedError(AudioError):
    """Raised when sessions are requested before start() or after shutdown()."""

    kind = ErrorKind.ENGINE_NOT_STARTED
    default_message = "Engine must be started before running sessions"


# Short aliases
InvalidInput = InvalidInputError
UnsupportedFormat = UnsupportedFormatError
InvalidMixerIndex = InvalidMixerIndexError
LineUnavailable = LineUnavailableError
DeviceUnavailable = LineUnavailableError
PlaybackTimeout = PlaybackTimeoutError
InterruptedWait = InterruptedWaitError
UnrecognizedContainer = UnrecognizedContainerError
EngineNotStarted = EngineNotStartedError
