"""Audio container handlers and the format resolver."""

from pathlib import Path
from typing import Dict, Mapping, Optional
from audioline.api.source import AudioSource
from audioline.core.exceptions import InvalidInputError, UnsupportedFormatError
from audioline.core.interfaces import IAudioFormat
from audioline.formats.mp3 import mp3_format
from audioline.formats.wav import wav_format
from audioline.utils.log import get_logger

logger = get_logger(__name__)

# Registry of all available formats, keyed by extension without the dot
_format_registry: Dict[str, IAudioFormat] = {}


def register_format(handler: IAudioFormat) -> None:
    """
    Register an audio container handler.

    Args:
        handler: Format instance implementing IAudioFormat.
    """
    for ext in handler.extensions:
        if ext in _format_registry:
            logger.warning(
                f"Format with extension {ext} already registered, "
                f"overwriting with {type(handler).__name__}"
            )
        _format_registry[ext] = handler
    logger.debug(f"Registered format {type(handler).__name__} for extensions: {handler.extensions}")


def supported_extensions() -> list[str]:
    return sorted(_format_registry)


def get_format_for_file(
    path: str, overrides: Optional[Mapping[str, IAudioFormat]] = None
) -> Optional[IAudioFormat]:
    """
    Get the handler for a file by its extension.

    Matching is case-sensitive: "clip.WAV" has no handler.

    Args:
        path: Path to audio file.
        overrides: Handlers consulted before the registry, keyed by extension.

    Returns:
        IAudioFormat instance, or None if no handler claims the extension.
    """
    ext = Path(path).suffix[1:]
    if overrides and ext in overrides:
        return overrides[ext]
    return _format_registry.get(ext)


def resolve(path: str, overrides: Optional[Mapping[str, IAudioFormat]] = None) -> AudioSource:
    """
    Open a file as an AudioSource positioned at frame 0.

    Args:
        path: Path to audio file.
        overrides: Handlers consulted before the registry, keyed by extension.

    Returns:
        DirectFormatSource for uncompressed containers, DecodedFormatSource
        for compressed ones.

    Raises:
        InvalidInputError: If path is not a regular file.
        UnsupportedFormatError: If no handler claims the extension or the
            handler cannot read the content.
    """
    path = str(path)
    if not Path(path).is_file():
        logger.info(f"Rejected {path}: not a regular file")
        raise InvalidInputError("File object supplied is not a file")

    handler = get_format_for_file(path, overrides)
    if handler is None:
        raise UnsupportedFormatError(
            f"The specified audio file format is not supported: {Path(path).name}. "
            f"Supported extensions: {', '.join(supported_extensions())}"
        )
    logger.debug(f"Resolving {path} with {type(handler).__name__}")
    return handler.open(path)


register_format(wav_format)
register_format(mp3_format)

__all__ = [
    "register_format",
    "get_format_for_file",
    "resolve",
    "supported_extensions",
    "IAudioFormat",
]
