"""Compressed-audio decoder backed by pydub (ffmpeg)."""

import io
from typing import Optional
from audioline.core.exceptions import UnsupportedFormatError
from audioline.core.interfaces import IDecoder
from audioline.core.models import AudioFormat, DecodedStream
from audioline.utils.log import get_logger
from audioline.utils.pcm import MICROS_PER_SECOND

logger = get_logger(__name__)

try:
    from pydub import AudioSegment
    from pydub.exceptions import CouldntDecodeError
    from pydub.utils import mediainfo
    PYDUB_AVAILABLE = True
    PYDUB_ERROR = None
except ImportError as e:
    PYDUB_AVAILABLE = False
    PYDUB_ERROR = str(e)


def _pydub_missing_message() -> str:
    error_msg = "pydub is required for compressed audio support."
    if PYDUB_ERROR:
        # Check for common missing dependency issues
        if "audioop" in PYDUB_ERROR.lower() or "pyaudioop" in PYDUB_ERROR.lower():
            error_msg += (
                " pydub is installed but missing the 'audioop' module, which was "
                "removed in Python 3.13. Install audioop-lts: pip install audioop-lts"
            )
        else:
            error_msg += f" Import error: {PYDUB_ERROR}"
    else:
        error_msg += " Install it with: pip install pydub"
    return error_msg


class PydubDecoder(IDecoder):
    """Decoder implementing IDecoder through pydub.AudioSegment."""

    def __init__(self, container: str = "mp3"):
        """
        Initialize decoder.

        Args:
            container: ffmpeg container name passed to AudioSegment.from_file.
        """
        self._container = container

    def decode(self, path: str, sample_width: Optional[int] = None) -> DecodedStream:
        """
        Decode a compressed file to little-endian PCM.

        Args:
            path: Path to the compressed file.
            sample_width: Bytes per output sample (None = as decoded).

        Returns:
            DecodedStream over the PCM bytes; duration from the container
            metadata reported by ffprobe, None when it reports none.

        Raises:
            UnsupportedFormatError: If pydub/ffmpeg are missing or decoding fails.
        """
        if not PYDUB_AVAILABLE:
            raise UnsupportedFormatError(_pydub_missing_message())

        try:
            audio = AudioSegment.from_file(path, format=self._container)
        except CouldntDecodeError as e:
            logger.info(f"Could not decode {path}: {e}")
            raise UnsupportedFormatError(f"Failed to decode {self._container} file") from e
        except FileNotFoundError as e:
            # The file itself was checked by the resolver, so this is the
            # ffmpeg/ffprobe subprocess not being found in PATH
            raise UnsupportedFormatError(
                f"ffmpeg is required for {self._container} decoding with pydub. "
                "Ensure 'ffmpeg' and 'ffprobe' are available in your PATH."
            ) from e
        except Exception as e:
            logger.error(f"Failed to decode {path}: {e}")
            raise UnsupportedFormatError(f"Failed to decode {self._container} file: {e}") from e

        base_format = AudioFormat(
            sample_rate=float(audio.frame_rate),
            bits_per_sample=audio.sample_width * 8,
            channels=audio.channels,
            signed=audio.sample_width > 1,
        )
        if sample_width is not None and audio.sample_width != sample_width:
            audio = audio.set_sample_width(sample_width)

        pcm_format = AudioFormat(
            sample_rate=float(audio.frame_rate),
            bits_per_sample=audio.sample_width * 8,
            channels=audio.channels,
            signed=audio.sample_width > 1,
        )
        logger.info(
            f"Decoded {self._container}: {pcm_format.channels}ch, "
            f"{pcm_format.sample_rate:g}Hz, {pcm_format.bits_per_sample}bit"
        )
        return DecodedStream(
            format=pcm_format,
            stream=io.BytesIO(audio.raw_data),
            duration_micros=self._read_duration(path),
            base_format=base_format,
        )

    def _read_duration(self, path: str) -> Optional[int]:
        """Duration tag from ffprobe, in microseconds."""
        try:
            info = mediainfo(path)
        except (OSError, ValueError) as e:
            logger.warning(f"ffprobe failed for {path}: {e}")
            return None
        duration = info.get("duration")
        if duration in (None, "", "N/A"):
            return None
        try:
            return round(float(duration) * MICROS_PER_SECOND)
        except ValueError:
            logger.warning(f"Unparseable duration {duration!r} for {path}")
            return None
