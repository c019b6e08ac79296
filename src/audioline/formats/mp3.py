"""MP3 container handler (decoded path)."""

import io
from typing import Optional
from audioline.api.source import DecodedFormatSource
from audioline.core.exceptions import UnsupportedFormatError
from audioline.core.interfaces import IAudioFormat, IDecoder
from audioline.core.models import AudioFormat
from audioline.utils.log import get_logger
from audioline.utils.pcm import swap_byte_order

logger = get_logger(__name__)

CANONICAL_SAMPLE_WIDTH = 2


class Mp3Format(IAudioFormat):
    """MP3 handler implementing IAudioFormat over a decode capability."""

    def __init__(self, decoder: Optional[IDecoder] = None, big_endian: bool = False):
        """
        Initialize handler.

        Args:
            decoder: Decode capability (default: PydubDecoder).
            big_endian: Byte order of the canonical PCM handed to lines.
        """
        self._decoder = decoder
        self._big_endian = big_endian

    @property
    def extensions(self) -> tuple[str, ...]:
        """Supported file extensions."""
        return ("mp3",)

    @property
    def decoder(self) -> IDecoder:
        if self._decoder is None:
            from audioline.codecs.pydub_decoder import PydubDecoder
            self._decoder = PydubDecoder("mp3")
        return self._decoder

    def open(self, path: str) -> DecodedFormatSource:
        """
        Decode an MP3 file and re-frame it as canonical PCM.

        The canonical format is 16-bit signed, with the channel count and
        sample rate of the decoded stream. Duration comes from the
        decoder's metadata; 0 when it has none.

        Args:
            path: Path to MP3 file.

        Returns:
            DecodedFormatSource positioned at the first frame.

        Raises:
            UnsupportedFormatError: If the file cannot be decoded.
        """
        decoded = self.decoder.decode(path, sample_width=CANONICAL_SAMPLE_WIDTH)
        base = decoded.format
        if base.bits_per_sample != CANONICAL_SAMPLE_WIDTH * 8 or not base.signed:
            raise UnsupportedFormatError(
                f"Decoder produced {base}, expected 16-bit signed PCM"
            )

        audio_format = AudioFormat.canonical_pcm(
            base.sample_rate, base.channels, big_endian=self._big_endian
        )
        stream = decoded.stream
        if base.big_endian != audio_format.big_endian:
            stream = io.BytesIO(swap_byte_order(stream.read(), CANONICAL_SAMPLE_WIDTH))
            decoded.stream.close()

        duration_micros = decoded.duration_micros
        if duration_micros is None:
            logger.warning(f"No duration metadata for {path}, reporting 0 (unknown)")
            duration_micros = 0

        logger.info(
            f"Loaded MP3: {audio_format.channels}ch, {audio_format.sample_rate:g}Hz, "
            f"{duration_micros / 1_000_000:.2f}s"
        )
        return DecodedFormatSource(
            path=path,
            audio_format=audio_format,
            stream=stream,
            duration_micros=duration_micros,
            base_format=decoded.base_format or base,
        )


# Format instance for registration
mp3_format = Mp3Format()
