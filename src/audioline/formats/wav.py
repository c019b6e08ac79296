"""RIFF WAV container handler (direct-format path)."""

import os
from typing import BinaryIO
from audioline.api.source import DirectFormatSource
from audioline.core.exceptions import (
    InvalidInputError,
    UnrecognizedContainerError,
    UnsupportedFormatError,
)
from audioline.core.interfaces import IAudioFormat
from audioline.formats.container import parse_header
from audioline.utils.log import get_logger
from audioline.utils.pcm import frames_to_micros

logger = get_logger(__name__)


class ChunkReader:
    """Read-only view of the data chunk of an open file."""

    def __init__(self, f: BinaryIO, offset: int, size: int):
        self._f = f
        self._offset = offset
        self._size = size
        self._pos = 0
        self._f.seek(offset)

    def read(self, size: int = -1) -> bytes:
        remaining = self._size - self._pos
        if size is None or size < 0 or size > remaining:
            size = remaining
        if size <= 0:
            return b""
        data = self._f.read(size)
        self._pos += len(data)
        return data

    def seek(self, pos: int) -> int:
        self._pos = max(0, min(pos, self._size))
        self._f.seek(self._offset + self._pos)
        return self._pos

    def tell(self) -> int:
        return self._pos

    @property
    def closed(self) -> bool:
        return self._f.closed

    def close(self) -> None:
        self._f.close()


class WavFormat(IAudioFormat):
    """WAV container handler implementing IAudioFormat."""

    @property
    def extensions(self) -> tuple[str, ...]:
        """Supported file extensions."""
        return ("wav",)

    def open(self, path: str) -> DirectFormatSource:
        """
        Open a WAV file for playback.

        Supports:
        - PCM format (fmt=1, or WAVE_FORMAT_EXTENSIBLE with a PCM sub-format)
        - 8, 16, 24 and 32-bit samples
        - Any channel count and sample rate

        Args:
            path: Path to WAV file.

        Returns:
            DirectFormatSource positioned at the first frame.

        Raises:
            UnsupportedFormatError: If the file is not a supported WAV.
            InvalidInputError: If the file cannot be read.
        """
        try:
            f = open(path, "rb")
        except OSError as e:
            logger.info(f"Cannot open audio file {path}: {e}")
            raise InvalidInputError("Cannot open audio file") from e

        try:
            header = parse_header(f)
            available = os.fstat(f.fileno()).st_size - header.data_offset
        except UnrecognizedContainerError as e:
            f.close()
            logger.info(f"Unsupported audio file {path}: {e}")
            raise UnsupportedFormatError(f"Unsupported audio file: {e.message}") from e
        except UnsupportedFormatError:
            f.close()
            raise
        except OSError as e:
            f.close()
            raise InvalidInputError("Cannot read audio file") from e

        audio_format = header.format
        data_size = min(header.data_size, max(0, available))
        frame_count = data_size // audio_format.frame_size
        duration_micros = frames_to_micros(frame_count, audio_format.frame_rate)

        logger.info(
            f"Loaded WAV: {audio_format.channels}ch, {audio_format.sample_rate:g}Hz, "
            f"{audio_format.bits_per_sample}bit, {duration_micros / 1_000_000:.2f}s"
        )

        return DirectFormatSource(
            path=path,
            audio_format=audio_format,
            stream=ChunkReader(f, header.data_offset, frame_count * audio_format.frame_size),
            duration_micros=duration_micros,
            frame_count=frame_count,
        )


# Format instance for registration
wav_format = WavFormat()
