"""Canonical RIFF/WAVE container framing for raw PCM."""

import io
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union
from audioline.core.exceptions import (
    AudioError,
    UnrecognizedContainerError,
    UnsupportedFormatError,
)
from audioline.core.models import AudioFormat
from audioline.utils.log import get_logger

logger = get_logger(__name__)

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_EXTENSIBLE = 0xFFFE
CANONICAL_HEADER_SIZE = 44
SUPPORTED_SAMPLE_SIZES = (8, 16, 24, 32)


@dataclass(frozen=True)
class WavHeader:
    """Parsed RIFF/WAVE header."""

    format: AudioFormat
    data_offset: int
    """Offset of the first payload byte."""

    data_size: int
    """Payload size declared by the data chunk."""

    @property
    def frame_count(self) -> int:
        return self.data_size // self.format.frame_size


def parse_header(f: BinaryIO, big_endian: bool = False) -> WavHeader:
    """
    Parse a RIFF/WAVE header, leaving f positioned at the first payload byte.

    Args:
        f: Binary stream positioned at the start of the container.
        big_endian: Byte order to assume for the payload samples (the
            header itself does not record one).

    Returns:
        Parsed header.

    Raises:
        UnrecognizedContainerError: If f does not hold a RIFF/WAVE structure.
        UnsupportedFormatError: If the container holds a non-PCM encoding.
    """
    riff = f.read(12)
    if len(riff) < 12 or riff[0:4] != b"RIFF" or riff[8:12] != b"WAVE":
        raise UnrecognizedContainerError("Not a RIFF/WAVE container")

    fmt_data = None
    while True:
        chunk_header = f.read(8)
        if len(chunk_header) < 8:
            break
        chunk_id = chunk_header[0:4]
        chunk_size = struct.unpack("<I", chunk_header[4:8])[0]

        if chunk_id == b"fmt ":
            fmt_data = f.read(chunk_size)
            if len(fmt_data) < chunk_size:
                raise UnrecognizedContainerError("Truncated fmt chunk")
            if chunk_size & 1:
                f.seek(1, io.SEEK_CUR)
        elif chunk_id == b"data":
            if fmt_data is None:
                raise UnrecognizedContainerError("data chunk precedes fmt chunk")
            audio_format = _parse_fmt(fmt_data, big_endian)
            return WavHeader(format=audio_format, data_offset=f.tell(), data_size=chunk_size)
        else:
            # Skip unknown chunks (word aligned)
            f.seek(chunk_size + (chunk_size & 1), io.SEEK_CUR)

    if fmt_data is None:
        raise UnrecognizedContainerError("Missing fmt chunk")
    raise UnrecognizedContainerError("Missing data chunk")


def _parse_fmt(fmt_data: bytes, big_endian: bool) -> AudioFormat:
    # audio_format(2), num_channels(2), sample_rate(4),
    # byte_rate(4), block_align(2), bits_per_sample(2)
    if len(fmt_data) < 16:
        raise UnrecognizedContainerError("Invalid fmt chunk size")

    format_tag, channels, sample_rate, _byte_rate, _block_align, bits = struct.unpack(
        "<HHIIHH", fmt_data[0:16]
    )

    if format_tag == WAVE_FORMAT_EXTENSIBLE:
        # cbSize(2), valid_bits(2), channel_mask(4), sub_format GUID(16)
        if len(fmt_data) < 40:
            raise UnrecognizedContainerError("Truncated WAVE_FORMAT_EXTENSIBLE descriptor")
        format_tag = struct.unpack("<H", fmt_data[24:26])[0]

    if format_tag != WAVE_FORMAT_PCM:
        raise UnsupportedFormatError(
            f"Unsupported audio format: {format_tag} (only PCM=1 is supported)"
        )
    if bits not in SUPPORTED_SAMPLE_SIZES:
        raise UnsupportedFormatError(
            f"Unsupported bits per sample: {bits} (supported: {SUPPORTED_SAMPLE_SIZES})"
        )
    if channels == 0 or sample_rate == 0:
        raise UnrecognizedContainerError("fmt chunk declares zero channels or sample rate")

    return AudioFormat(
        sample_rate=float(sample_rate),
        bits_per_sample=bits,
        channels=channels,
        signed=bits > 8,
        big_endian=big_endian,
    )


def build_header(data_size: int, audio_format: AudioFormat) -> bytes:
    """
    Build the 44-byte canonical header for data_size payload bytes.

    Every header field is little-endian whatever the payload byte order.
    """
    sample_rate = int(audio_format.sample_rate)
    block_align = audio_format.frame_size
    return b"".join(
        (
            b"RIFF",
            struct.pack("<I", data_size + 36),
            b"WAVE",
            b"fmt ",
            struct.pack("<I", 16),
            struct.pack("<H", WAVE_FORMAT_PCM),
            struct.pack("<H", audio_format.channels),
            struct.pack("<I", sample_rate),
            struct.pack("<I", sample_rate * block_align),
            struct.pack("<H", block_align),
            struct.pack("<H", audio_format.bits_per_sample),
            b"data",
            struct.pack("<I", data_size),
        )
    )


def has_container_header(data: bytes) -> bool:
    """Best-effort check for an existing RIFF/WAVE header."""
    try:
        parse_header(io.BytesIO(data))
    except AudioError:
        return False
    return True


def to_canonical_container(pcm: bytes, audio_format: AudioFormat) -> bytes:
    """
    Frame raw PCM in a canonical WAV container.

    Bytes that already carry a container header are returned unchanged.

    Args:
        pcm: Raw PCM bytes (or an already framed container).
        audio_format: Format of the PCM payload.

    Returns:
        Self-describing container bytes.
    """
    data = bytes(pcm)
    if has_container_header(data):
        logger.debug("Data already carries a container header, passing through")
        return data
    return build_header(len(data), audio_format) + data


def from_container(data: bytes, big_endian: bool = False) -> tuple[AudioFormat, bytes]:
    """
    Recover the format and PCM payload of a container.

    The payload is returned exactly as the data chunk declares it, partial
    trailing frame included. The header records neither byte order nor
    signedness: the byte order is taken from big_endian, and signedness
    follows the WAV convention (8-bit unsigned, wider signed), so an 8-bit
    signed format comes back as unsigned.

    Args:
        data: Container bytes.
        big_endian: Byte order of the payload samples.

    Returns:
        (format, payload) tuple.

    Raises:
        UnrecognizedContainerError: If data is not a recognized PCM container.
    """
    try:
        header = parse_header(io.BytesIO(data), big_endian=big_endian)
    except UnsupportedFormatError as e:
        raise UnrecognizedContainerError(str(e)) from e
    end = header.data_offset + header.data_size
    return header.format, bytes(data[header.data_offset:end])


def write_container_file(
    path: Union[str, Path], pcm: bytes, audio_format: AudioFormat
) -> int:
    """
    Frame PCM and write it to a .wav file.

    Args:
        path: Destination path; must end in .wav.
        pcm: Raw PCM bytes.
        audio_format: Format of the PCM payload.

    Returns:
        Number of bytes written.

    Raises:
        UnsupportedFormatError: If the destination is not a .wav file.
    """
    path_obj = Path(path)
    if path_obj.suffix != ".wav":
        raise UnsupportedFormatError(f"Unsupported encoding for {path_obj} (only .wav is written)")
    container = to_canonical_container(pcm, audio_format)
    path_obj.write_bytes(container)
    logger.info(f"WAV file written to {path_obj.resolve()} ({len(container) // 1000} kB)")
    return len(container)
