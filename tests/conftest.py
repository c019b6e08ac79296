"""Shared fixtures: in-memory WAV files and a fast engine configuration."""

import io
import struct
import pytest
from audioline.core.models import AudioConfig


def create_test_wav(
    sample_rate: int = 44100,
    channels: int = 2,
    bits_per_sample: int = 16,
    num_samples: int = 1000,
    format_tag: int = 1,
    extra_chunk: bytes = b"",
    payload: bytes = None,
) -> bytes:
    """Create a test WAV file in memory."""
    block_align = (channels * bits_per_sample) // 8
    byte_rate = sample_rate * block_align
    if payload is None:
        payload = b"\x00" * (num_samples * block_align)
    data_size = len(payload)
    file_size = 36 + len(extra_chunk) + data_size

    wav = io.BytesIO()

    # RIFF header
    wav.write(b"RIFF")
    wav.write(struct.pack("<I", file_size))
    wav.write(b"WAVE")

    # fmt chunk
    wav.write(b"fmt ")
    wav.write(struct.pack("<I", 16))
    wav.write(struct.pack("<H", format_tag))
    wav.write(struct.pack("<H", channels))
    wav.write(struct.pack("<I", sample_rate))
    wav.write(struct.pack("<I", byte_rate))
    wav.write(struct.pack("<H", block_align))
    wav.write(struct.pack("<H", bits_per_sample))

    # Optional chunk between fmt and data (e.g. LIST)
    wav.write(extra_chunk)

    # data chunk
    wav.write(b"data")
    wav.write(struct.pack("<I", data_size))
    wav.write(payload)

    return wav.getvalue()


@pytest.fixture
def make_wav(tmp_path):
    """Factory writing a test WAV to tmp_path and returning its path."""

    def _make(name: str = "test.wav", **kwargs) -> str:
        path = tmp_path / name
        path.write_bytes(create_test_wav(**kwargs))
        return str(path)

    return _make


@pytest.fixture
def fast_config() -> AudioConfig:
    """Configuration with short polls and watchdog slack for tests."""
    return AudioConfig(
        wait_poll_interval=0.01,
        watchdog_grace_seconds=0.2,
        unknown_duration_timeout_seconds=0.5,
        worker_join_timeout=2.0,
    )
