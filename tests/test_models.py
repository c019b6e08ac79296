"""Tests for models, configuration and PCM helpers."""

import logging
import pytest
from audioline.core.exceptions import AudioError, ErrorKind, LineUnavailableError
from audioline.core.models import DEFAULT_RECORD_FORMAT, AudioConfig, AudioFormat
from audioline.utils.log import get_logger, set_log_level
from audioline.utils.pcm import frames_to_micros, swap_byte_order


def test_format_derived_values():
    fmt = AudioFormat(44100.0, 24, 2)

    assert fmt.frame_size == 6
    assert fmt.frame_rate == 44100.0
    assert fmt.bytes_per_second == 264_600


def test_format_structural_equality():
    """Formats compare by value and are hashable."""
    assert AudioFormat(48000.0, 16, 1, True, True) == DEFAULT_RECORD_FORMAT
    assert DEFAULT_RECORD_FORMAT.with_byte_order(False) != DEFAULT_RECORD_FORMAT
    assert len({AudioFormat(8000.0, 8, 1), AudioFormat(8000.0, 8, 1)}) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(sample_rate=0, bits_per_sample=16, channels=1),
        dict(sample_rate=8000, bits_per_sample=12, channels=1),
        dict(sample_rate=8000, bits_per_sample=16, channels=0),
    ],
)
def test_format_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        AudioFormat(**kwargs)


def test_config_defaults():
    config = AudioConfig()

    assert config.record_format == DEFAULT_RECORD_FORMAT
    assert config.default_record_duration_micros == 10_000_000
    assert config.chunk_ratio == 5
    assert config.max_record_duration_micros is None


def test_config_validation():
    with pytest.raises(ValueError):
        AudioConfig(chunk_ratio=0)
    with pytest.raises(ValueError):
        AudioConfig(max_record_duration_micros=0)


def test_swap_byte_order():
    assert swap_byte_order(b"\x01\x02\x03\x04", 2) == b"\x02\x01\x04\x03"
    assert swap_byte_order(b"\x01\x02\x03\x04\x05\x06\x07", 3) == b"\x03\x02\x01\x06\x05\x04"
    assert swap_byte_order(b"\x01\x02", 1) == b"\x01\x02"


def test_frames_to_micros():
    assert frames_to_micros(48000, 48000.0) == 1_000_000
    assert frames_to_micros(1, 44100.0) == 23
    assert frames_to_micros(10, 0) == 0


def test_error_message_and_cause():
    """Errors carry a kind, a default message and the platform cause."""
    assert AudioError().message
    try:
        raise LineUnavailableError("Could not open line") from OSError("device busy")
    except LineUnavailableError as e:
        assert e.kind == ErrorKind.LINE_UNAVAILABLE
        assert str(e) == "Could not open line: device busy"


def test_set_log_level():
    logger = get_logger("audioline.test")
    try:
        set_log_level("DEBUG")
        assert logger.level == logging.DEBUG
        assert get_logger("audioline.test.late").level == logging.DEBUG
    finally:
        set_log_level(logging.WARNING)
    assert logger.level == logging.WARNING
