"""Tests for the recording session lifecycle (using NullBackend)."""

import threading
import time
import pytest
from audioline.backends.null_backend import NullBackend
from audioline.core.devices import DeviceRegistry
from audioline.core.exceptions import (
    InterruptedWaitError,
    InvalidInputError,
    InvalidMixerIndexError,
    LineUnavailableError,
    UnsupportedFormatError,
)
from audioline.core.models import (
    DEFAULT_RECORD_FORMAT,
    AudioConfig,
    AudioFormat,
    LineDirection,
    RecordingState,
)
from audioline.core.registry import LineKey, LineLeaseRegistry
from audioline.services.recording import RecordingSession


def make_session(backend, duration_micros, config, leases=None, **kwargs):
    return RecordingSession(
        DeviceRegistry(backend), leases or LineLeaseRegistry(), duration_micros, config=config, **kwargs
    )


def test_record_one_second_default_format(fast_config):
    """One second at 48 kHz 16-bit mono yields at least 96000 bytes."""
    backend = NullBackend()
    leases = LineLeaseRegistry()
    session = make_session(backend, 1_000_000, fast_config, leases)

    data = session.run()

    assert session.format == DEFAULT_RECORD_FORMAT
    assert len(data) >= 96_000
    assert len(data) % DEFAULT_RECORD_FORMAT.frame_size == 0
    assert session.state == RecordingState.COMPLETED
    assert backend.lines[0].close_count == 1
    assert leases.count() == 0


def test_chunk_is_fifth_of_line_buffer(fast_config):
    """The transfer chunk is the line buffer size over chunk_ratio."""
    backend = NullBackend(line_buffer_seconds=0.5)
    session = make_session(backend, 50_000, fast_config)

    session.run()

    # 0.5 s at 48 kHz, 2-byte frames
    assert backend.lines[0].buffer_size == 48_000
    assert session.chunk_size == 9_600


def test_record_explicit_format_and_device(fast_config):
    """Captured length covers the requested duration for any format."""
    fmt = AudioFormat(8000.0, 16, 2)
    backend = NullBackend(device_count=2, capture_fill=b"\x12\x34")
    session = make_session(backend, 200_000, fast_config, device_index=1, audio_format=fmt)

    data = session.run()

    assert len(data) >= 1600 * fmt.frame_size
    assert data[:8] == b"\x12\x34" * 4
    assert backend.lines[0].name.startswith("null1-target")


def test_unsupported_format_fails_fast(fast_config):
    """No line takes the format: fail before opening anything."""
    backend = NullBackend(formats=[AudioFormat(44100.0, 16, 2)])
    session = make_session(backend, 100_000, fast_config)

    with pytest.raises(UnsupportedFormatError):
        session.run()
    assert backend.lines == []


@pytest.mark.parametrize("duration", [0, -5, 1.5])
def test_invalid_duration(duration, fast_config):
    """Durations must be positive integers."""
    with pytest.raises(InvalidInputError):
        make_session(NullBackend(), duration, fast_config)


def test_max_duration_guard():
    """A configured maximum rejects longer recordings."""
    config = AudioConfig(max_record_duration_micros=1_000_000)

    with pytest.raises(InvalidInputError):
        make_session(NullBackend(), 1_000_001, config)
    make_session(NullBackend(), 1_000_000, config)


def test_invalid_mixer_index(fast_config):
    """Out-of-range mixer index opens no line and releases the lease."""
    backend = NullBackend(device_count=3)
    leases = LineLeaseRegistry()
    session = make_session(backend, 100_000, fast_config, leases, device_index=3)

    with pytest.raises(InvalidMixerIndexError):
        session.run()
    assert backend.lines == []
    assert leases.count() == 0


def test_line_in_use(fast_config):
    """The capture line cannot be shared between sessions."""
    leases = LineLeaseRegistry()
    leases.acquire(LineKey(0, LineDirection.TARGET), "other")
    session = make_session(NullBackend(), 100_000, fast_config, leases, device_index=0)

    with pytest.raises(LineUnavailableError):
        session.run()


def test_interrupt_stops_and_closes(fast_config):
    """An interrupted recording still stops, drains and closes the line."""
    backend = NullBackend()
    session = make_session(backend, 5_000_000, fast_config)
    timer = threading.Timer(0.1, session.interrupt)

    start = time.monotonic()
    timer.start()
    with pytest.raises(InterruptedWaitError):
        session.run()
    timer.join()

    assert time.monotonic() - start < 2.0
    assert session.state == RecordingState.FAILED
    line = backend.lines[0]
    assert line.close_count == 1
    assert not line.is_running


def test_concurrent_sessions_on_distinct_lines(fast_config):
    """Recordings on different mixers run side by side."""
    backend = NullBackend(device_count=2)
    registry = DeviceRegistry(backend)
    leases = LineLeaseRegistry()
    results = {}

    def record(index):
        session = RecordingSession(registry, leases, 200_000, device_index=index, config=fast_config)
        results[index] = session.run()

    threads = [threading.Thread(target=record, args=(i,)) for i in (0, 1)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)

    assert sorted(results) == [0, 1]
    assert all(len(data) >= 19_200 for data in results.values())
    assert leases.count() == 0


class NoDefaultFormatBackend(NullBackend):
    """Backend whose default line rejects every format while its mixers accept them."""

    def is_line_supported(self, direction, audio_format):
        return False


def test_format_only_on_explicit_mixer(fast_config):
    """A format the default line lacks is still recorded from a mixer that has it."""
    backend = NoDefaultFormatBackend(device_count=2)
    session = make_session(backend, 100_000, fast_config, device_index=1)

    data = session.run()

    assert len(data) >= 4800 * DEFAULT_RECORD_FORMAT.frame_size
    assert backend.lines[0].name.startswith("null1-target")


def test_default_line_lease_shared_with_its_mixer(fast_config):
    """Recording on the default line is refused while its device is held by index."""
    leases = LineLeaseRegistry()
    leases.acquire(LineKey(0, LineDirection.TARGET), "other")
    backend = NullBackend(device_count=2)

    with pytest.raises(LineUnavailableError):
        make_session(backend, 100_000, fast_config, leases).run()
    assert backend.lines == []

    # Mixer 1 is a different line
    make_session(backend, 50_000, fast_config, leases, device_index=1).run()
