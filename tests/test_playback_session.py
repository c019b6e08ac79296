"""Tests for the playback session lifecycle (using NullBackend)."""

import io
import threading
import time
import pytest
from audioline.api.source import DirectFormatSource
from audioline.backends.null_backend import NullBackend, NullSourceLine
from audioline.core.devices import DeviceRegistry
from audioline.core.exceptions import (
    InterruptedWaitError,
    InvalidMixerIndexError,
    LineUnavailableError,
    PlaybackTimeoutError,
)
from audioline.core.models import AudioFormat, LineDirection, PlaybackState
from audioline.core.registry import LineKey, LineLeaseRegistry
from audioline.formats.wav import wav_format
from audioline.services.playback import PlaybackSession


class TracingSourceLine(NullSourceLine):
    """Null line that records the order of listener registration and start."""

    def __init__(self, name, trace, fail_start=False):
        super().__init__(name)
        self.trace = trace
        self.fail_start = fail_start

    def add_listener(self, listener):
        self.trace.append("add_listener")
        super().add_listener(listener)

    def _start_impl(self):
        self.trace.append("start")
        if self.fail_start:
            raise OSError("device disappeared")
        super()._start_impl()


class TracingBackend(NullBackend):
    def __init__(self, fail_start=False):
        super().__init__()
        self.trace = []
        self.fail_start = fail_start

    def get_line(self, device, direction, audio_format):
        line = TracingSourceLine(f"trace-{len(self.lines)}", self.trace, self.fail_start)
        self.lines.append(line)
        return line


def make_session(backend, source, config, leases=None, **kwargs):
    return PlaybackSession(
        DeviceRegistry(backend), leases or LineLeaseRegistry(), source, config=config, **kwargs
    )


@pytest.fixture
def short_wav(make_wav):
    # 0.2 s of 8 kHz mono 16-bit
    return make_wav(sample_rate=8000, channels=1, num_samples=1600)


def test_playback_completes(short_wav, fast_config):
    """The session plays every frame and closes the line once."""
    backend = NullBackend()
    leases = LineLeaseRegistry()

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config, leases)
        session.run()

    line = session.line
    assert session.state == PlaybackState.COMPLETED
    assert len(line.played) == 3200
    assert line.open_count == 1
    assert line.close_count == 1
    assert backend.open_lines == []
    assert leases.count() == 0


def test_listener_registered_before_start(short_wav, fast_config):
    """STOP cannot be missed: the listener is in place before the line starts."""
    backend = TracingBackend()

    with wav_format.open(short_wav) as source:
        make_session(backend, source, fast_config).run()

    assert backend.trace == ["add_listener", "start"]


def test_empty_source_completes(fast_config):
    """A source with no frames still completes through its STOP event."""
    fmt = AudioFormat(8000.0, 16, 1)
    source = DirectFormatSource("empty.wav", fmt, io.BytesIO(b""), 0, 0)
    backend = NullBackend()

    session = make_session(backend, source, fast_config)
    session.run()

    assert session.state == PlaybackState.COMPLETED
    assert backend.lines[0].close_count == 1


def test_watchdog_timeout_closes_line(short_wav, fast_config):
    """A line that never reports STOP times out and is still closed once."""
    backend = NullBackend(emit_stop_events=False)
    leases = LineLeaseRegistry()

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config, leases)
        # 0.2 s of audio plus 0.2 s grace
        assert session.watchdog_seconds() == pytest.approx(0.4)
        with pytest.raises(PlaybackTimeoutError):
            session.run()

    assert session.state == PlaybackState.FAILED
    assert backend.lines[0].close_count == 1
    assert not backend.lines[0].is_open
    assert leases.count() == 0


def test_unknown_duration_watchdog(fast_config):
    """Duration 0 falls back to the unknown-duration timeout."""
    fmt = AudioFormat(8000.0, 16, 1)
    source = DirectFormatSource("stream", fmt, io.BytesIO(b"\x00\x00" * 400), 0, 400)
    session = make_session(NullBackend(emit_stop_events=False), source, fast_config)

    assert session.watchdog_seconds() == fast_config.unknown_duration_timeout_seconds
    start = time.monotonic()
    with pytest.raises(PlaybackTimeoutError):
        session.run()
    assert time.monotonic() - start >= 0.45


def test_interrupt_wait(short_wav, fast_config):
    """interrupt() wakes the caller, which cleans up and raises."""
    backend = NullBackend(emit_stop_events=False)

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config)
        timer = threading.Timer(0.05, session.interrupt)
        timer.start()
        with pytest.raises(InterruptedWaitError):
            session.run()
        timer.join()

    assert session.state == PlaybackState.FAILED
    assert backend.lines[0].close_count == 1


def test_invalid_mixer_opens_nothing(short_wav, fast_config):
    """Index 5 with 3 devices fails before any line is created."""
    backend = NullBackend(device_count=3)
    leases = LineLeaseRegistry()

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config, leases, device_index=5)
        with pytest.raises(InvalidMixerIndexError):
            session.run()

    assert backend.lines == []
    assert leases.count() == 0


def test_line_in_use(short_wav, fast_config):
    """The default line and its device's explicit index share one lease."""
    backend = NullBackend()
    leases = LineLeaseRegistry()
    leases.acquire(LineKey(0, LineDirection.SOURCE), "other")

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config, leases, device_index=-1)
        with pytest.raises(LineUnavailableError):
            session.run()

    assert backend.lines == []
    assert leases.get(LineKey(0, LineDirection.SOURCE)).owner == "other"


def test_start_failure_wrapped(short_wav, fast_config):
    """A platform error starting the line surfaces as LineUnavailableError."""
    backend = TracingBackend(fail_start=True)

    with wav_format.open(short_wav) as source:
        session = make_session(backend, source, fast_config)
        with pytest.raises(LineUnavailableError) as exc_info:
            session.run()

    assert isinstance(exc_info.value.__cause__, OSError)
    assert "device disappeared" in str(exc_info.value)
    assert backend.lines[0].close_count == 1


def test_session_runs_once(short_wav, fast_config):
    """A finished session cannot be re-run."""
    with wav_format.open(short_wav) as source:
        session = make_session(NullBackend(), source, fast_config)
        session.run()
        with pytest.raises(RuntimeError):
            session.run()


def test_format_override_selects_line_only(make_wav, fast_config):
    """An override picks the line; the source still plays in its own format."""
    path = make_wav(sample_rate=44100, channels=2, num_samples=8820)
    override = AudioFormat(8000.0, 16, 1)
    backend = NullBackend()

    with wav_format.open(path) as source:
        session = make_session(backend, source, fast_config, audio_format=override)
        session.run()

    line = backend.lines[0]
    assert session.state == PlaybackState.COMPLETED
    assert session.line_format == override
    assert line.format == AudioFormat(44100.0, 16, 2)
    assert len(line.played) == 8820 * 4


def test_format_override_unsupported(short_wav, fast_config):
    """An override no line supports fails before anything is opened."""
    backend = NullBackend(formats=[AudioFormat(8000.0, 16, 1)])

    with wav_format.open(short_wav) as source:
        session = make_session(
            backend, source, fast_config, device_index=0, audio_format=AudioFormat(96000.0, 16, 2)
        )
        with pytest.raises(LineUnavailableError):
            session.run()

    assert backend.lines == []
