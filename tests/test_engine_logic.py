"""Tests for engine logic (using NullBackend)."""

import io
import pytest
from audioline.api.engine import AudioEngine
from audioline.api.result import AudioResult
from audioline.backends.null_backend import NullBackend
from audioline.core.exceptions import (
    EngineNotStartedError,
    ErrorKind,
    InvalidMixerIndexError,
    UnsupportedFormatError,
)
from audioline.core.models import DEFAULT_RECORD_FORMAT, AudioConfig, AudioFormat, DecodedStream
from audioline.formats.container import from_container


class SilentDecoder:
    """Decoder producing 0.1 s of stereo silence."""

    def decode(self, path, sample_width=None):
        return DecodedStream(
            format=AudioFormat(8000.0, 16, 2),
            stream=io.BytesIO(b"\x00" * 3200),
            duration_micros=100_000,
        )


@pytest.fixture
def engine(fast_config):
    backend = NullBackend(device_count=3)
    with AudioEngine(fast_config, backend=backend) as engine:
        yield engine


def test_engine_start_shutdown():
    """Test engine start and shutdown."""
    engine = AudioEngine(backend=NullBackend())

    engine.start()
    assert engine.is_started

    engine.shutdown()
    assert not engine.is_started
    engine.shutdown()


def test_engine_context_manager():
    """Test engine as context manager."""
    with AudioEngine(backend=NullBackend()) as engine:
        assert engine.is_started
    assert not engine.is_started


def test_play_before_start(make_wav):
    """Test that play raises error if engine not started."""
    engine = AudioEngine(backend=NullBackend())

    with pytest.raises(EngineNotStartedError):
        engine.play_audio(make_wav())
    with pytest.raises(EngineNotStartedError):
        engine.record_audio(100_000)


def test_list_devices(engine):
    """Devices expose index, name and supported formats."""
    devices = engine.list_devices()

    assert [d.index for d in devices] == [0, 1, 2]
    assert all(DEFAULT_RECORD_FORMAT in d.supported_formats for d in devices)
    assert "Mixer Number: 2" in engine.describe_devices()


def test_play_wav(engine, make_wav):
    """A WAV plays to completion and leaves no open lines."""
    path = make_wav(sample_rate=8000, channels=1, num_samples=800)

    engine.play_audio(path, device_index=1)

    assert len(engine.backend.lines) == 1
    assert engine.backend.lines[0].close_count == 1
    assert engine.backend.open_lines == []


def test_play_ogg_touches_no_device(engine, tmp_path):
    """Unsupported files fail before any device interaction."""
    path = tmp_path / "clip.ogg"
    path.write_bytes(b"OggS" + b"\x00" * 64)

    with pytest.raises(UnsupportedFormatError):
        engine.play_audio(str(path))
    assert engine.backend.query_count == 0
    assert engine.backend.lines == []


def test_play_invalid_mixer(engine, make_wav):
    """deviceIndex 5 with 3 devices fails and opens no line."""
    with pytest.raises(InvalidMixerIndexError):
        engine.play_audio(make_wav(), device_index=5)
    assert engine.backend.lines == []


def test_play_mp3_with_decoder(fast_config, tmp_path):
    """Compressed files go through the engine's decoder."""
    path = tmp_path / "clip.mp3"
    path.write_bytes(b"\xff\xfb" + b"\x00" * 64)
    backend = NullBackend()

    with AudioEngine(fast_config, backend=backend, decoder=SilentDecoder()) as engine:
        source = engine.load(path)
        assert source.format == AudioFormat.canonical_pcm(8000.0, 2)
        source.close()
        engine.play_audio(path)

    assert bytes(backend.lines[0].played) == b"\x00" * 3200


def test_record_default_duration(tmp_path):
    """Without a duration the configured default is used."""
    config = AudioConfig(default_record_duration_micros=200_000, wait_poll_interval=0.01)
    with AudioEngine(config, backend=NullBackend()) as engine:
        data = engine.record_audio()

    assert len(data) >= 9600 * 2


def test_record_to_wav_file(engine, tmp_path):
    """output_path writes the recording as a canonical container."""
    path = tmp_path / "capture.wav"

    data = engine.record_audio(100_000, output_path=path)

    fmt, payload = from_container(path.read_bytes(), big_endian=True)
    assert fmt == DEFAULT_RECORD_FORMAT
    assert payload == data


def test_record_to_non_wav_file(engine, tmp_path):
    with pytest.raises(UnsupportedFormatError):
        engine.record_audio(50_000, output_path=tmp_path / "capture.flac")


def test_shutdown_blocks_new_sessions(engine, make_wav):
    engine.shutdown()

    with pytest.raises(EngineNotStartedError):
        engine.play_audio(make_wav())


def test_audio_result_capture(engine, make_wav):
    """Errors become failure results; successes carry the return value."""
    ok = AudioResult.capture(engine.record_audio, 50_000)
    assert ok.ok
    assert len(ok.data) >= 4800

    failed = AudioResult.capture(engine.play_audio, make_wav(), device_index=5)
    assert not failed.ok
    assert failed.kind == ErrorKind.INVALID_MIXER_INDEX
    assert "Invalid mixer number" in failed.message


def test_audio_result_does_not_swallow_other_errors():
    def boom():
        raise KeyError("not an audio error")

    with pytest.raises(KeyError):
        AudioResult.capture(boom)
