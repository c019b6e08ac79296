"""PortAudio backend implementation using sounddevice."""

import itertools
from typing import Optional
import sounddevice as sd
from audioline.backends.lines import BufferedTargetLine, StreamSourceLine
from audioline.core.exceptions import LineUnavailableError
from audioline.core.interfaces import IAudioBackend, ILine
from audioline.core.models import AudioDevice, AudioFormat, LineDirection, LineInfo
from audioline.utils.log import get_logger
from audioline.utils.pcm import swap_byte_order

logger = get_logger(__name__)

PROBE_SAMPLE_RATES = (8000.0, 16000.0, 22050.0, 44100.0, 48000.0, 96000.0)
PROBE_SAMPLE_SIZES = (8, 16, 24, 32)
PROBE_MAX_CHANNELS = 2


def to_dtype(audio_format: AudioFormat) -> str:
    """
    Map an AudioFormat to a sounddevice raw dtype.

    PortAudio only takes native (little-endian) samples; big-endian formats
    are byte-swapped by the lines.

    Raises:
        LineUnavailableError: If no raw dtype matches.
    """
    bits = audio_format.bits_per_sample
    if bits == 8:
        return "int8" if audio_format.signed else "uint8"
    if not audio_format.signed:
        raise LineUnavailableError(f"Unsigned {bits}-bit samples are not supported: {audio_format}")
    dtypes = {16: "int16", 24: "int24", 32: "int32"}
    if bits not in dtypes:
        raise LineUnavailableError(f"Unsupported sample size: {audio_format}")
    return dtypes[bits]


def _check_settings(
    direction: LineDirection, device_index: Optional[int], audio_format: AudioFormat
) -> None:
    """Raise LineUnavailableError unless PortAudio accepts the settings."""
    check = sd.check_output_settings if direction == LineDirection.SOURCE else sd.check_input_settings
    try:
        check(
            device=device_index,
            channels=audio_format.channels,
            dtype=to_dtype(audio_format),
            samplerate=audio_format.sample_rate,
        )
    except (sd.PortAudioError, ValueError) as e:
        raise LineUnavailableError(
            f"The audio line for {'playing' if direction == LineDirection.SOURCE else 'recording'} "
            f"is unavailable ({audio_format})"
        ) from e


class SoundDeviceSourceLine(StreamSourceLine):
    """Playback line backed by sd.RawOutputStream."""

    def __init__(self, name: str, device_index: Optional[int]):
        super().__init__(name)
        self._device_index = device_index
        self._sd_stream: Optional[sd.RawOutputStream] = None

    @property
    def buffer_size(self) -> int:
        if self._sd_stream is None:
            return 0
        frames = max(1, int(self._sd_stream.latency * self._format.sample_rate))
        return frames * self._format.frame_size

    def _open_impl(self, audio_format: AudioFormat) -> None:
        try:
            self._sd_stream = sd.RawOutputStream(
                samplerate=audio_format.sample_rate,
                channels=audio_format.channels,
                dtype=to_dtype(audio_format),
                device=self._device_index,
                callback=self._callback,
                finished_callback=self._on_finished,
            )
        except (sd.PortAudioError, ValueError) as e:
            logger.error(f"Failed to open {self.name}: {e}")
            raise LineUnavailableError("The audio line for playing is unavailable") from e

    def _callback(self, outdata, frames, time, status) -> None:
        if status:
            logger.warning(f"{self.name}: output stream status: {status}")
        size = len(outdata)
        data = self._read_frames(size)
        if self._format.big_endian:
            data = swap_byte_order(data, self._format.bytes_per_sample)
        outdata[: len(data)] = data
        if len(data) < size:
            silence = b"\x80" if not self._format.signed else b"\x00"
            outdata[len(data):] = silence * (size - len(data))
            raise sd.CallbackStop

    def _on_finished(self) -> None:
        # Runs once the stream is inactive: buffers played out, or stop()
        self._mark_stopped()

    def _start_impl(self) -> None:
        try:
            self._sd_stream.start()
        except sd.PortAudioError as e:
            raise LineUnavailableError(f"Could not start {self.name}") from e

    def _stop_impl(self) -> None:
        if self._sd_stream is not None and self._sd_stream.active:
            self._sd_stream.stop()

    def _close_impl(self) -> None:
        if self._sd_stream is not None:
            self._sd_stream.close()
            self._sd_stream = None


class SoundDeviceTargetLine(BufferedTargetLine):
    """Capture line backed by sd.RawInputStream feeding the line buffer."""

    def __init__(self, name: str, device_index: Optional[int], buffer_seconds: float = 0.5):
        super().__init__(name, buffer_seconds)
        self._device_index = device_index
        self._sd_stream: Optional[sd.RawInputStream] = None

    def _open_impl(self, audio_format: AudioFormat) -> None:
        try:
            self._sd_stream = sd.RawInputStream(
                samplerate=audio_format.sample_rate,
                channels=audio_format.channels,
                dtype=to_dtype(audio_format),
                device=self._device_index,
                callback=self._callback,
            )
        except (sd.PortAudioError, ValueError) as e:
            logger.error(f"Failed to open {self.name}: {e}")
            raise LineUnavailableError("The audio line for recording is unavailable") from e

    def _callback(self, indata, frames, time, status) -> None:
        if status:
            logger.warning(f"{self.name}: input stream status: {status}")
        data = bytes(indata)
        if self._format.big_endian:
            data = swap_byte_order(data, self._format.bytes_per_sample)
        self._push(data)

    def _start_impl(self) -> None:
        try:
            self._sd_stream.start()
        except sd.PortAudioError as e:
            raise LineUnavailableError(f"Could not start {self.name}") from e

    def _stop_impl(self) -> None:
        # Pa_StopStream returns after pending callbacks have delivered their buffers
        if self._sd_stream is not None and self._sd_stream.active:
            self._sd_stream.stop()

    def _close_impl(self) -> None:
        if self._sd_stream is not None:
            self._sd_stream.close()
            self._sd_stream = None


class SoundDeviceBackend(IAudioBackend):
    """PortAudio backend. Device order follows sd.query_devices()."""

    def __init__(self, line_buffer_seconds: float = 0.5):
        """
        Initialize backend.

        Args:
            line_buffer_seconds: Capture line buffer size in seconds.
        """
        self._line_buffer_seconds = line_buffer_seconds
        self._next_line_id = 0

    def query_devices(self) -> list[AudioDevice]:
        """Discover devices and check the formats each line accepts."""
        logger.info("Discovering audio devices...")
        try:
            devices = sd.query_devices()
            host_apis = sd.query_hostapis()
        except sd.PortAudioError as e:
            logger.error(f"Device enumeration failed: {e}")
            raise LineUnavailableError("Audio device enumeration failed") from e

        result = []
        for index, device in enumerate(devices):
            source_lines = ()
            target_lines = ()
            if device["max_output_channels"] > 0:
                source_lines = (self._describe_line(index, LineDirection.SOURCE, device),)
            if device["max_input_channels"] > 0:
                target_lines = (self._describe_line(index, LineDirection.TARGET, device),)
            host_api = device["hostapi"]
            result.append(
                AudioDevice(
                    index=index,
                    name=device["name"],
                    source_lines=source_lines,
                    target_lines=target_lines,
                    host_api=host_apis[host_api]["name"] if host_api < len(host_apis) else "",
                    default_sample_rate=device["default_samplerate"],
                )
            )
        logger.info(f"Found {len(result)} audio device(s).")
        return result

    def _describe_line(self, index: int, direction: LineDirection, device) -> LineInfo:
        key = "max_output_channels" if direction == LineDirection.SOURCE else "max_input_channels"
        max_channels = device[key]
        rates = list(PROBE_SAMPLE_RATES)
        if device["default_samplerate"] and device["default_samplerate"] not in rates:
            rates.append(float(device["default_samplerate"]))

        formats = []
        for rate, bits, channels in itertools.product(
            rates, PROBE_SAMPLE_SIZES, range(1, min(max_channels, PROBE_MAX_CHANNELS) + 1)
        ):
            native = AudioFormat(sample_rate=rate, bits_per_sample=bits, channels=channels)
            try:
                _check_settings(direction, index, native)
            except LineUnavailableError:
                continue
            formats.append(native)
            if bits > 8:
                formats.append(native.with_byte_order(True))
            else:
                formats.append(AudioFormat(rate, bits, channels, signed=False))
        return LineInfo(direction=direction, formats=tuple(formats), max_channels=max_channels)

    def default_device_index(self, direction: LineDirection) -> Optional[int]:
        """Index of PortAudio's default output (SOURCE) or input (TARGET) device."""
        kind = "output" if direction == LineDirection.SOURCE else "input"
        try:
            info = sd.query_devices(kind=kind)
        except (sd.PortAudioError, ValueError) as e:
            logger.debug(f"No default {kind} device: {e}")
            return None
        return info.get("index")

    def is_line_supported(self, direction: LineDirection, audio_format: AudioFormat) -> bool:
        """Check the default line; DeviceRegistry also searches the other devices."""
        try:
            _check_settings(direction, None, audio_format)
        except LineUnavailableError as e:
            logger.debug(f"Format not supported on default {direction.value} line: {e.__cause__}")
            return False
        return True

    def get_line(
        self,
        device: Optional[AudioDevice],
        direction: LineDirection,
        audio_format: AudioFormat,
    ) -> ILine:
        """Validate the settings and create an unopened line."""
        device_index = None if device is None else device.index
        _check_settings(direction, device_index, audio_format)

        name = f"sd{'-default' if device_index is None else device_index}-{direction.value}-{self._next_line_id}"
        self._next_line_id += 1
        if direction == LineDirection.SOURCE:
            return SoundDeviceSourceLine(name, device_index)
        return SoundDeviceTargetLine(name, device_index, self._line_buffer_seconds)
