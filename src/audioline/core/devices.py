"""Device registry: mixer enumeration and line resolution."""

from typing import Optional
from audioline.core.exceptions import LineUnavailableError
from audioline.core.interfaces import IAudioBackend, ILine
from audioline.core.models import AudioDevice, AudioFormat, LineDirection, LineInfo
from audioline.core.registry import LineKey
from audioline.utils.log import get_logger
from audioline.utils.validate import DEFAULT_DEVICE_INDEX, validate_device_index

logger = get_logger(__name__)


class DeviceRegistry:
    """
    Registry of the audio devices (mixers) a backend exposes.

    Responsibilities:
    - Enumerate devices in platform order (the public mixer index)
    - Validate mixer indices
    - Resolve a line on a device for a format and direction

    Nothing is cached: every query re-enumerates through the backend.
    """

    def __init__(self, backend: IAudioBackend):
        """
        Initialize the registry.

        Args:
            backend: Audio backend implementation.
        """
        self._backend = backend

    @property
    def backend(self) -> IAudioBackend:
        return self._backend

    def list_devices(self) -> list[AudioDevice]:
        """
        Enumerate available devices.

        Returns:
            Devices ordered by platform enumeration order.
        """
        devices = list(self._backend.query_devices())
        logger.debug(f"Enumerated {len(devices)} audio device(s)")
        return devices

    def get_device(self, index: Optional[int]) -> Optional[AudioDevice]:
        """
        Look up a device by mixer index.

        Args:
            index: Mixer index, or None / -1 for the default line.

        Returns:
            The device, or None when the default line was requested.

        Raises:
            InvalidMixerIndexError: If the index is out of range.
        """
        devices = self.list_devices()
        index = validate_device_index(index, len(devices))
        if index is None:
            return None
        return devices[index]

    def is_line_supported(self, direction: LineDirection, audio_format: AudioFormat) -> bool:
        """
        Check whether any line on the system accepts the format.

        The default line is asked first; failing that, every enumerated
        device is searched, so a format only an explicit mixer supports
        still counts.
        """
        if self._backend.is_line_supported(direction, audio_format):
            return True
        return any(device.supports(direction, audio_format) for device in self.list_devices())

    def default_device_index(self, direction: LineDirection) -> Optional[int]:
        """Mixer index backing the default line, or None if the platform has none."""
        return self._backend.default_device_index(direction)

    def lease_key(self, device_index: Optional[int], direction: LineDirection) -> LineKey:
        """
        Lease key for a requested mixer index.

        None and -1 are resolved to the device behind the default line, so
        the default line and that device's explicit index share one lease.
        """
        if device_index is None or device_index == DEFAULT_DEVICE_INDEX:
            device_index = self.default_device_index(direction)
        return LineKey(device_index=device_index, direction=direction)

    def resolve_line(
        self,
        device_index: Optional[int],
        audio_format: AudioFormat,
        direction: LineDirection,
    ) -> ILine:
        """
        Resolve an unopened line.

        Args:
            device_index: Mixer index, or None / -1 for any capable line.
            audio_format: Format the line must accept.
            direction: SOURCE for playback, TARGET for capture.

        Returns:
            Line handle.

        Raises:
            InvalidMixerIndexError: If the index is out of range.
            LineUnavailableError: If no line on the device supports the format.
        """
        device = self.get_device(device_index)
        if device is not None and not device.supports(direction, audio_format):
            raise LineUnavailableError(
                f"Mixer {device.index} ({device.name}) has no {direction.value} line "
                f"supporting {audio_format}"
            )
        line = self._backend.get_line(device, direction, audio_format)
        target = "default line" if device is None else f"mixer {device.index} ({device.name})"
        logger.debug(f"Resolved {direction.value} line on {target} for {audio_format}")
        return line

    def describe_devices(self) -> str:
        """
        Render every mixer with its lines and their formats.

        Returns:
            Multi-line human-readable description.
        """
        lines = ["=======Mixer Information======="]
        for device in self.list_devices():
            lines.append(f"Mixer Number: {device.index} : {device.name}")
            lines.append("\tSupported output line audio formats:")
            lines.extend(_describe_lines(device.source_lines))
            lines.append("\tSupported input line audio formats:")
            lines.extend(_describe_lines(device.target_lines))
            lines.append("=====================")
        return "\n".join(lines)


def _describe_lines(line_infos: tuple[LineInfo, ...]) -> list[str]:
    out = []
    for info in line_infos:
        out.append(f"\t\t* {info.direction.value} line, up to {info.max_channels} channel(s)")
        if not info.formats:
            out.append("\t\t\tNo supported audio formats")
        for audio_format in info.formats:
            out.append(f"\t\t\t- {audio_format}")
    return out
