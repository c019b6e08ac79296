"""PCM byte helpers."""

MICROS_PER_SECOND = 1_000_000


def swap_byte_order(data: bytes, sample_width: int) -> bytes:
    """
    Reverse the byte order of every sample in a PCM buffer.

    Trailing bytes that do not form a whole sample are dropped.

    Args:
        data: PCM bytes.
        sample_width: Bytes per sample.

    Returns:
        PCM bytes in the opposite byte order.
    """
    if sample_width <= 1:
        return bytes(data)
    usable = len(data) - (len(data) % sample_width)
    src = bytes(data[:usable])
    out = bytearray(usable)
    for i in range(sample_width):
        out[i::sample_width] = src[sample_width - 1 - i::sample_width]
    return bytes(out)


def frames_to_micros(frame_count: int, frame_rate: float) -> int:
    """Duration of frame_count frames at frame_rate, rounded to microseconds."""
    if frame_rate <= 0:
        return 0
    return round(frame_count / frame_rate * MICROS_PER_SECOND)


def micros_to_seconds(micros: int) -> float:
    return micros / MICROS_PER_SECOND
