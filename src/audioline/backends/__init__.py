"""Audio backends.

SoundDeviceBackend is imported lazily by AudioEngine so that importing
audioline does not require PortAudio.
"""

from audioline.backends.null_backend import NullBackend

__all__ = ["NullBackend"]
