"""Services layer for audio session orchestration."""

from audioline.services.engine_lifecycle import EngineLifecycleService
from audioline.services.playback import PlaybackSession
from audioline.services.recording import RecordingSession

__all__ = ["EngineLifecycleService", "PlaybackSession", "RecordingSession"]
