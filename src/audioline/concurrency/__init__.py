"""Threading primitives used by playback and recording sessions."""

from audioline.concurrency.completion import CompletionSignal
from audioline.concurrency.worker import SessionWorker

__all__ = ["CompletionSignal", "SessionWorker"]
