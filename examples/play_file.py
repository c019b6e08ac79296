"""Example: Play a WAV or MP3 file on a mixer."""

import sys
from pathlib import Path

from audioline import AudioEngine, AudioError, InterruptedWaitError

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python play_file.py <path_to_audio_file> [mixer_number]")
        sys.exit(1)

    audio_path = sys.argv[1]
    if not Path(audio_path).exists():
        print(f"Error: File not found: {audio_path}")
        sys.exit(1)
    mixer = int(sys.argv[2]) if len(sys.argv) > 2 else -1

    # Create engine
    engine = AudioEngine()

    try:
        # Start engine
        engine.start()

        # Load file to show what will be played
        print(f"Loading {audio_path}...")
        with engine.load(audio_path) as source:
            print(f"Loaded: {source.format}, {source.duration:.2f} seconds")

        # Blocks until the line reports the end of playback
        print("Playing...")
        try:
            engine.play_audio(audio_path, device_index=mixer)
            print("Playback completed")
        except InterruptedWaitError:
            print("\nInterrupted, playback stopped")
        except AudioError as e:
            print(f"Error ({e.kind.value}): {e}")
            sys.exit(1)

    finally:
        # Shutdown engine
        engine.shutdown()
        print("Engine shut down")
