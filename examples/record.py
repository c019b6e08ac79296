"""Example: Record from a mixer into a WAV file."""

import sys

from audioline import AudioEngine, AudioError, InterruptedWaitError

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python record.py <output.wav> [seconds] [mixer_number]")
        sys.exit(1)

    output_path = sys.argv[1]
    seconds = float(sys.argv[2]) if len(sys.argv) > 2 else 5.0
    mixer = int(sys.argv[3]) if len(sys.argv) > 3 else -1

    with AudioEngine() as engine:
        print(f"Recording {seconds:.1f} seconds (Ctrl+C to stop early)...")
        try:
            data = engine.record_audio(
                int(seconds * 1_000_000), device_index=mixer, output_path=output_path
            )
            print(f"Captured {len(data)} bytes of {engine.config.record_format}")
            print(f"Saved to {output_path}")
        except InterruptedWaitError:
            print("\nInterrupted, nothing saved")
        except AudioError as e:
            print(f"Error ({e.kind.value}): {e}")
            sys.exit(1)
