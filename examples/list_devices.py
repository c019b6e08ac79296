"""Example: List mixers and the formats their lines accept."""

import sys

from audioline import AudioEngine

if __name__ == "__main__":
    verbose = "-v" in sys.argv[1:]

    with AudioEngine() as engine:
        if verbose:
            print(engine.describe_devices())
        else:
            for device in engine.list_devices():
                print(
                    f"{device.index}: {device.name} [{device.host_api}] "
                    f"- {len(device.supported_formats)} format(s)"
                )
