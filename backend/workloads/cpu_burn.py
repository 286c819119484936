"""
CPU burn workload, executed as ``python -m workloads.cpu_burn <seconds>``.

Busy-loops for the requested number of seconds and prints a single JSON line
with the measured duration to stdout.
"""

import json
import random
import sys
import time


def burn_cpu(seconds: float) -> int:
    """Spin for ``seconds`` and return the measured duration in milliseconds."""
    start = time.monotonic()
    deadline = start + seconds
    while time.monotonic() < deadline:
        random.random() * random.random()
    return int((time.monotonic() - start) * 1000)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: python -m workloads.cpu_burn <seconds>", file=sys.stderr)
        return 2

    try:
        seconds = float(argv[0])
    except ValueError:
        print(f"invalid seconds value: {argv[0]!r}", file=sys.stderr)
        return 2
    if seconds < 0:
        print(f"seconds must be >= 0, got {argv[0]}", file=sys.stderr)
        return 2

    duration_ms = burn_cpu(seconds)
    print(json.dumps({"duration_ms": duration_ms}), flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
