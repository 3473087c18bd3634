#!/usr/bin/env python3
"""Launch the LogiSafe API with uvicorn, honouring the PORT and LOGISAFE_* environment variables."""

import os
import subprocess
import sys

DEFAULT_PORT = 8000


def resolve_port() -> int:
    raw = os.environ.get("PORT", str(DEFAULT_PORT))
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: invalid PORT value '{raw}', using {DEFAULT_PORT}", file=sys.stderr)
        return DEFAULT_PORT


def main() -> int:
    port = resolve_port()
    # Fail fast on configuration errors before handing over to uvicorn
    try:
        import logisafe.main  # noqa: F401
    except Exception as exc:
        print(f"Failed to import logisafe.main ({type(exc).__name__}): {exc}", file=sys.stderr)
        return 1

    # One worker: the risk feed and open workflows are held in process memory
    cmd = [
        sys.executable, "-m", "uvicorn", "logisafe.main:app",
        "--host", "0.0.0.0",
        "--port", str(port),
        "--proxy-headers",
        "--forwarded-allow-ips", "*",
    ]
    print(f"Starting LogiSafe on port {port}...", file=sys.stderr)
    try:
        result = subprocess.call(cmd)
    except KeyboardInterrupt:
        return 0
    if result != 0:
        print(f"Uvicorn exited with code {result}", file=sys.stderr)
    return result


if __name__ == "__main__":
    sys.exit(main())
