#!/usr/bin/env python3
"""
Container startup script.

1. Runs migrations + seed (release.py)
2. Replaces this process with gunicorn serving app.wsgi:app

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _port() -> str:
    port = os.environ.get("PORT", "").strip()
    if not port:
        print("WARNING: PORT not set, using default 8080", flush=True)
        return "8080"
    try:
        if not 1 <= int(port) <= 65535:
            raise ValueError("Port out of range")
    except ValueError:
        print(f"ERROR: Invalid PORT value '{port}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)
    return port


def main() -> None:
    port = _port()

    print("=== Running release phase ===", flush=True)
    from scripts.release import run_release

    try:
        run_release()
    except Exception as e:
        print(f"Release failed: {e}", flush=True)
        sys.exit(1)

    workers = os.environ.get("WEB_CONCURRENCY", "2").strip() or "2"
    print(f"=== Starting gunicorn on 0.0.0.0:{port} ({workers} workers) ===", flush=True)

    # gunicorn becomes PID 1 and receives signals directly
    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", workers,
            "--timeout", "60",
            "--preload",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
