#!/usr/bin/env python3
"""
Dev mode runner for psakdin-search

Runs the HTTP/SSE server under uvicorn and restarts it whenever a Python
file under psakdin_search/ changes.

Usage:
  python dev.py                       # port 5002, data dir from env
  python dev.py --port 8080 --data-dir /tmp/psakdin
"""
import argparse
import os
import subprocess
import sys
import threading
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

PACKAGE_DIR = Path(__file__).parent / "psakdin_search"
DEBOUNCE_SECONDS = 0.3


class ReloadingServer(FileSystemEventHandler):
    """Owns the server subprocess; file events schedule a restart."""

    def __init__(self, port: int, env: dict[str, str]):
        self.port = port
        self.env = env
        self.process: subprocess.Popen | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            self._stop_process()
            self.process = subprocess.Popen(
                [sys.executable, "-m", "uvicorn", "psakdin_search.server_http:app",
                 "--host", "127.0.0.1", "--port", str(self.port)],
                env=self.env,
            )
            print(f"Server started on http://127.0.0.1:{self.port} (PID: {self.process.pid})")

    def _stop_process(self) -> None:
        if self.process and self.process.poll() is None:
            self.process.terminate()
            self.process.wait()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified", "moved"):
            return
        changed = getattr(event, "dest_path", "") or event.src_path
        if not str(changed).endswith(".py"):
            return

        # Editors write several events per save; restart once they settle
        if self._timer:
            self._timer.cancel()
        print(f"{changed} changed - restarting...")
        self._timer = threading.Timer(DEBOUNCE_SECONDS, self.start)
        self._timer.start()

    def stop(self) -> None:
        if self._timer:
            self._timer.cancel()
        with self._lock:
            self._stop_process()


def main():
    """Run dev server with auto-restart."""
    parser = argparse.ArgumentParser(description="psakdin-search dev mode (auto-restart)")
    parser.add_argument("--port", type=int, default=5002, help="Server port (default: 5002)")
    parser.add_argument("--data-dir", help="Data directory (sets PSAKDIN_DATA_DIR)")
    args = parser.parse_args()

    env = dict(os.environ)
    if args.data_dir:
        env["PSAKDIN_DATA_DIR"] = args.data_dir

    print("psakdin-search dev mode")
    print("Ctrl+C to stop\n")

    server = ReloadingServer(port=args.port, env=env)
    server.start()

    observer = Observer()
    observer.schedule(server, str(PACKAGE_DIR), recursive=True)
    observer.start()

    try:
        observer.join()
    except KeyboardInterrupt:
        print("\nStopping dev server...")
    finally:
        observer.stop()
        server.stop()


if __name__ == "__main__":
    main()
