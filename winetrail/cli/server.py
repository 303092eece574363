"""WineTrail server control script.

Usage:
    winetrail-server start [--port PORT] [--reload] [--foreground]
    winetrail-server stop
    winetrail-server restart [--port PORT]
    winetrail-server status
"""

import argparse
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import httpx

from winetrail.config import settings

APP_PATH = "winetrail.main:app"


def pid_file() -> Path:
    return settings.data_dir / "winetrail.pid"


def log_file() -> Path:
    return settings.data_dir / "winetrail.log"


def get_pid() -> int | None:
    """PID of the server started by this script, if it is still alive."""
    path = pid_file()
    if not path.exists():
        return None

    try:
        pid = int(path.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        path.unlink(missing_ok=True)
        return None


def find_running_server() -> int | None:
    """Look for a uvicorn process serving the app."""
    try:
        result = subprocess.run(
            ["pgrep", "-f", f"uvicorn {APP_PATH}"],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None
    if result.returncode == 0 and result.stdout.strip():
        return int(result.stdout.strip().split()[0])
    return None


def build_command(host: str, port: int, reload: bool = False, workers: int = 1) -> list[str]:
    cmd = [
        sys.executable, "-m", "uvicorn",
        APP_PATH,
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        cmd.append("--reload")
    elif workers > 1:
        cmd.extend(["--workers", str(workers)])
    return cmd


def start_server(port: int | None = None, host: str | None = None,
                 reload: bool = False, foreground: bool = False) -> bool:
    """Start the server in the background, or in the foreground if asked.

    Returns:
        True if the server started.
    """
    pid = get_pid() or find_running_server()
    if pid:
        print(f"Server is already running (PID: {pid})")
        return False

    host = host or settings.host
    port = port or settings.port
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    cmd = build_command(host, port, reload=reload, workers=settings.workers)

    print(f"Starting WineTrail server on http://{host}:{port}")

    if foreground:
        print("Press Ctrl+C to stop the server")
        try:
            subprocess.run(cmd)
        except KeyboardInterrupt:
            print("\nServer stopped")
        return True

    with open(log_file(), "w") as log:
        process = subprocess.Popen(
            cmd,
            stdout=log,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    time.sleep(1)
    if process.poll() is not None:
        print("Failed to start server. Check logs for details.")
        return False

    pid_file().write_text(str(process.pid))
    print(f"Server started with PID: {process.pid}")
    print(f"Logs available at: {log_file()}")
    return True


def stop_server() -> bool:
    """Send SIGTERM, then SIGKILL if the server has not exited after 5s."""
    pid = get_pid() or find_running_server()
    if not pid:
        print("Server is not running")
        return False

    print(f"Stopping server (PID: {pid})...")

    try:
        os.kill(pid, signal.SIGTERM)
        for _ in range(10):
            time.sleep(0.5)
            try:
                os.kill(pid, 0)
            except ProcessLookupError:
                break
        else:
            print("Server didn't stop gracefully, forcing...")
            os.kill(pid, signal.SIGKILL)
    except ProcessLookupError:
        print("Server was not running")
        pid_file().unlink(missing_ok=True)
        return False
    except PermissionError:
        print(f"Permission denied to stop process {pid}")
        return False

    print("Server stopped")
    pid_file().unlink(missing_ok=True)
    return True


def restart_server(port: int | None = None, host: str | None = None) -> bool:
    print("Restarting WineTrail server...")
    stop_server()
    time.sleep(1)
    return start_server(port=port, host=host)


def server_status(port: int | None = None) -> None:
    pid = get_pid() or find_running_server()
    if not pid:
        print("WineTrail server is not running")
        return

    print(f"WineTrail server is running (PID: {pid})")
    url = f"http://localhost:{port or settings.port}/health"
    try:
        data = httpx.get(url, timeout=2).json()
    except (httpx.HTTPError, ValueError):
        print("  (Could not fetch health status)")
        return
    print(f"  Status: {data.get('status', 'unknown')}")
    print(f"  Version: {data.get('version', 'unknown')}")


def _add_bind_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--port", "-p", type=int, default=None,
                        help="Port to bind to (default: from config)")
    parser.add_argument("--host", default=None,
                        help="Host to bind to (default: from config)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="WineTrail server control script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s start                  Start server on the configured port
  %(prog)s start --port 8080      Start server on port 8080
  %(prog)s start --reload         Start with auto-reload for development
  %(prog)s stop                   Stop the server
  %(prog)s status                 Check server status
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    start_parser = subparsers.add_parser("start", help="Start the server")
    _add_bind_arguments(start_parser)
    start_parser.add_argument("--reload", "-r", action="store_true",
                              help="Enable auto-reload for development")
    start_parser.add_argument("--foreground", "-f", action="store_true",
                              help="Run in foreground (blocking)")

    subparsers.add_parser("stop", help="Stop the server")

    restart_parser = subparsers.add_parser("restart", help="Restart the server")
    _add_bind_arguments(restart_parser)

    status_parser = subparsers.add_parser("status", help="Check server status")
    status_parser.add_argument("--port", "-p", type=int, default=None)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "start":
            ok = start_server(port=args.port, host=args.host,
                              reload=args.reload, foreground=args.foreground)
        elif args.command == "stop":
            ok = stop_server()
        elif args.command == "restart":
            ok = restart_server(port=args.port, host=args.host)
        else:
            server_status(port=args.port)
            ok = True
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
