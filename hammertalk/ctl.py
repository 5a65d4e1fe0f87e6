"""Control utility for a running hammertalk daemon.

    hammertalk-ctl start    begin recording (SIGUSR1)
    hammertalk-ctl stop     stop recording and transcribe (SIGUSR2)
    hammertalk-ctl quit     shut the daemon down (SIGTERM)
    hammertalk-ctl status   report whether the daemon is running

Meant to be bound to key press/release in the compositor, e.g. for sway:

    bindsym --no-repeat $mod+t exec hammertalk-ctl start
    bindsym --release $mod+t exec hammertalk-ctl stop
"""

import argparse
import os
import signal
import sys
from typing import Optional

from hammertalk.config import get_pid_path
from hammertalk.instance import pid_alive, read_pid

COMMAND_SIGNALS = {
    "start": signal.SIGUSR1,
    "stop": signal.SIGUSR2,
    "quit": signal.SIGTERM,
}


def daemon_status(pid_path: str) -> tuple[str, Optional[int]]:
    """Return ("running" | "stale" | "not running", pid) without signaling."""
    pid = read_pid(pid_path)
    if pid is None:
        return "not running", None
    if pid_alive(pid):
        return "running", pid
    return "stale", pid


def send(command: str, pid_path: str) -> int:
    """Send the signal for ``command`` to the daemon. Returns an exit code."""
    state, pid = daemon_status(pid_path)
    if state != "running":
        print(f"hammertalk is not running ({pid_path})", file=sys.stderr)
        return 1
    try:
        os.kill(pid, COMMAND_SIGNALS[command])
    except OSError as e:
        print(f"Failed to signal pid {pid}: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hammertalk-ctl",
        description="Control a running hammertalk daemon.",
    )
    parser.add_argument("command", choices=[*COMMAND_SIGNALS, "status"])
    parser.add_argument("--pid-file", default=None,
                        help="PID file path (default: $XDG_RUNTIME_DIR/hammertalk.pid)")
    args = parser.parse_args(argv)
    pid_path = args.pid_file or get_pid_path()

    if args.command == "status":
        state, pid = daemon_status(pid_path)
        print(f"{state} (pid {pid})" if pid is not None else state)
        return 0 if state == "running" else 1

    return send(args.command, pid_path)


if __name__ == "__main__":
    sys.exit(main())
