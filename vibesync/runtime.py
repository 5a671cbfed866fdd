from __future__ import annotations

import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

BRIDGE_MODULES = {"vibesync.cli"}


@dataclass(frozen=True)
class BridgeRuntimeStatus:
    running: bool
    detail: str
    pid: int | None = None


@dataclass(frozen=True)
class StopPidfileResult:
    stopped: bool
    reason: str
    pid: int | None = None


def _pid_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _pid_command_status(pid: int) -> tuple[str | None, str]:
    try:
        result = subprocess.run(
            ["ps", "-p", str(pid), "-o", "command="],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return None, "ps_unavailable"
    if result.returncode != 0:
        return None, "command_unavailable"
    command = (result.stdout or "").strip()
    if not command:
        return None, "command_unavailable"
    return command, "ok"


def _binary_name(token: str) -> str:
    return Path(token).name.lower().removesuffix(".exe")


def _is_bridge_command(command: str) -> bool:
    """True for `vibesync run`, `python .../vibesync run` and `python -m vibesync.cli run`."""
    tokens = command.split()
    if not tokens:
        return False
    lowered = [token.lower() for token in tokens]
    start = 0
    launcher = _binary_name(tokens[0])
    if launcher == "py" or launcher.startswith("python"):
        if len(tokens) > 3 and lowered[1] == "-m" and lowered[2] in BRIDGE_MODULES:
            return lowered[3] == "run"
        start = 1
    if start + 1 >= len(tokens):
        return False
    return _binary_name(tokens[start]) == "vibesync" and lowered[start + 1] == "run"


def _read_pid(pid_path: Path) -> int | None:
    try:
        raw = pid_path.read_text().strip()
    except FileNotFoundError:
        return None
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def write_pid(pid_path: Path, pid: int) -> None:
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(f"{pid}\n")


def clear_pid(pid_path: Path) -> None:
    try:
        pid_path.unlink()
    except FileNotFoundError:
        return


def bridge_pid_path() -> Path:
    pid_path = os.environ.get("VIBESYNC_PID", "~/.vibesync/bridge.pid")
    return Path(os.path.expanduser(pid_path))


def bridge_status() -> BridgeRuntimeStatus:
    pid_path = bridge_pid_path()
    pid = _read_pid(pid_path)
    if pid is None:
        return BridgeRuntimeStatus(False, "not running")
    if not _pid_running(pid):
        return BridgeRuntimeStatus(False, "stale pidfile", pid=pid)
    command, status = _pid_command_status(pid)
    if status == "ps_unavailable":
        return BridgeRuntimeStatus(False, "pid running but unverified (ps unavailable)", pid=pid)
    if status != "ok" or not command or not _is_bridge_command(command):
        return BridgeRuntimeStatus(False, "pid running but not vibesync bridge", pid=pid)
    return BridgeRuntimeStatus(True, "running", pid=pid)


def stop_pidfile_with_reason(*, wait_s: float = 3.0) -> StopPidfileResult:
    pid_path = bridge_pid_path()
    pid = _read_pid(pid_path)
    if pid is None:
        return StopPidfileResult(False, "pidfile_missing")
    if not _pid_running(pid):
        clear_pid(pid_path)
        return StopPidfileResult(False, "pid_not_running", pid=pid)
    command, status = _pid_command_status(pid)
    if status == "ps_unavailable":
        return StopPidfileResult(False, "ps_unavailable", pid=pid)
    if status != "ok" or not command or not _is_bridge_command(command):
        return StopPidfileResult(False, "pid_unverified", pid=pid)
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError:
        return StopPidfileResult(False, "signal_failed", pid=pid)
    for _ in range(max(1, int(wait_s / 0.1))):
        time.sleep(0.1)
        if not _pid_running(pid):
            clear_pid(pid_path)
            return StopPidfileResult(True, "stopped", pid=pid)
    return StopPidfileResult(False, "timeout", pid=pid)
