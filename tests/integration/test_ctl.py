"""Tests for the hammertalk-ctl utility in hammertalk/ctl.py."""

import os
import signal
from unittest.mock import patch

import pytest

from hammertalk import ctl


@pytest.fixture
def pid_path(tmp_path):
    return str(tmp_path / "hammertalk.pid")


def _write_pid(path, pid):
    with open(path, "w") as f:
        f.write(f"{pid}\n")


class TestStatus:

    def test_not_running(self, pid_path, capsys):
        assert ctl.main(["status", "--pid-file", pid_path]) == 1
        assert capsys.readouterr().out.strip() == "not running"

    def test_running(self, pid_path, capsys):
        _write_pid(pid_path, os.getpid())
        assert ctl.main(["status", "--pid-file", pid_path]) == 0
        assert capsys.readouterr().out.strip() == f"running (pid {os.getpid()})"

    def test_stale(self, pid_path, capsys):
        _write_pid(pid_path, 424242)
        with patch("hammertalk.ctl.pid_alive", return_value=False):
            assert ctl.main(["status", "--pid-file", pid_path]) == 1
        assert capsys.readouterr().out.strip() == "stale (pid 424242)"

    def test_status_sends_no_signal(self, pid_path):
        _write_pid(pid_path, 4321)
        with patch("hammertalk.instance.os.kill") as kill:
            ctl.main(["status", "--pid-file", pid_path])
        # Only the liveness probe (signal 0) is allowed
        assert all(c.args[1] == 0 for c in kill.call_args_list)

    def test_default_pid_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))
        _write_pid(str(tmp_path / "hammertalk.pid"), os.getpid())
        assert ctl.main(["status"]) == 0


class TestSend:

    @pytest.mark.parametrize("command, signum", [
        ("start", signal.SIGUSR1),
        ("stop", signal.SIGUSR2),
        ("quit", signal.SIGTERM),
    ])
    def test_signals_daemon(self, pid_path, command, signum):
        _write_pid(pid_path, 4321)
        with patch("hammertalk.ctl.pid_alive", return_value=True):
            with patch("hammertalk.ctl.os.kill") as kill:
                assert ctl.main([command, "--pid-file", pid_path]) == 0
        kill.assert_called_once_with(4321, signum)

    def test_no_daemon(self, pid_path, capsys):
        with patch("hammertalk.ctl.os.kill") as kill:
            assert ctl.main(["start", "--pid-file", pid_path]) == 1
        kill.assert_not_called()
        assert "not running" in capsys.readouterr().err

    def test_stale_daemon_not_signaled(self, pid_path):
        _write_pid(pid_path, 424242)
        with patch("hammertalk.ctl.pid_alive", return_value=False):
            with patch("hammertalk.ctl.os.kill") as kill:
                assert ctl.main(["stop", "--pid-file", pid_path]) == 1
        kill.assert_not_called()

    def test_kill_failure(self, pid_path, capsys):
        _write_pid(pid_path, 4321)
        with patch("hammertalk.ctl.pid_alive", return_value=True):
            with patch("hammertalk.ctl.os.kill", side_effect=PermissionError("denied")):
                assert ctl.main(["start", "--pid-file", pid_path]) == 1
        assert "denied" in capsys.readouterr().err

    def test_unknown_command(self, pid_path):
        with pytest.raises(SystemExit):
            ctl.main(["toggle", "--pid-file", pid_path])
