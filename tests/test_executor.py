# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
"""Tests for local and SSH execution contexts."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from ccc.deploy.executor import (
    LocalExecutor,
    RemoteExecutor,
    create_executor,
    escape_double_quoted,
)
from ccc.errors import CommandFailed, InvalidHostSpec, LaunchFailed, Unreachable


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args="", returncode=returncode, stdout=stdout, stderr=stderr)


class TestLocalExecutor:
    """Commands run on this machine."""

    @patch("ccc.deploy.executor.subprocess.run")
    def test_exec_runs_in_work_dir(self, mock_run):
        mock_run.return_value = _completed(stdout="  true\n")
        ex = LocalExecutor("/srv/ccc")
        assert ex.exec("docker ps") == "true"
        args, kwargs = mock_run.call_args
        assert args[0] == "docker ps"
        assert kwargs["cwd"] == "/srv/ccc"
        assert kwargs["shell"] is True
        assert kwargs["capture_output"] is True

    @patch("ccc.deploy.executor.subprocess.run")
    def test_exec_failure_raises(self, mock_run):
        mock_run.return_value = _completed(returncode=2, stderr="boom")
        with pytest.raises(CommandFailed) as exc_info:
            LocalExecutor("/tmp").exec("false")
        assert exc_info.value.exit_code == 2
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.command == "false"

    @patch("ccc.deploy.executor.subprocess.run")
    def test_ignore_error_returns_empty(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stdout="partial")
        assert LocalExecutor("/tmp").exec("false", ignore_error=True) == ""

    @patch("ccc.deploy.executor.subprocess.run")
    def test_stream_does_not_capture(self, mock_run):
        mock_run.return_value = _completed(stdout=None)
        assert LocalExecutor("/tmp").exec("docker compose up -d", stream=True) == ""
        assert mock_run.call_args.kwargs["capture_output"] is False

    @patch("ccc.deploy.executor.subprocess.run")
    def test_input_data_passed_to_stdin(self, mock_run):
        mock_run.return_value = _completed()
        LocalExecutor("/tmp").exec("cat > f", input_data="hello")
        assert mock_run.call_args.kwargs["input"] == "hello"

    def test_undecodable_output_ignored_on_error(self, tmp_path):
        ex = LocalExecutor(str(tmp_path))
        assert ex.exec("printf '\\377\\376'; exit 1", ignore_error=True) == ""

    def test_undecodable_output_replaced(self, tmp_path):
        out = LocalExecutor(str(tmp_path)).exec("printf 'ok\\377'")
        assert out == "ok�"

    def test_undecodable_stderr_in_failure(self, tmp_path):
        with pytest.raises(CommandFailed) as exc_info:
            LocalExecutor(str(tmp_path)).exec("printf '\\377' >&2; exit 3")
        assert exc_info.value.exit_code == 3
        assert exc_info.value.stderr == "�"

    @patch("ccc.deploy.executor.subprocess.run", side_effect=FileNotFoundError("no dir"))
    def test_missing_work_dir_is_launch_failure(self, mock_run):
        with pytest.raises(LaunchFailed):
            LocalExecutor("/does/not/exist").exec("ls")

    @patch("ccc.deploy.executor.subprocess.run")
    def test_timeout_is_command_failure(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="sleep", timeout=1)
        with pytest.raises(CommandFailed) as exc_info:
            LocalExecutor("/tmp").exec("sleep 10", timeout=1)
        assert exc_info.value.exit_code == -1

    def test_always_reachable(self):
        ex = LocalExecutor("/tmp")
        assert ex.is_reachable() is True
        ex.require_reachable()
        assert ex.is_remote is False
        assert ex.label == "local"

    @patch("ccc.deploy.executor.subprocess.Popen")
    def test_spawn_uses_args_directly(self, mock_popen):
        LocalExecutor("/srv/ccc").spawn(["docker", "logs", "ccc"])
        mock_popen.assert_called_once_with(["docker", "logs", "ccc"], cwd="/srv/ccc")

    @patch("ccc.deploy.executor.subprocess.Popen", side_effect=FileNotFoundError("docker"))
    def test_spawn_missing_binary(self, mock_popen):
        with pytest.raises(LaunchFailed):
            LocalExecutor("/tmp").spawn(["docker", "ps"])

    @patch("ccc.deploy.executor.subprocess.Popen")
    def test_run_interactive_returns_exit_code(self, mock_popen):
        proc = MagicMock()
        proc.wait.return_value = 3
        mock_popen.return_value = proc
        assert LocalExecutor("/tmp").run_interactive(["docker", "exec", "-it", "ccc", "bash"]) == 3


class TestRemoteExecutor:
    """Commands wrapped in ssh."""

    def test_invalid_host_rejected_before_any_command(self):
        with patch("ccc.deploy.executor.subprocess.run") as mock_run:
            with pytest.raises(InvalidHostSpec):
                RemoteExecutor("user@bad host")
            mock_run.assert_not_called()

    def test_option_injection_rejected(self):
        with pytest.raises(InvalidHostSpec):
            RemoteExecutor("-oProxyCommand=evil")

    @patch("ccc.deploy.executor.subprocess.run")
    def test_exec_wraps_in_ssh(self, mock_run):
        mock_run.return_value = _completed(stdout="ok")
        ex = RemoteExecutor("dev@box.example.com")
        ex.exec("docker ps")
        cmd = mock_run.call_args.args[0]
        assert cmd == 'ssh dev@box.example.com "cd ~/.ccc && docker ps"'
        assert mock_run.call_args.kwargs["cwd"] is None

    @patch("ccc.deploy.executor.subprocess.run")
    def test_exec_escapes_double_quoted_chars(self, mock_run):
        mock_run.return_value = _completed()
        RemoteExecutor("box").exec('echo "$HOME" `id` \\n')
        cmd = mock_run.call_args.args[0]
        assert cmd == 'ssh box "cd ~/.ccc && echo \\"\\$HOME\\" \\`id\\` \\\\n"'

    @patch("ccc.deploy.executor.subprocess.run")
    def test_custom_remote_dir(self, mock_run):
        mock_run.return_value = _completed()
        RemoteExecutor("box", remote_dir="/opt/ccc").exec("ls")
        assert mock_run.call_args.args[0] == 'ssh box "cd /opt/ccc && ls"'

    @patch("ccc.deploy.executor.subprocess.Popen")
    def test_spawn_with_tty(self, mock_popen):
        RemoteExecutor("box").spawn(["docker", "exec", "-it", "ccc", "shpool", "attach", "main"], tty=True)
        argv = mock_popen.call_args.args[0]
        assert argv == [
            "ssh",
            "-t",
            "box",
            "cd ~/.ccc && docker exec -it ccc shpool attach main",
        ]

    @patch("ccc.deploy.executor.subprocess.Popen")
    def test_spawn_quotes_arguments(self, mock_popen):
        RemoteExecutor("box").spawn(["echo", "two words"])
        argv = mock_popen.call_args.args[0]
        assert argv == ["ssh", "box", "cd ~/.ccc && echo 'two words'"]

    @patch("ccc.deploy.executor.subprocess.run")
    def test_reachability_probe(self, mock_run):
        mock_run.return_value = _completed(stdout="ok\n")
        assert RemoteExecutor("dev@box").is_reachable() is True
        cmd = mock_run.call_args.args[0]
        assert cmd == ["ssh", "-o", "BatchMode=yes", "-o", "ConnectTimeout=5", "dev@box", "echo ok"]

    @patch("ccc.deploy.executor.subprocess.run")
    def test_unreachable(self, mock_run):
        mock_run.return_value = _completed(returncode=255, stderr="Connection refused")
        ex = RemoteExecutor("dev@box")
        assert ex.is_reachable() is False
        with pytest.raises(Unreachable) as exc_info:
            ex.require_reachable()
        assert "dev@box" in str(exc_info.value)

    @patch("ccc.deploy.executor.subprocess.run", side_effect=subprocess.TimeoutExpired("ssh", 15))
    def test_probe_timeout_is_unreachable(self, mock_run):
        assert RemoteExecutor("box").is_reachable() is False

    def test_properties(self):
        ex = RemoteExecutor("dev@box")
        assert ex.is_remote is True
        assert ex.label == "dev@box"
        assert ex.work_dir == "~/.ccc"


class TestHelpers:
    def test_escape_double_quoted(self):
        assert escape_double_quoted('a"b') == 'a\\"b'
        assert escape_double_quoted("$x") == "\\$x"
        assert escape_double_quoted("`x`") == "\\`x\\`"
        assert escape_double_quoted("a\\b") == "a\\\\b"

    def test_create_executor(self):
        assert isinstance(create_executor(None, "/tmp"), LocalExecutor)
        remote = create_executor("dev@box")
        assert isinstance(remote, RemoteExecutor)
        assert remote.work_dir == "~/.ccc"
