# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
"""Tests for container lifecycle and status reconciliation."""

import pytest

from ccc.agents.types import Agent, AuthSettings
from ccc.deploy.container import (
    BuildOptions,
    ContainerManager,
    ContainerState,
    ContainerStatus,
    parse_session_list,
)
from ccc.errors import (
    BuildFailed,
    CommandFailed,
    ContainerNotRunning,
    InvalidSessionName,
    SessionNotFound,
    Unreachable,
)
from ccc.extensions.types import Extension, ExtensionType

SHPOOL_LIST = """NAME    STARTED_AT                 STATUS
main    2025-06-01T10:00:00+00:00  attached
work    2025-06-01T11:00:00+00:00  disconnected
"""


def _responder(responses):
    """exec side effect keyed on a substring of the command."""

    def _exec(cmd, **kwargs):
        for key, value in responses.items():
            if key in cmd:
                if isinstance(value, Exception):
                    raise value
                return value
        return ""

    return _exec


class TestContainerStatus:
    def test_absent_is_all_negative(self):
        status = ContainerStatus.absent()
        assert status.exists is False
        assert status.running is False
        assert status.companion_running is False
        assert status.sessions == []
        assert status.agents == []
        assert status.state == ContainerState.ABSENT

    def test_state_derivation(self):
        assert ContainerStatus(exists=True).state == ContainerState.STOPPED
        assert ContainerStatus(exists=True, running=True).state == ContainerState.RUNNING

    def test_to_dict_includes_state(self):
        data = ContainerStatus(exists=True, running=True, sessions=["main"]).to_dict()
        assert data["state"] == "running"
        assert data["sessions"] == ["main"]


class TestGetStatus:
    """Status is observed fresh and probes fail independently."""

    def test_missing_container_probes_nothing_else(self, executor):
        executor.exec.return_value = ""
        status = ContainerManager(executor).get_status()
        assert status == ContainerStatus.absent()
        assert executor.exec.call_count == 1
        assert "docker inspect" in executor.exec.call_args.args[0]

    def test_stopped_container_probes_nothing_else(self, executor):
        executor.exec.return_value = "false"
        status = ContainerManager(executor).get_status()
        assert status.exists is True
        assert status.running is False
        assert status.sessions == []
        assert executor.exec.call_count == 1

    def test_running_container(self, executor):
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "pgrep -f takopi": "", "shpool list": SHPOOL_LIST}
        )
        status = ContainerManager(executor).get_status()
        assert status.exists is True
        assert status.running is True
        assert status.companion_running is True
        assert status.sessions == ["main", "work"]

    def test_session_listing_failure_is_isolated(self, executor):
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "shpool list": CommandFailed(1, "shpool: not found")}
        )
        status = ContainerManager(executor).get_status()
        assert status.running is True
        assert status.sessions == []
        assert status.companion_running is True

    def test_unexpected_probe_errors_are_isolated(self, executor):
        executor.exec.side_effect = _responder(
            {
                "docker inspect": "true",
                "pgrep": RuntimeError("broken pipe"),
                "shpool list": UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
            }
        )
        status = ContainerManager(executor).get_status()
        assert status.running is True
        assert status.sessions == []
        assert status.companion_running is False

    def test_unexpected_agent_probe_error(self, executor, claude_agent):
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "--version": ValueError("bad output")}
        )
        status = ContainerManager(executor).get_status(agents=[claude_agent])
        assert status.running is True
        assert status.agents == []

    def test_companion_not_running(self, executor):
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "pgrep": CommandFailed(1), "shpool list": SHPOOL_LIST}
        )
        status = ContainerManager(executor).get_status()
        assert status.companion_running is False
        assert status.sessions == ["main", "work"]

    def test_unreachable_host(self, executor):
        executor.is_reachable.return_value = False
        status = ContainerManager(executor).get_status()
        assert status.reachable is False
        assert status.exists is False
        executor.exec.assert_not_called()

    def test_agent_install_and_auth(self, executor, claude_agent):
        claude_agent.auth = AuthSettings(method="oauth", check_files=["~/.claude/.credentials.json"])
        codex = Agent(name="codex", install_cmd="i", version_cmd="codex --version", run_cmd="codex")
        executor.exec.side_effect = _responder(
            {
                "docker inspect": "true",
                "claude --version": "",
                "codex --version": CommandFailed(127),
                "test -f": "",
            }
        )
        status = ContainerManager(executor).get_status(agents=[claude_agent, codex])
        assert status.agents == ["claude"]
        assert status.authenticated == ["claude"]

    def test_unauthenticated_agent(self, executor, claude_agent):
        claude_agent.auth = AuthSettings(method="oauth", check_files=["~/.claude/.credentials.json"])
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "test -f": CommandFailed(1)}
        )
        status = ContainerManager(executor).get_status(agents=[claude_agent])
        assert status.agents == ["claude"]
        assert status.authenticated == []

    def test_host_extension_liveness(self, executor):
        takopi = Extension(name="takopi", type=ExtensionType.HOST, run_cmd="takopi")
        bot = Extension(name="bot", type=ExtensionType.HOST, run_cmd="/usr/bin/bot --daemon")
        mcp = Extension(name="context7", type=ExtensionType.MCP)
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "pgrep -f bot": CommandFailed(1)}
        )
        status = ContainerManager(executor).get_status(extensions=[takopi, bot, mcp])
        assert status.extensions == {"takopi": True, "bot": False}

    def test_state(self, executor):
        manager = ContainerManager(executor)
        executor.exec.return_value = ""
        assert manager.state() == ContainerState.ABSENT
        executor.exec.return_value = "false"
        assert manager.state() == ContainerState.STOPPED
        executor.exec.return_value = "true"
        assert manager.state() == ContainerState.RUNNING


class TestActions:
    """build / start / restart."""

    def test_build(self, executor):
        ContainerManager(executor).build()
        executor.require_reachable.assert_called_once()
        executor.run_interactive.assert_called_once_with(["docker", "compose", "build"], tty=False)

    def test_build_no_cache(self, executor):
        ContainerManager(executor).build(BuildOptions(no_cache=True))
        args = executor.run_interactive.call_args.args[0]
        assert args == ["docker", "compose", "build", "--no-cache"]

    def test_build_failure(self, executor):
        executor.run_interactive.return_value = 17
        with pytest.raises(BuildFailed) as exc_info:
            ContainerManager(executor).build()
        assert exc_info.value.exit_code == 17
        assert str(exc_info.value) == "Build failed with code 17"

    def test_build_unreachable(self, executor):
        executor.require_reachable.side_effect = Unreachable("dev@box")
        with pytest.raises(Unreachable):
            ContainerManager(executor).build()
        executor.run_interactive.assert_not_called()

    def test_start(self, executor):
        ContainerManager(executor).start()
        executor.exec.assert_called_once_with("docker compose up -d", stream=True)

    def test_start_force_recreate(self, executor):
        ContainerManager(executor).start(force_recreate=True)
        executor.exec.assert_called_once_with("docker compose up -d --force-recreate", stream=True)

    def test_restart_running(self, executor):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        ContainerManager(executor).restart()
        assert executor.exec.call_args.args[0] == "docker restart ccc"

    def test_restart_stopped_raises(self, executor):
        executor.exec.return_value = "false"
        with pytest.raises(ContainerNotRunning):
            ContainerManager(executor).restart()

    def test_custom_container_name(self, executor):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        ContainerManager(executor, "sandbox").restart()
        assert executor.exec.call_args.args[0] == "docker restart sandbox"


class TestSessions:
    def test_parse_session_list_skips_header(self):
        assert parse_session_list(SHPOOL_LIST) == ["main", "work"]

    def test_parse_session_list_header_only(self):
        assert parse_session_list("NAME STARTED_AT STATUS\n") == []
        assert parse_session_list("") == []

    def test_list_sessions(self, executor):
        executor.exec.return_value = SHPOOL_LIST.strip()
        assert ContainerManager(executor).list_sessions() == ["main", "work"]

    def test_list_sessions_propagates_failure(self, executor):
        executor.exec.side_effect = CommandFailed(1, "No such container: ccc")
        with pytest.raises(CommandFailed):
            ContainerManager(executor).list_sessions()

    def test_kill_session(self, executor):
        ContainerManager(executor).kill_session("work")
        executor.exec.assert_called_once_with("docker exec ccc shpool kill work")

    def test_kill_unknown_session(self, executor):
        executor.exec.side_effect = CommandFailed(1, "Error: session 'nope' not found", "cmd")
        with pytest.raises(SessionNotFound) as exc_info:
            ContainerManager(executor).kill_session("nope")
        assert isinstance(exc_info.value, CommandFailed)
        assert str(exc_info.value) == "Session not found: nope"

    def test_kill_without_container(self, executor):
        executor.exec.side_effect = CommandFailed(1, "Error: No such container: ccc")
        with pytest.raises(CommandFailed) as exc_info:
            ContainerManager(executor).kill_session("main")
        assert not isinstance(exc_info.value, SessionNotFound)

    def test_kill_unreachable_host(self, executor):
        executor.require_reachable.side_effect = Unreachable("dev@box")
        with pytest.raises(Unreachable):
            ContainerManager(executor).kill_session("work")
        executor.exec.assert_not_called()

    @pytest.mark.parametrize(
        "exit_code, stderr",
        [
            (255, "ssh: connect to host box port 22: Connection refused"),
            (1, "Cannot connect to the Docker daemon at unix:///var/run/docker.sock"),
            (127, "sh: shpool: not found"),
        ],
    )
    def test_kill_other_failures_unchanged(self, executor, exit_code, stderr):
        executor.exec.side_effect = CommandFailed(exit_code, stderr)
        with pytest.raises(CommandFailed) as exc_info:
            ContainerManager(executor).kill_session("work")
        assert not isinstance(exc_info.value, SessionNotFound)
        assert exc_info.value.exit_code == exit_code

    def test_kill_shpool_not_found_message(self, executor):
        executor.exec.side_effect = CommandFailed(1, "not found: work")
        with pytest.raises(SessionNotFound):
            ContainerManager(executor).kill_session("work")

    def test_kill_rejects_shell_characters(self, executor):
        with pytest.raises(InvalidSessionName):
            ContainerManager(executor).kill_session("main; rm -rf /")
        executor.exec.assert_not_called()

    def test_show_logs(self, executor):
        assert ContainerManager(executor).show_logs() == 0
        executor.run_interactive.assert_called_once_with(
            ["docker", "logs", "ccc", "--tail", "100", "-f"], tty=False
        )


class TestAttach:
    def test_plain_attach(self, executor):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        executor.run_interactive.return_value = 0
        assert ContainerManager(executor).attach("main") == 0
        executor.run_interactive.assert_called_once_with(
            ["docker", "exec", "-it", "ccc", "shpool", "attach", "main"], tty=True
        )

    def test_attach_returns_child_exit_code(self, executor):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        executor.run_interactive.return_value = 42
        assert ContainerManager(executor).attach("main") == 42

    def test_yolo_with_prompt(self, executor, claude_agent):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        ContainerManager(executor).attach("main", agent=claude_agent, yolo=True, prompt="fix tests")
        args = executor.run_interactive.call_args.args[0]
        assert args == [
            "docker", "exec", "-it", "ccc", "shpool", "attach", "-f", "main", "--",
            "claude", "--dangerously-skip-permissions", "-p", "fix tests",
        ]

    def test_no_firewall_flushes_rules_first(self, executor):
        executor.exec.side_effect = _responder({"docker inspect": "true"})
        ContainerManager(executor).attach("main", no_firewall=True)
        commands = [c.args[0] for c in executor.exec.call_args_list]
        assert "docker exec ccc sudo iptables -F OUTPUT 2>/dev/null || true" in commands

    def test_attach_stopped_container(self, executor):
        executor.exec.return_value = "false"
        with pytest.raises(ContainerNotRunning):
            ContainerManager(executor).attach("main")
        executor.run_interactive.assert_not_called()


class TestUpdateAgents:
    def test_reinstalls_each_agent(self, executor, claude_agent):
        broken = Agent(name="broken", install_cmd="false", version_cmd="v", run_cmd="r")
        executor.exec.side_effect = _responder(
            {"docker inspect": "true", "sh -c false": CommandFailed(1)}
        )
        results = ContainerManager(executor).update_agents([claude_agent, broken])
        assert results == {"claude": True, "broken": False}
