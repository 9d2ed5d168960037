# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of ccc.
#
# ccc is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""Lifecycle of the single coding container on a host.

    absent  --build+start-->  running
    running --restart-->      running
    stopped --start-->        running

Works the same against a local or remote Docker daemon: every command
goes through the injected ``Executor``.

Status is never cached.  ``get_status()`` observes the container afresh:

  1. one ``docker inspect`` call decides absent / stopped / running
  2. only a running container is probed further (companion bot, sessions,
     agent install and auth, host extensions); each probe fails on its own
     without affecting the others

Action methods (build, start, restart, kill_session) raise.  Probes never do.
"""

from __future__ import annotations

import logging
import re
import shlex
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from ccc.agents.auth import check_agent_authenticated, check_agent_installed
from ccc.agents.types import Agent
from ccc.config import DEFAULT_CONTAINER_NAME
from ccc.deploy.executor import Executor
from ccc.errors import (
    BuildFailed,
    CccError,
    CommandFailed,
    ContainerNotRunning,
    InvalidSessionName,
    SessionNotFound,
)
from ccc.extensions.host_manager import HostExtensionManager
from ccc.extensions.types import Extension, ExtensionType

logger = logging.getLogger("ccc.deploy.container")

COMPANION_PROCESS = "takopi"
DEFAULT_SESSION = "main"

_SESSION_NAME = re.compile(r"^[A-Za-z0-9._-]+$")
# shpool prints "not found: <name>" for sessions it does not know
_SESSION_NOT_FOUND = re.compile(r"not found: |session\b.*\bnot found|no such session", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------
class ContainerState(str, Enum):
    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class ContainerStatus:
    """Observed state of the container at one point in time."""

    exists: bool = False
    running: bool = False
    reachable: bool = True
    companion_running: bool = False
    sessions: list[str] = field(default_factory=list)
    agents: list[str] = field(default_factory=list)
    authenticated: list[str] = field(default_factory=list)
    extensions: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def absent(cls) -> ContainerStatus:
        return cls()

    @property
    def state(self) -> ContainerState:
        if self.running:
            return ContainerState.RUNNING
        if self.exists:
            return ContainerState.STOPPED
        return ContainerState.ABSENT

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data


@dataclass
class BuildOptions:
    no_cache: bool = False


def parse_session_list(output: str) -> list[str]:
    """Session names from ``shpool list`` output (header line skipped)."""
    lines = [line for line in output.strip().splitlines() if line.strip()]
    return [line.split()[0] for line in lines[1:]]


def validate_session_name(name: str) -> str:
    if not name or not _SESSION_NAME.match(name):
        raise InvalidSessionName(name)
    return name


# ---------------------------------------------------------------------------
# ContainerManager
# ---------------------------------------------------------------------------
class ContainerManager:
    """Operations on one named container through one executor.

    Usage::

        manager = ContainerManager(create_executor(host))
        manager.build(BuildOptions(no_cache=True))
        manager.start()
        status = manager.get_status(agents=load_agents().values())
    """

    def __init__(self, executor: Executor, container_name: str = DEFAULT_CONTAINER_NAME) -> None:
        self.executor = executor
        self.container_name = container_name

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def build(self, options: BuildOptions | None = None) -> None:
        """Build the image with compose, streaming output to the terminal.

        Raises:
            Unreachable: the host did not answer.
            BuildFailed: the build exited non-zero.
        """
        options = options or BuildOptions()
        self.executor.require_reachable()

        args = ["docker", "compose", "build"]
        if options.no_cache:
            args.append("--no-cache")

        exit_code = self.executor.run_interactive(args, tty=False)
        if exit_code != 0:
            logger.error("Build failed", extra={"fields": {"exit_code": exit_code}})
            raise BuildFailed(exit_code)
        logger.info("Image built", extra={"fields": {"target": self.executor.label}})

    def start(self, force_recreate: bool = False) -> None:
        """Bring the container up.  Safe to call when already running."""
        self.executor.require_reachable()
        cmd = "docker compose up -d"
        if force_recreate:
            cmd += " --force-recreate"
        self.executor.exec(cmd, stream=True)
        logger.info("Container started", extra={"fields": {"container": self.container_name}})

    def restart(self) -> None:
        """Restart a running container.

        Raises:
            ContainerNotRunning: the container is stopped or absent.
        """
        self.executor.require_reachable()
        if not self._inspect_running():
            raise ContainerNotRunning(self.container_name)
        self.executor.exec(f"docker restart {self.container_name}", stream=True)
        logger.info("Container restarted", extra={"fields": {"container": self.container_name}})

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def _inspect(self) -> str:
        return self.executor.exec(
            f"docker inspect -f '{{{{.State.Running}}}}' {self.container_name} 2>/dev/null",
            ignore_error=True,
        )

    def _inspect_running(self) -> bool:
        return self._inspect().strip() == "true"

    def state(self) -> ContainerState:
        try:
            result = self._inspect().strip()
        except CccError:
            return ContainerState.ABSENT
        if not result:
            return ContainerState.ABSENT
        return ContainerState.RUNNING if result == "true" else ContainerState.STOPPED

    def get_status(
        self,
        agents: Iterable[Agent] = (),
        extensions: Iterable[Extension] = (),
    ) -> ContainerStatus:
        """Observe the container.  Never raises for container or host problems."""
        if not self.executor.is_reachable():
            logger.debug("Host unreachable", extra={"fields": {"target": self.executor.label}})
            return ContainerStatus(reachable=False)

        try:
            result = self._inspect().strip()
        except CccError as exc:
            logger.debug("Inspect failed: %s", exc)
            return ContainerStatus.absent()

        if not result:
            return ContainerStatus.absent()

        status = ContainerStatus(exists=True, running=result == "true")
        if not status.running:
            return status

        status.companion_running = self._probe_companion()
        status.sessions = self._probe_sessions()

        for agent in agents:
            if check_agent_installed(self.executor, self.container_name, agent):
                status.agents.append(agent.name)
                if check_agent_authenticated(self.executor, self.container_name, agent):
                    status.authenticated.append(agent.name)

        host_exts = [e for e in extensions if e.type == ExtensionType.HOST]
        if host_exts:
            manager = HostExtensionManager(self.executor, self.container_name)
            status.extensions = manager.status(host_exts)

        return status

    def _probe_companion(self) -> bool:
        try:
            self.executor.exec(
                f"docker exec {self.container_name} pgrep -f {COMPANION_PROCESS} >/dev/null 2>&1"
            )
        except Exception as exc:
            logger.debug("Companion probe failed: %s", exc)
            return False
        return True

    def _probe_sessions(self) -> list[str]:
        try:
            return self.list_sessions()
        except Exception as exc:
            logger.debug("Session listing failed: %s", exc)
            return []

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def list_sessions(self) -> list[str]:
        """Names of the sessions shpool knows about.

        Raises:
            CommandFailed: the listing could not be run.
        """
        output = self.executor.exec(f"docker exec {self.container_name} shpool list 2>/dev/null")
        return parse_session_list(output)

    def kill_session(self, name: str) -> None:
        """Kill one session by name.

        Raises:
            InvalidSessionName: the name contains characters shpool never uses.
            Unreachable: the host cannot be reached.
            SessionNotFound: shpool reported that the session does not exist.
            CommandFailed: any other failure, unchanged.
        """
        validate_session_name(name)
        self.executor.require_reachable()
        cmd = f"docker exec {self.container_name} shpool kill {shlex.quote(name)}"
        try:
            self.executor.exec(cmd)
        except CommandFailed as exc:
            if not _SESSION_NOT_FOUND.search(exc.stderr or ""):
                raise
            raise SessionNotFound(name, exc.exit_code, exc.stderr, exc.command) from exc
        logger.info("Session killed", extra={"fields": {"session": name}})

    def show_logs(self) -> int:
        """Follow the container log until interrupted."""
        return self.executor.run_interactive(
            ["docker", "logs", self.container_name, "--tail", "100", "-f"], tty=False
        )

    # ------------------------------------------------------------------
    # Attach
    # ------------------------------------------------------------------
    def attach_args(
        self,
        session: str = DEFAULT_SESSION,
        agent: Agent | None = None,
        yolo: bool = False,
        prompt: str | None = None,
    ) -> list[str]:
        args = ["docker", "exec", "-it", self.container_name, "shpool", "attach"]
        if yolo and agent is not None:
            agent_args = shlex.split(agent.run_cmd)
            if agent.skip_permissions_flag:
                agent_args.append(agent.skip_permissions_flag)
            if prompt:
                agent_args.extend(["-p", prompt])
            args.extend(["-f", session, "--", *agent_args])
        else:
            args.append(session)
        return args

    def attach(
        self,
        session: str = DEFAULT_SESSION,
        agent: Agent | None = None,
        no_firewall: bool = False,
        yolo: bool = False,
        prompt: str | None = None,
    ) -> int:
        """Attach the terminal to a session, creating it if needed.

        Returns the exit code of the attached process.

        Raises:
            Unreachable: the host did not answer.
            ContainerNotRunning: the container is stopped or absent.
        """
        validate_session_name(session)
        self.executor.require_reachable()
        if not self._inspect_running():
            raise ContainerNotRunning(self.container_name)

        if no_firewall:
            self.executor.exec(
                f"docker exec {self.container_name} sudo iptables -F OUTPUT 2>/dev/null || true",
                ignore_error=True,
            )
            logger.warning("Firewall disabled", extra={"fields": {"container": self.container_name}})

        args = self.attach_args(session, agent, yolo, prompt)
        return self.executor.run_interactive(args, tty=True)

    # ------------------------------------------------------------------
    # Agent update
    # ------------------------------------------------------------------
    def update_agents(self, agents: Iterable[Agent]) -> dict[str, bool]:
        """Re-run each agent's install command in the container."""
        self.executor.require_reachable()
        if not self._inspect_running():
            raise ContainerNotRunning(self.container_name)

        results: dict[str, bool] = {}
        for agent in agents:
            cmd = f"docker exec {self.container_name} sh -c {shlex.quote(agent.install_cmd)}"
            try:
                self.executor.exec(cmd, stream=True)
            except CccError as exc:
                logger.warning("Update failed for %s: %s", agent.name, exc)
                results[agent.name] = False
            else:
                results[agent.name] = True
        return results
