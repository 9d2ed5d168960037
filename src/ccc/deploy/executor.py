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
"""Execution contexts: run shell commands here or on an SSH host.

Everything the container manager and the extension host manager do goes
through an ``Executor``, so the same code drives a local Docker daemon
and a remote one.

  LocalExecutor   -- shell command with cwd=work_dir
  RemoteExecutor  -- ssh <host> "cd <remote_dir> && <command>"

Every remote call opens a fresh SSH connection.  There is no pooling and
no retry.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from ccc.config import CCC_HOME, validate_host
from ccc.errors import CommandFailed, LaunchFailed, Unreachable

logger = logging.getLogger("ccc.deploy.executor")

DEFAULT_REMOTE_DIR = "~/.ccc"
SSH_CONNECT_TIMEOUT = 5


def escape_double_quoted(command: str) -> str:
    """Escape ``command`` for use inside a double-quoted shell word."""
    for ch in ("\\", '"', "$", "`"):
        command = command.replace(ch, "\\" + ch)
    return command


class Executor(ABC):
    """Uniform command runner for one execution context."""

    is_remote: bool = False

    def __init__(self, work_dir: str) -> None:
        self._work_dir = work_dir

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def work_dir(self) -> str:
        return self._work_dir

    @property
    @abstractmethod
    def label(self) -> str:
        """Short name for messages ("local" or the host spec)."""

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def _shell_command(self, command: str) -> str:
        """The full shell command line that runs ``command`` in this context."""

    @abstractmethod
    def _spawn_argv(self, args: Sequence[str], tty: bool) -> list[str]:
        """The argv that runs ``args`` in this context."""

    def _cwd(self) -> str | None:
        return None

    # ------------------------------------------------------------------
    # Exec
    # ------------------------------------------------------------------
    def exec(
        self,
        command: str,
        stream: bool = False,
        ignore_error: bool = False,
        input_data: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """Run a shell command and return its stripped stdout.

        Args:
            command: Shell command to run.
            stream: Inherit the terminal instead of capturing output.
                The return value is then ``""``.
            ignore_error: Return ``""`` instead of raising on failure.
            input_data: Text fed to the command's stdin.
            timeout: Seconds before the command is killed.

        Raises:
            CommandFailed: non-zero exit (unless ``ignore_error``).
            LaunchFailed: the shell could not be started (unless ``ignore_error``).
        """
        full = self._shell_command(command)
        logger.debug(
            "exec", extra={"fields": {"command": command, "remote": self.is_remote}}
        )

        try:
            result = subprocess.run(
                full,
                shell=True,
                cwd=self._cwd(),
                capture_output=not stream,
                text=True,
                encoding="utf-8",
                errors="replace",
                input=input_data,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            if ignore_error:
                return ""
            raise CommandFailed(-1, f"timed out after {exc.timeout}s", command) from exc
        except OSError as exc:
            if ignore_error:
                return ""
            raise LaunchFailed(f"Failed to run command: {exc}") from exc

        if result.returncode != 0:
            logger.debug(
                "exec failed",
                extra={"fields": {"command": command, "exit_code": result.returncode}},
            )
            if ignore_error:
                return ""
            raise CommandFailed(result.returncode, result.stderr or "", command)

        return (result.stdout or "").strip()

    # ------------------------------------------------------------------
    # Spawn
    # ------------------------------------------------------------------
    def spawn(self, args: Sequence[str], tty: bool = False) -> subprocess.Popen:
        """Start ``args`` as a child process attached to this terminal.

        Raises:
            LaunchFailed: the process could not be started.
        """
        argv = self._spawn_argv(args, tty)
        logger.debug("spawn", extra={"fields": {"argv": " ".join(argv)}})
        try:
            return subprocess.Popen(argv, cwd=self._cwd())
        except OSError as exc:
            raise LaunchFailed(f"Failed to start {argv[0]}: {exc}") from exc

    def run_interactive(self, args: Sequence[str], tty: bool = True) -> int:
        """Hand the terminal to ``args`` and return its exit code."""
        proc = self.spawn(args, tty=tty)
        try:
            return proc.wait()
        except KeyboardInterrupt:
            proc.wait()
            raise

    # ------------------------------------------------------------------
    # Reachability
    # ------------------------------------------------------------------
    def is_reachable(self) -> bool:
        return True

    def require_reachable(self) -> None:
        """Raise ``Unreachable`` unless the context answers."""
        if not self.is_reachable():
            raise Unreachable(self.label)


# ---------------------------------------------------------------------------
# LocalExecutor
# ---------------------------------------------------------------------------
class LocalExecutor(Executor):
    """Runs commands on this machine from the ccc data directory."""

    is_remote = False

    def __init__(self, work_dir: Path | str | None = None) -> None:
        super().__init__(str(work_dir or CCC_HOME))

    @property
    def label(self) -> str:
        return "local"

    def _cwd(self) -> str | None:
        return self.work_dir

    def _shell_command(self, command: str) -> str:
        return command

    def _spawn_argv(self, args: Sequence[str], tty: bool) -> list[str]:
        return list(args)


# ---------------------------------------------------------------------------
# RemoteExecutor
# ---------------------------------------------------------------------------
class RemoteExecutor(Executor):
    """Runs commands on an SSH host from ``remote_dir``."""

    is_remote = True

    def __init__(self, host: str, remote_dir: str = DEFAULT_REMOTE_DIR) -> None:
        self.host = validate_host(host)
        super().__init__(remote_dir)

    @property
    def label(self) -> str:
        return self.host

    def _shell_command(self, command: str) -> str:
        remote_cmd = f"cd {self.work_dir} && {command}"
        return f'ssh {self.host} "{escape_double_quoted(remote_cmd)}"'

    def _spawn_argv(self, args: Sequence[str], tty: bool) -> list[str]:
        remote_cmd = f"cd {self.work_dir} && " + " ".join(shlex.quote(a) for a in args)
        argv = ["ssh"]
        if tty:
            argv.append("-t")
        argv.extend([self.host, remote_cmd])
        return argv

    def is_reachable(self) -> bool:
        """Probe the host with a non-interactive ``echo ok``."""
        cmd = [
            "ssh",
            "-o",
            "BatchMode=yes",
            "-o",
            f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
            self.host,
            "echo ok",
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=SSH_CONNECT_TIMEOUT * 3,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.debug("SSH probe failed for %s: %s", self.host, exc)
            return False
        return result.returncode == 0 and "ok" in (result.stdout or "")


def create_executor(host: str | None, work_dir: Path | str | None = None) -> Executor:
    """Local executor for ``None``, remote executor for a host spec."""
    if host is None:
        return LocalExecutor(work_dir)
    return RemoteExecutor(host, str(work_dir) if work_dir else DEFAULT_REMOTE_DIR)
