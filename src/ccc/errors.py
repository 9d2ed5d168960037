# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of ccc.
#
# ccc is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""Exception hierarchy for ccc.

Probing code (container status) catches these and downgrades to a
negative value.  Action code (build, start, kill, ...) lets them reach
the CLI, which prints the message and exits non-zero.
"""

from __future__ import annotations


class CccError(Exception):
    """Base class for every error ccc reports to the operator."""


class InvalidHostSpec(CccError, ValueError):
    """Raised when a ``[user@]host`` string fails validation."""

    def __init__(self, host: str, reason: str = "") -> None:
        self.host = host
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid host: {host!r}{detail}")


class UnknownRemote(CccError):
    """Raised when a ``@name`` target is not in the remote registry."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(
            f"Unknown remote: {target}\n"
            "Use 'ccc remote add <name> <user@host>' to register a remote."
        )


class CommandFailed(CccError):
    """A command run through an executor exited non-zero."""

    def __init__(self, exit_code: int, stderr: str = "", command: str = "") -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        self.command = command
        msg = f"Command failed with exit code {exit_code}"
        if command:
            msg += f": {command}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class SessionNotFound(CommandFailed):
    """The session manager has no session with the requested name."""

    def __init__(
        self, session: str, exit_code: int = 1, stderr: str = "", command: str = ""
    ) -> None:
        self.session = session
        super().__init__(exit_code, stderr, command)
        self.args = (f"Session not found: {session}",)

    def __str__(self) -> str:
        return f"Session not found: {self.session}"


class LaunchFailed(CccError):
    """A child process could not be started at all."""


class Unreachable(CccError):
    """A remote host did not answer the connectivity probe."""

    def __init__(self, host: str) -> None:
        self.host = host
        super().__init__(f"Cannot connect to {host}")


class BuildFailed(CccError):
    """The image build exited non-zero."""

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        super().__init__(f"Build failed with code {exit_code}")


class ContainerNotRunning(CccError):
    """An operation that needs a running container found it stopped or absent."""

    def __init__(self, container_name: str) -> None:
        self.container_name = container_name
        super().__init__(f"Container '{container_name}' is not running")


class InvalidSessionName(CccError, ValueError):
    """A session name contains characters the session manager never uses."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid session name: {name!r}")
