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
"""Agent definition schema.

An agent definition is a YAML document under ~/.config/ccc/agents/::

    name: claude
    description: Anthropic Claude Code
    install_cmd: npm install -g @anthropic-ai/claude-code
    version_cmd: claude --version
    run_cmd: claude
    skip_permissions_flag: --dangerously-skip-permissions
    firewall:
      domains: [api.anthropic.com]
    auth:
      method: oauth
      check_files: [~/.claude/.credentials.json]
    mcp:
      config_path: ~/.claude.json
      format: claude
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

REQUIRED_FIELDS = ("name", "install_cmd", "run_cmd", "version_cmd")
AUTH_METHODS = ("oauth", "api_key", "none")
MCP_FORMATS = ("claude", "codex", "gemini", "opencode")


class AgentConfigError(ValueError):
    """Raised when an agent definition is missing required fields."""


@dataclass
class AuthSettings:
    method: str = "none"
    instructions: str = ""
    check_files: list[str] = field(default_factory=list)


@dataclass
class McpSettings:
    config_path: str
    format: str


@dataclass
class SkillsSettings:
    path: str
    format: str = "markdown"


@dataclass
class Agent:
    """A coding agent that can be installed and run inside the container."""

    name: str
    install_cmd: str
    version_cmd: str
    run_cmd: str
    description: str = ""
    firewall_domains: list[str] = field(default_factory=list)
    skip_permissions_flag: str | None = None
    config_path: str | None = None
    auth: AuthSettings = field(default_factory=AuthSettings)
    mcp: McpSettings | None = None
    skills: SkillsSettings | None = None

    @property
    def auth_instructions(self) -> str:
        return self.auth.instructions or f"Run '{self.run_cmd}' to authenticate."

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        """Build an Agent from a parsed definition.

        Raises:
            AgentConfigError: a required field is missing or empty.
        """
        if not isinstance(data, dict):
            raise AgentConfigError("agent definition must be a mapping")
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise AgentConfigError(f"missing required fields: {', '.join(missing)}")

        firewall = data.get("firewall") or {}
        auth = data.get("auth") or {}
        mcp = data.get("mcp") or None
        skills = data.get("skills") or None

        method = auth.get("method", "none")
        if method not in AUTH_METHODS:
            raise AgentConfigError(f"unknown auth method: {method}")

        return cls(
            name=str(data["name"]),
            install_cmd=str(data["install_cmd"]),
            version_cmd=str(data["version_cmd"]),
            run_cmd=str(data["run_cmd"]),
            description=data.get("description") or str(data["name"]),
            firewall_domains=list(firewall.get("domains") or []),
            skip_permissions_flag=data.get("skip_permissions_flag"),
            config_path=data.get("config_path"),
            auth=AuthSettings(
                method=method,
                instructions=auth.get("instructions") or "",
                check_files=list(auth.get("check_files") or []),
            ),
            mcp=McpSettings(config_path=mcp["config_path"], format=mcp["format"])
            if mcp and mcp.get("config_path") and mcp.get("format")
            else None,
            skills=SkillsSettings(
                path=skills["path"], format=skills.get("format", "markdown")
            )
            if skills and skills.get("path")
            else None,
        )
