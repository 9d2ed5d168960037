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
"""Extension definition schema.

Three kinds of extension:

  host   -- a daemon started inside the container (e.g. the takopi bot)
  mcp    -- an MCP server registered with every MCP-capable agent
  skill  -- a markdown skill file shared by every skills-capable agent
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExtensionType(str, Enum):
    HOST = "host"
    MCP = "mcp"
    SKILL = "skill"


class ExtensionConfigError(ValueError):
    """Raised when an extension definition is invalid."""


@dataclass
class McpServer:
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class SkillFile:
    filename: str
    content: str


@dataclass
class Extension:
    name: str
    type: ExtensionType = ExtensionType.HOST
    description: str = ""
    firewall_domains: list[str] = field(default_factory=list)
    install_cmd: str | None = None
    run_cmd: str | None = None
    mcp: McpServer | None = None
    skill: SkillFile | None = None

    @property
    def binary_name(self) -> str:
        """Process name used to find a running host extension."""
        if not self.run_cmd or not self.run_cmd.split():
            return self.name
        return self.run_cmd.split()[0].rsplit("/", 1)[-1] or self.name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Extension:
        if not isinstance(data, dict):
            raise ExtensionConfigError("extension definition must be a mapping")
        if not data.get("name"):
            raise ExtensionConfigError("missing required field: name")

        try:
            ext_type = ExtensionType(data.get("type") or "host")
        except ValueError as exc:
            raise ExtensionConfigError(f"unknown extension type: {data.get('type')}") from exc

        firewall = data.get("firewall") or {}
        mcp = data.get("mcp")
        skill = data.get("skill")

        if mcp is not None and not (isinstance(mcp, dict) and mcp.get("command")):
            raise ExtensionConfigError("mcp section requires a command")
        if skill is not None and not (
            isinstance(skill, dict) and skill.get("filename") and "content" in skill
        ):
            raise ExtensionConfigError("skill section requires filename and content")

        return cls(
            name=str(data["name"]),
            type=ext_type,
            description=data.get("description") or str(data["name"]),
            firewall_domains=list(firewall.get("domains") or []),
            install_cmd=data.get("install_cmd"),
            run_cmd=data.get("run_cmd"),
            mcp=McpServer(
                command=mcp["command"],
                args=[str(a) for a in mcp.get("args") or []],
                env={str(k): str(v) for k, v in (mcp.get("env") or {}).items()},
            )
            if mcp
            else None,
            skill=SkillFile(filename=skill["filename"], content=str(skill["content"]))
            if skill
            else None,
        )
