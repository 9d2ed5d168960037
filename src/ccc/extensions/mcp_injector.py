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
"""Register MCP extensions with each agent's MCP config document.

Documents live on the host at ~/.ccc/mcp-configs/<agent>.json and are
mounted into the container.  Each agent ``mcp.format`` has a pair of pure
transforms (inject, remove) in ``MCP_FORMATS``:

    claude, gemini   {"mcpServers": {name: {command, args, env}}}
    opencode         {"mcp": {name: {type: "local", command: [cmd, *args],
                                     enabled: true, environment}}}

codex keeps its MCP config in TOML and is configured with ``codex mcp add``.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from ccc.agents.types import Agent
from ccc.config import CCC_HOME
from ccc.extensions.types import Extension, McpServer

logger = logging.getLogger("ccc.extensions.mcp_injector")

MCP_CONFIGS_DIR = CCC_HOME / "mcp-configs"

McpDocument = dict[str, Any]


# ---------------------------------------------------------------------------
# Format transforms
# ---------------------------------------------------------------------------
def inject_mcp_servers(doc: McpDocument, name: str, server: McpServer) -> McpDocument:
    result = copy.deepcopy(doc)
    entry: dict[str, Any] = {"command": server.command}
    if server.args:
        entry["args"] = list(server.args)
    if server.env:
        entry["env"] = dict(server.env)
    servers = result.get("mcpServers")
    if not isinstance(servers, dict):
        servers = result["mcpServers"] = {}
    servers[name] = entry
    return result


def remove_mcp_servers(doc: McpDocument, name: str) -> McpDocument:
    result = copy.deepcopy(doc)
    servers = result.get("mcpServers")
    if isinstance(servers, dict):
        servers.pop(name, None)
    return result


def inject_opencode(doc: McpDocument, name: str, server: McpServer) -> McpDocument:
    result = copy.deepcopy(doc)
    entry: dict[str, Any] = {
        "type": "local",
        "command": [server.command, *server.args],
        "enabled": True,
    }
    if server.env:
        entry["environment"] = dict(server.env)
    servers = result.get("mcp")
    if not isinstance(servers, dict):
        servers = result["mcp"] = {}
    servers[name] = entry
    return result


def remove_opencode(doc: McpDocument, name: str) -> McpDocument:
    result = copy.deepcopy(doc)
    servers = result.get("mcp")
    if isinstance(servers, dict):
        servers.pop(name, None)
    return result


MCP_FORMATS: dict[
    str,
    tuple[
        Callable[[McpDocument, str, McpServer], McpDocument],
        Callable[[McpDocument, str], McpDocument],
    ],
] = {
    "claude": (inject_mcp_servers, remove_mcp_servers),
    "gemini": (inject_mcp_servers, remove_mcp_servers),
    "opencode": (inject_opencode, remove_opencode),
}

UNSUPPORTED_FORMATS = {
    "codex": "Codex MCP config requires TOML format. Use 'codex mcp add' to configure.",
}


# ---------------------------------------------------------------------------
# Document storage
# ---------------------------------------------------------------------------
def mcp_config_path(agent: Agent, configs_dir: Path | str | None = None) -> Path:
    return Path(configs_dir or MCP_CONFIGS_DIR) / f"{agent.name}.json"


def _read_document(path: Path) -> McpDocument:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable MCP config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _write_document(path: Path, doc: McpDocument) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc, indent=2), encoding="utf-8")


def _strategy(agent: Agent):
    if agent.mcp is None:
        return None
    fmt = agent.mcp.format
    if fmt in UNSUPPORTED_FORMATS:
        logger.warning(UNSUPPORTED_FORMATS[fmt])
        return None
    strategy = MCP_FORMATS.get(fmt)
    if strategy is None:
        logger.warning("Unknown MCP format for %s: %s", agent.name, fmt)
    return strategy


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def inject_mcp_config(
    agent: Agent, extension: Extension, configs_dir: Path | str | None = None
) -> bool:
    """Add ``extension`` to ``agent``'s MCP document.  False if unsupported."""
    if extension.mcp is None:
        return False
    strategy = _strategy(agent)
    if strategy is None:
        return False

    inject, _ = strategy
    path = mcp_config_path(agent, configs_dir)
    _write_document(path, inject(_read_document(path), extension.name, extension.mcp))
    logger.info("MCP server registered", extra={"fields": {"agent": agent.name, "server": extension.name}})
    return True


def remove_mcp_config(
    agent: Agent, extension_name: str, configs_dir: Path | str | None = None
) -> bool:
    """Remove ``extension_name`` from ``agent``'s MCP document."""
    strategy = _strategy(agent)
    if strategy is None:
        return False
    path = mcp_config_path(agent, configs_dir)
    if not path.exists():
        return False

    _, remove = strategy
    _write_document(path, remove(_read_document(path), extension_name))
    return True


def inject_mcp_config_to_all(
    agents: Iterable[Agent], extension: Extension, configs_dir: Path | str | None = None
) -> list[str]:
    return [a.name for a in agents if inject_mcp_config(a, extension, configs_dir)]


def remove_mcp_config_from_all(
    agents: Iterable[Agent], extension_name: str, configs_dir: Path | str | None = None
) -> list[str]:
    return [a.name for a in agents if remove_mcp_config(a, extension_name, configs_dir)]
