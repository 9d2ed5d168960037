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
"""Load enabled agents from ~/.config/ccc/agents/*.yaml.

An agent is enabled when its definition file exists.  Enabling copies the
built-in template into the directory; disabling deletes the file.  Users
may edit the copied file or drop in their own definitions.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from ccc.agents.templates import AgentTemplate, get_available_templates, get_template
from ccc.agents.types import Agent, AgentConfigError
from ccc.config import CONFIG_DIR

logger = logging.getLogger("ccc.agents.loader")

AGENTS_DIR = CONFIG_DIR / "agents"


def _agents_dir(agents_dir: Path | str | None) -> Path:
    return Path(agents_dir) if agents_dir else AGENTS_DIR


def load_agents(agents_dir: Path | str | None = None) -> dict[str, Agent]:
    """Return enabled agents keyed by name.  Invalid files are skipped."""
    directory = _agents_dir(agents_dir)
    agents: dict[str, Agent] = {}
    if not directory.is_dir():
        return agents

    for path in sorted(directory.glob("*.yaml")):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            agent = Agent.from_dict(data)
        except (OSError, yaml.YAMLError, AgentConfigError) as exc:
            logger.warning("Skipping agent definition %s: %s", path.name, exc)
            continue
        agents[agent.name] = agent

    logger.debug("Loaded agents", extra={"fields": {"count": len(agents)}})
    return agents


def list_available_agents() -> list[AgentTemplate]:
    return get_available_templates()


def enable_agents(names: list[str], agents_dir: Path | str | None = None) -> list[str]:
    """Write the built-in template for each name.  Returns the names enabled."""
    directory = _agents_dir(agents_dir)
    directory.mkdir(parents=True, exist_ok=True)

    enabled = []
    for name in names:
        template = get_template(name)
        if template is None:
            logger.warning("Unknown agent template: %s", name)
            continue
        (directory / f"{name}.yaml").write_text(template.content, encoding="utf-8")
        enabled.append(name)
    return enabled


def disable_agent(name: str, agents_dir: Path | str | None = None) -> bool:
    path = _agents_dir(agents_dir) / f"{name}.yaml"
    if path.exists():
        path.unlink()
        return True
    return False


def is_agent_enabled(name: str, agents_dir: Path | str | None = None) -> bool:
    return (_agents_dir(agents_dir) / f"{name}.yaml").exists()
