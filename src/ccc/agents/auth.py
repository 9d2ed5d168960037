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
"""In-container agent probes: is it installed, is it logged in.

Both probes are fail-soft.  Any error while probing means "no".
"""

from __future__ import annotations

import logging
import shlex

from ccc.agents.types import Agent
from ccc.deploy.executor import Executor

logger = logging.getLogger("ccc.agents.auth")


def check_agent_installed(executor: Executor, container: str, agent: Agent) -> bool:
    """Run the agent's ``version_cmd`` inside the container."""
    cmd = f"docker exec {container} sh -c {shlex.quote(agent.version_cmd)} >/dev/null 2>&1"
    try:
        executor.exec(cmd)
    except Exception as exc:
        logger.debug("Agent %s not installed: %s", agent.name, exc)
        return False
    return True


def check_agent_authenticated(executor: Executor, container: str, agent: Agent) -> bool:
    """True when every auth ``check_files`` entry exists in the container.

    Agents with ``auth.method: none`` are always authenticated.  Agents with
    no check files cannot be verified and count as not authenticated.
    """
    if agent.auth.method == "none":
        return True
    if not agent.auth.check_files:
        return False

    # ~ must expand inside the container, so it is rewritten to $HOME
    tests = " && ".join(
        "test -f " + _container_path(path) for path in agent.auth.check_files
    )
    cmd = f"docker exec {container} sh -c {shlex.quote(tests)}"
    try:
        executor.exec(cmd)
    except Exception as exc:
        logger.debug("Agent %s not authenticated: %s", agent.name, exc)
        return False
    return True


def _container_path(path: str) -> str:
    if path.startswith("~/"):
        return '"$HOME"/' + shlex.quote(path[2:])
    return shlex.quote(path)
