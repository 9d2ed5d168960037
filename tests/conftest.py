"""Pytest configuration for ccc tests."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure src/ccc is importable
src_path = str(Path(__file__).parent.parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from ccc.agents.types import Agent  # noqa: E402
from ccc.config import ConfigStore  # noqa: E402
from ccc.deploy.executor import Executor  # noqa: E402


@pytest.fixture
def config_store(tmp_path):
    """ConfigStore backed by a temp file."""
    return ConfigStore(tmp_path / "config.yaml")


@pytest.fixture
def executor():
    """Executor double with call recording."""
    mock = MagicMock(spec=Executor)
    mock.is_remote = False
    mock.label = "local"
    mock.work_dir = "/tmp/ccc"
    mock.is_reachable.return_value = True
    mock.exec.return_value = ""
    mock.run_interactive.return_value = 0
    return mock


@pytest.fixture
def claude_agent():
    return Agent(
        name="claude",
        install_cmd="npm install -g @anthropic-ai/claude-code",
        version_cmd="claude --version",
        run_cmd="claude",
        firewall_domains=["api.anthropic.com"],
        skip_permissions_flag="--dangerously-skip-permissions",
    )
