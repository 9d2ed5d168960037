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
"""Built-in agent definitions, written out by ``ccc agent enable``."""

from __future__ import annotations

from dataclasses import dataclass

import yaml

CLAUDE = """\
name: claude
description: Anthropic Claude Code
install_cmd: npm install -g @anthropic-ai/claude-code
version_cmd: claude --version
run_cmd: claude
skip_permissions_flag: --dangerously-skip-permissions
config_path: ~/.claude
firewall:
  domains:
    - api.anthropic.com
    - statsig.anthropic.com
    - sentry.io
    - registry.npmjs.org
auth:
  method: oauth
  instructions: Run 'claude' inside the container and follow the login prompt.
  check_files:
    - ~/.claude/.credentials.json
mcp:
  config_path: ~/.claude.json
  format: claude
skills:
  path: .claude/skills
  format: markdown
"""

CODEX = """\
name: codex
description: OpenAI Codex CLI
install_cmd: npm install -g @openai/codex
version_cmd: codex --version
run_cmd: codex
skip_permissions_flag: --dangerously-bypass-approvals-and-sandbox
config_path: ~/.codex
firewall:
  domains:
    - api.openai.com
    - auth.openai.com
    - chatgpt.com
    - registry.npmjs.org
auth:
  method: oauth
  instructions: Run 'codex login' inside the container.
  check_files:
    - ~/.codex/auth.json
mcp:
  config_path: ~/.codex/config.toml
  format: codex
"""

GEMINI = """\
name: gemini
description: Google Gemini CLI
install_cmd: npm install -g @google/gemini-cli
version_cmd: gemini --version
run_cmd: gemini
skip_permissions_flag: --yolo
config_path: ~/.gemini
firewall:
  domains:
    - generativelanguage.googleapis.com
    - oauth2.googleapis.com
    - accounts.google.com
    - cloudcode-pa.googleapis.com
    - registry.npmjs.org
auth:
  method: oauth
  instructions: Run 'gemini' inside the container and choose "Login with Google".
  check_files:
    - ~/.gemini/oauth_creds.json
mcp:
  config_path: ~/.gemini/settings.json
  format: gemini
"""

OPENCODE = """\
name: opencode
description: OpenCode terminal agent
install_cmd: npm install -g opencode-ai
version_cmd: opencode --version
run_cmd: opencode
config_path: ~/.config/opencode
firewall:
  domains:
    - opencode.ai
    - models.dev
    - api.anthropic.com
    - api.openai.com
    - registry.npmjs.org
auth:
  method: api_key
  instructions: Run 'opencode auth login' inside the container.
  check_files:
    - ~/.local/share/opencode/auth.json
mcp:
  config_path: ~/.config/opencode/opencode.json
  format: opencode
"""


@dataclass(frozen=True)
class AgentTemplate:
    name: str
    description: str
    content: str


def _parse_template(content: str) -> AgentTemplate:
    parsed = yaml.safe_load(content)
    return AgentTemplate(
        name=parsed["name"],
        description=parsed.get("description") or parsed["name"],
        content=content,
    )


AGENT_TEMPLATES: tuple[AgentTemplate, ...] = tuple(
    _parse_template(c) for c in (CLAUDE, CODEX, GEMINI, OPENCODE)
)


def get_available_templates() -> list[AgentTemplate]:
    return list(AGENT_TEMPLATES)


def get_template(name: str) -> AgentTemplate | None:
    for template in AGENT_TEMPLATES:
        if template.name == name:
            return template
    return None
