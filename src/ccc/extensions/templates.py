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
"""Built-in extension definitions."""

from __future__ import annotations

from dataclasses import dataclass

import yaml

from ccc.extensions.types import ExtensionType

TAKOPI = """\
name: takopi
type: host
description: Telegram bot for driving agent sessions from your phone
install_cmd: uv tool install takopi
run_cmd: takopi
firewall:
  domains:
    - api.telegram.org
    - pypi.org
    - files.pythonhosted.org
"""

CONTEXT7 = """\
name: context7
type: mcp
description: Up-to-date library documentation for coding agents
firewall:
  domains:
    - mcp.context7.com
    - context7.com
mcp:
  command: npx
  args: ["-y", "@upstash/context7-mcp"]
"""

CODE_REVIEW = """\
name: code-review
type: skill
description: Structured code review checklist
skill:
  filename: code-review.md
  content: |
    # Code review

    Review the staged diff before committing.

    1. Read every changed file in full, not just the hunks.
    2. Check error paths: what happens when a call fails?
    3. Check that new behaviour has a test.
    4. Flag dead code, leftover debug output and unused imports.
    5. Summarise findings as a short list, most serious first.
"""


@dataclass(frozen=True)
class ExtensionTemplate:
    name: str
    type: ExtensionType
    description: str
    content: str


def _parse_template(content: str) -> ExtensionTemplate:
    parsed = yaml.safe_load(content)
    return ExtensionTemplate(
        name=parsed["name"],
        type=ExtensionType(parsed.get("type") or "host"),
        description=parsed.get("description") or parsed["name"],
        content=content,
    )


EXTENSION_TEMPLATES: tuple[ExtensionTemplate, ...] = tuple(
    _parse_template(c) for c in (TAKOPI, CONTEXT7, CODE_REVIEW)
)


def get_available_extension_templates() -> list[ExtensionTemplate]:
    return list(EXTENSION_TEMPLATES)


def get_extension_template(name: str) -> ExtensionTemplate | None:
    for template in EXTENSION_TEMPLATES:
        if template.name == name:
            return template
    return None
