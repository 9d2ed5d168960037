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
"""Skill extensions: markdown files in a shared ~/.ccc/skills directory."""

from __future__ import annotations

import logging
from pathlib import Path

from ccc.config import CCC_HOME
from ccc.extensions.types import Extension

logger = logging.getLogger("ccc.extensions.skills_manager")

SKILLS_DIR = CCC_HOME / "skills"


def _skills_dir(skills_dir: Path | str | None) -> Path:
    return Path(skills_dir) if skills_dir else SKILLS_DIR


def _skill_path(ext: Extension, skills_dir: Path | str | None) -> Path | None:
    if ext.skill is None:
        return None
    # Skill files stay inside the skills directory
    name = Path(ext.skill.filename).name
    if not name or name != ext.skill.filename:
        logger.warning("Rejecting skill filename outside skills dir: %s", ext.skill.filename)
        return None
    return _skills_dir(skills_dir) / name


def install_skill(ext: Extension, skills_dir: Path | str | None = None) -> bool:
    path = _skill_path(ext, skills_dir)
    if path is None:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(ext.skill.content.strip() + "\n", encoding="utf-8")
    logger.info("Skill installed", extra={"fields": {"skill": path.name}})
    return True


def remove_skill(ext: Extension, skills_dir: Path | str | None = None) -> bool:
    path = _skill_path(ext, skills_dir)
    if path is None or not path.exists():
        return False
    path.unlink()
    return True


def list_installed_skills(skills_dir: Path | str | None = None) -> list[str]:
    directory = _skills_dir(skills_dir)
    if not directory.is_dir():
        return []
    return sorted(p.name for p in directory.glob("*.md"))
