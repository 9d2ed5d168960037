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
"""Load enabled extensions from ~/.config/ccc/extensions/*.yaml."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from ccc.config import CONFIG_DIR
from ccc.extensions.templates import (
    ExtensionTemplate,
    get_available_extension_templates,
    get_extension_template,
)
from ccc.extensions.types import Extension, ExtensionConfigError, ExtensionType

logger = logging.getLogger("ccc.extensions.loader")

EXTENSIONS_DIR = CONFIG_DIR / "extensions"


def _extensions_dir(extensions_dir: Path | str | None) -> Path:
    return Path(extensions_dir) if extensions_dir else EXTENSIONS_DIR


def load_extensions(extensions_dir: Path | str | None = None) -> dict[str, Extension]:
    """Return enabled extensions keyed by name.  Invalid files are skipped."""
    directory = _extensions_dir(extensions_dir)
    extensions: dict[str, Extension] = {}
    if not directory.is_dir():
        return extensions

    for path in sorted(directory.glob("*.yaml")):
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            ext = Extension.from_dict(data)
        except (OSError, yaml.YAMLError, ExtensionConfigError) as exc:
            logger.warning("Skipping extension definition %s: %s", path.name, exc)
            continue
        extensions[ext.name] = ext
    return extensions


def load_extensions_by_type(
    ext_type: ExtensionType, extensions_dir: Path | str | None = None
) -> list[Extension]:
    return [e for e in load_extensions(extensions_dir).values() if e.type == ext_type]


def list_available_extensions(ext_type: ExtensionType | None = None) -> list[ExtensionTemplate]:
    templates = get_available_extension_templates()
    if ext_type is None:
        return templates
    return [t for t in templates if t.type == ext_type]


def enable_extensions(names: list[str], extensions_dir: Path | str | None = None) -> list[str]:
    directory = _extensions_dir(extensions_dir)
    directory.mkdir(parents=True, exist_ok=True)

    enabled = []
    for name in names:
        template = get_extension_template(name)
        if template is None:
            logger.warning("Unknown extension template: %s", name)
            continue
        (directory / f"{name}.yaml").write_text(template.content, encoding="utf-8")
        enabled.append(name)
    return enabled


def disable_extension(name: str, extensions_dir: Path | str | None = None) -> bool:
    path = _extensions_dir(extensions_dir) / f"{name}.yaml"
    if path.exists():
        path.unlink()
        return True
    return False


def is_extension_enabled(name: str, extensions_dir: Path | str | None = None) -> bool:
    return (_extensions_dir(extensions_dir) / f"{name}.yaml").exists()
