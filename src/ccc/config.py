# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of ccc.
#
# ccc is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""CLI configuration: remotes, default target, user firewall rules.

Config location: ~/.config/ccc/config.yaml

The file is re-read on every call through ``ConfigStore.load()`` and
written back with ``ConfigStore.save()``; nothing is kept in memory
between CLI invocations.

Example::

    default: "@box"
    default_agent: claude
    container_name: ccc
    remotes:
      box:
        host: dev@192.168.1.100
        alias: [vps]
    firewall:
      domains:
        - custom.example.com
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ccc.errors import InvalidHostSpec, UnknownRemote

logger = logging.getLogger("ccc.config")

# ---------------------------------------------------------------------------
# Default paths
# ---------------------------------------------------------------------------
CCC_HOME = Path(os.environ.get("CCC_HOME", Path.home() / ".ccc"))
CONFIG_DIR = Path(os.environ.get("CCC_CONFIG_DIR", Path.home() / ".config" / "ccc"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"

LOCAL_TARGET = "local"
DEFAULT_CONTAINER_NAME = "ccc"

# ---------------------------------------------------------------------------
# Host spec grammar: [user@]host
# ---------------------------------------------------------------------------
_USER_PATTERN = re.compile(r"^[A-Za-z0-9._~-]+$")
_HOSTNAME_PATTERN = re.compile(r"^[A-Za-z0-9._~:%\-\[\]]+$")


def validate_host(host: str) -> str:
    """Check a ``[user@]host`` spec before it is used in any command.

    Returns the spec unchanged.

    Raises:
        InvalidHostSpec: empty value, more than one ``@``, an empty part,
            a leading ``-`` (would be read as an ssh option) or a character
            outside the allowed set.
    """
    if not isinstance(host, str) or not host:
        raise InvalidHostSpec(str(host or ""), "empty value")

    if host.startswith("-"):
        raise InvalidHostSpec(host, "must not start with '-'")

    parts = host.split("@")
    if len(parts) > 2:
        raise InvalidHostSpec(host, "more than one '@'")

    if len(parts) == 2:
        user, hostname = parts
        if not user or not hostname:
            raise InvalidHostSpec(host, "empty user or host")
        if not _USER_PATTERN.match(user):
            raise InvalidHostSpec(host, "invalid user")
    else:
        hostname = parts[0]

    if not _HOSTNAME_PATTERN.match(hostname):
        raise InvalidHostSpec(host, "invalid hostname")

    return host


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------
@dataclass
class RemoteConfig:
    """A registered remote host, addressed as ``@name`` or ``@alias``."""

    host: str
    alias: list[str] = field(default_factory=list)

    def matches(self, name: str, target: str) -> bool:
        """True if ``target`` (``@x`` form) names this remote or one of its aliases."""
        if target == f"@{name}":
            return True
        return any(_at(a) == target for a in self.alias)


@dataclass
class CccConfig:
    """Full CLI configuration."""

    default: str = LOCAL_TARGET
    default_agent: str | None = None
    remotes: dict[str, RemoteConfig] = field(default_factory=dict)

    # User-added firewall rules, merged with agent and extension domains
    firewall_domains: list[str] = field(default_factory=list)

    container_name: str = DEFAULT_CONTAINER_NAME
    output_dir: str = str(CCC_HOME)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "default": self.default,
            "container_name": self.container_name,
            "output_dir": self.output_dir,
            "remotes": {
                name: {"host": r.host, "alias": list(r.alias)} if r.alias else {"host": r.host}
                for name, r in self.remotes.items()
            },
            "firewall": {"domains": list(self.firewall_domains)},
        }
        if self.default_agent:
            data["default_agent"] = self.default_agent
        return data


def _at(name: str) -> str:
    return name if name.startswith("@") else f"@{name}"


def _parse_config(raw: dict) -> CccConfig:
    """Parse a raw YAML dict into CccConfig, dropping malformed entries."""
    remotes: dict[str, RemoteConfig] = {}
    for name, entry in (raw.get("remotes") or {}).items():
        if isinstance(entry, str):
            remotes[str(name)] = RemoteConfig(host=entry)
        elif isinstance(entry, dict) and isinstance(entry.get("host"), str):
            alias = entry.get("alias") or []
            if isinstance(alias, str):
                alias = [alias]
            remotes[str(name)] = RemoteConfig(
                host=entry["host"], alias=[str(a) for a in alias]
            )
        else:
            logger.warning("Ignoring malformed remote entry: %s", name)

    firewall = raw.get("firewall") or {}
    domains = firewall.get("domains", []) if isinstance(firewall, dict) else []
    if not isinstance(domains, list):
        domains = []

    return CccConfig(
        default=raw.get("default") or LOCAL_TARGET,
        default_agent=raw.get("default_agent") or None,
        remotes=remotes,
        firewall_domains=[d for d in domains if isinstance(d, str) and d.strip()],
        container_name=raw.get("container_name") or DEFAULT_CONTAINER_NAME,
        output_dir=raw.get("output_dir") or str(CCC_HOME),
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class ConfigStore:
    """YAML-backed config repository.

    Holds only the file path.  Every ``load()`` reads the file again.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else DEFAULT_CONFIG_PATH

    def load(self) -> CccConfig:
        """Load the config, falling back to defaults if missing or unreadable."""
        if not self.path.exists():
            return CccConfig()

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not parse config file %s: %s -- using defaults", self.path, exc)
            return CccConfig()

        if raw is None:
            return CccConfig()
        if not isinstance(raw, dict):
            logger.warning("Invalid config (not a mapping) in %s -- using defaults", self.path)
            return CccConfig()
        return _parse_config(raw)

    def save(self, config: CccConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
        logger.debug("Saved config to %s", self.path)


def load_config(path: Path | str | None = None) -> CccConfig:
    return ConfigStore(path).load()


def save_config(config: CccConfig, path: Path | str | None = None) -> None:
    ConfigStore(path).save(config)


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------
def resolve_target(target: str | None = None, store: ConfigStore | None = None) -> str | None:
    """Turn a CLI target into an SSH host spec, or ``None`` for local.

    ``None`` uses the configured default.  ``local`` is local.  A bare
    ``user@host`` is used directly.  ``@name`` / ``name`` is looked up among
    remote names and aliases.

    Raises:
        InvalidHostSpec: the resulting host spec fails validation.
        UnknownRemote: no remote matches; never falls back to local.
    """
    store = store or ConfigStore()
    config = store.load()

    if not target:
        target = config.default or LOCAL_TARGET

    if target == LOCAL_TARGET:
        return None

    if "@" in target and not target.startswith("@"):
        return validate_host(target)

    wanted = _at(target)
    for name, remote in config.remotes.items():
        if remote.matches(name, wanted):
            return validate_host(remote.host)

    raise UnknownRemote(target)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def add_remote(
    name: str,
    host: str,
    aliases: list[str] | None = None,
    store: ConfigStore | None = None,
) -> RemoteConfig:
    """Register (or replace) a remote.  The host is validated first."""
    validate_host(host)
    store = store or ConfigStore()
    config = store.load()
    remote = RemoteConfig(host=host, alias=list(aliases or []))
    config.remotes[name.lstrip("@")] = remote
    store.save(config)
    logger.info("Remote added", extra={"fields": {"name": name, "host": host}})
    return remote


def remove_remote(name: str, store: ConfigStore | None = None) -> bool:
    """Remove a remote.  A default pointing at it falls back to local."""
    store = store or ConfigStore()
    config = store.load()
    name = name.lstrip("@")
    if name not in config.remotes:
        return False

    del config.remotes[name]
    if config.default == f"@{name}":
        config.default = LOCAL_TARGET
    store.save(config)
    logger.info("Remote removed", extra={"fields": {"name": name}})
    return True


def list_remotes(store: ConfigStore | None = None) -> dict[str, RemoteConfig]:
    return (store or ConfigStore()).load().remotes


def set_default(target: str, store: ConfigStore | None = None) -> None:
    store = store or ConfigStore()
    config = store.load()
    config.default = target if target == LOCAL_TARGET else _at(target)
    store.save(config)


def set_default_agent(agent: str, store: ConfigStore | None = None) -> None:
    store = store or ConfigStore()
    config = store.load()
    config.default_agent = agent
    store.save(config)


def add_user_domain(domain: str, store: ConfigStore | None = None) -> bool:
    """Add a user firewall rule.  Returns False if it was already present."""
    store = store or ConfigStore()
    config = store.load()
    if domain in config.firewall_domains:
        return False
    config.firewall_domains.append(domain)
    store.save(config)
    return True


def remove_user_domain(domain: str, store: ConfigStore | None = None) -> bool:
    """Remove a user firewall rule.  Returns False if it was not present."""
    store = store or ConfigStore()
    config = store.load()
    if domain not in config.firewall_domains:
        return False
    config.firewall_domains = [d for d in config.firewall_domains if d != domain]
    store.save(config)
    return True
