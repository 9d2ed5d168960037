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
"""Domain registry for the container firewall.

Three independent places declare outbound domains:

  * agent definitions     (``firewall_domains`` in ~/.config/ccc/agents/*.yaml)
  * enabled extensions    (``firewall_domains`` in ~/.config/ccc/extensions/*.yaml)
  * user rules            (``firewall.domains`` in ~/.config/ccc/config.yaml)

The allowed set is the plain union of all of them.  A domain declared by
two sources is allowed once; removing it from one source keeps it allowed
as long as another still declares it.  Matching is exact and
case-sensitive.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger("ccc.firewall.registry")

_DOMAIN_PATTERN = re.compile(r"^[A-Za-z0-9.-]+$")


class SourceKind(str, Enum):
    """Where a set of firewall domains came from."""

    AGENT = "agent"
    EXTENSION = "extension"
    USER = "user"


@dataclass(frozen=True)
class DomainSource:
    """One contributor of firewall domains.

    ``name`` is the agent or extension name; ``None`` for user rules.
    ``ext_type`` is only set for extensions (host, mcp, skill).
    """

    kind: SourceKind
    domains: tuple[str, ...]
    name: str | None = None
    ext_type: str | None = None

    @classmethod
    def from_agent(cls, agent: Any) -> DomainSource:
        return cls(
            kind=SourceKind.AGENT,
            name=agent.name,
            domains=_clean(getattr(agent, "firewall_domains", None)),
        )

    @classmethod
    def from_extension(cls, ext: Any) -> DomainSource:
        ext_type = getattr(ext, "type", None)
        return cls(
            kind=SourceKind.EXTENSION,
            name=ext.name,
            ext_type=getattr(ext_type, "value", ext_type),
            domains=_clean(getattr(ext, "firewall_domains", None)),
        )

    @classmethod
    def from_user(cls, domains: Iterable[str] | None) -> DomainSource:
        return cls(kind=SourceKind.USER, domains=_clean(domains))

    @property
    def label(self) -> str:
        if self.kind == SourceKind.USER:
            return "user"
        if self.kind == SourceKind.EXTENSION and self.ext_type:
            return f"extension:{self.name} ({self.ext_type})"
        return f"{self.kind.value}:{self.name}"


def is_valid_domain(value: Any) -> bool:
    """True for a non-empty string of hostname characters."""
    return isinstance(value, str) and bool(_DOMAIN_PATTERN.match(value))


def _clean(domains: Iterable[Any] | None) -> tuple[str, ...]:
    if not domains or isinstance(domains, str):
        return ()
    result = []
    for d in domains:
        if is_valid_domain(d):
            result.append(d)
        else:
            logger.debug("Dropping malformed domain entry: %r", d)
    return tuple(result)


# ---------------------------------------------------------------------------
# Union
# ---------------------------------------------------------------------------
def collect_sources(
    agents: Iterable[Any] = (),
    extensions: Iterable[Any] = (),
    user_domains: Iterable[str] | None = None,
) -> list[DomainSource]:
    """Wrap agents, extensions and user rules as DomainSource values."""
    sources = [DomainSource.from_agent(a) for a in agents]
    sources.extend(DomainSource.from_extension(e) for e in extensions)
    sources.append(DomainSource.from_user(user_domains))
    return sources


def merge_sources(sources: Iterable[DomainSource]) -> set[str]:
    allowed: set[str] = set()
    for source in sources:
        allowed.update(source.domains)
    return allowed


def compute_allowed_domains(
    agents: Iterable[Any] = (),
    extensions: Iterable[Any] = (),
    user_domains: Iterable[str] | None = None,
) -> set[str]:
    """Return the de-duplicated union of every declared domain.

    Each input may be empty.  Agents and extensions are any objects with
    ``name`` and ``firewall_domains`` attributes.  Malformed entries
    (non-strings, blanks, non-hostname characters) are skipped.
    """
    allowed = merge_sources(collect_sources(agents, extensions, user_domains))
    logger.debug("Computed allowlist", extra={"fields": {"domains": len(allowed)}})
    return allowed


def domain_origins(sources: Iterable[DomainSource]) -> dict[str, list[str]]:
    """Map each domain to the labels of the sources that declare it."""
    origins: dict[str, list[str]] = {}
    for source in sources:
        for domain in source.domains:
            labels = origins.setdefault(domain, [])
            if source.label not in labels:
                labels.append(source.label)
    return dict(sorted(origins.items()))
