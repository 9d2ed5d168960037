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
"""Compile an allowed-domain set into the container firewall script.

The output is ``init-firewall.sh``, run by the container entrypoint
before any agent starts.  It:

1. Resolves every allowed domain (``dig +short A``) into the
   ``allowed_ips`` ipset.  Domains that do not resolve add nothing.
2. Flushes the OUTPUT chain and appends the baseline rules in a fixed order:
   loopback, established/related, DNS, SSH, HTTPS and HTTP to allowed IPs.
3. Logs and drops everything else.

The script is regenerated in full on every compile and is a pure function
of the domain set: same domains in, same bytes out.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ccc.firewall.registry import is_valid_domain

logger = logging.getLogger("ccc.firewall.compiler")

POLICY_FILENAME = "init-firewall.sh"
IPSET_NAME = "allowed_ips"
LOG_PREFIX = "BLOCKED: "


@dataclass(frozen=True)
class PolicyRule:
    """One iptables OUTPUT rule, in the order it is appended."""

    comment: str
    args: tuple[str, ...]

    def render(self) -> str:
        return "iptables -A OUTPUT " + " ".join(self.args)


_ALLOWLISTED = ("-m", "set", "--match-set", IPSET_NAME, "dst")

BASELINE_RULES: tuple[PolicyRule, ...] = (
    PolicyRule("Allow loopback", ("-o", "lo", "-j", "ACCEPT")),
    PolicyRule(
        "Allow established connections",
        ("-m", "state", "--state", "ESTABLISHED,RELATED", "-j", "ACCEPT"),
    ),
    PolicyRule("Allow DNS", ("-p", "udp", "--dport", "53", "-j", "ACCEPT")),
    PolicyRule("Allow DNS", ("-p", "tcp", "--dport", "53", "-j", "ACCEPT")),
    PolicyRule("Allow SSH outbound (for git)", ("-p", "tcp", "--dport", "22", "-j", "ACCEPT")),
    PolicyRule(
        "Allow HTTPS to allowed IPs",
        ("-p", "tcp", "--dport", "443", *_ALLOWLISTED, "-j", "ACCEPT"),
    ),
    PolicyRule(
        "Allow HTTP to allowed IPs (some registries)",
        ("-p", "tcp", "--dport", "80", *_ALLOWLISTED, "-j", "ACCEPT"),
    ),
)

DEFAULT_DENY_RULES: tuple[PolicyRule, ...] = (
    PolicyRule(
        "Log and drop everything else",
        ("-j", "LOG", "--log-prefix", f'"{LOG_PREFIX}"', "--log-level", "4"),
    ),
    PolicyRule("Log and drop everything else", ("-j", "DROP")),
)


@dataclass(frozen=True)
class PolicyScript:
    """Rendered-on-demand firewall policy for one domain set."""

    domains: tuple[str, ...]
    rules: tuple[PolicyRule, ...] = field(default=BASELINE_RULES + DEFAULT_DENY_RULES)

    def render(self) -> str:
        lines = [
            "#!/bin/bash",
            "set -e",
            "",
            "# Firewall allowlist - domains agents need",
            'ALLOWED_DOMAINS="',
            *self.domains,
            '"',
            "",
            "# Create ipset for allowed IPs",
            f"ipset create {IPSET_NAME} hash:ip -exist",
            f"ipset flush {IPSET_NAME}",
            "",
            "# Resolve domains and add to ipset",
            "for domain in $ALLOWED_DOMAINS; do",
            "    ips=$(dig +short \"$domain\" A 2>/dev/null"
            " | grep -E '^[0-9]+\\.[0-9]+\\.[0-9]+\\.[0-9]+$' || true)",
            "    for ip in $ips; do",
            f'        ipset add {IPSET_NAME} "$ip" -exist 2>/dev/null || true',
            "    done",
            "done",
            "",
            "# Setup iptables rules",
            "iptables -F OUTPUT 2>/dev/null || true",
        ]

        previous = None
        for rule in self.rules:
            if rule.comment != previous:
                lines.extend(["", f"# {rule.comment}"])
                previous = rule.comment
            lines.append(rule.render())

        lines.extend(["", 'echo "Firewall initialized with allowed domains"'])
        return "\n".join(lines) + "\n"


def compile_policy(domains: Iterable[str]) -> PolicyScript:
    """Build the policy for ``domains``.

    Domains are de-duplicated and sorted lexicographically so the rendered
    script does not depend on input order.  Malformed entries are dropped.
    """
    unique = sorted({d for d in domains if is_valid_domain(d)})
    logger.debug("Compiled firewall policy", extra={"fields": {"domains": len(unique)}})
    return PolicyScript(domains=tuple(unique))


def write_policy(policy: PolicyScript, output_dir: Path | str) -> Path:
    """Write ``init-firewall.sh`` into ``output_dir`` (mode 0755)."""
    out = Path(output_dir).expanduser()
    out.mkdir(parents=True, exist_ok=True)
    path = out / POLICY_FILENAME
    path.write_text(policy.render(), encoding="utf-8")
    os.chmod(path, 0o755)
    logger.info(
        "Wrote firewall policy",
        extra={"fields": {"path": str(path), "domains": len(policy.domains)}},
    )
    return path
