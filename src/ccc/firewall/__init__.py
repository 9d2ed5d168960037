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
"""Firewall allowlist: domain registry and policy script compiler."""

from ccc.firewall.compiler import PolicyScript, compile_policy, write_policy
from ccc.firewall.registry import DomainSource, SourceKind, compute_allowed_domains

__all__ = [
    "DomainSource",
    "PolicyScript",
    "SourceKind",
    "compile_policy",
    "compute_allowed_domains",
    "write_policy",
]
