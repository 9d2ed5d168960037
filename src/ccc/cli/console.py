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
"""Plain-text console output for the ccc CLI."""

from __future__ import annotations

import sys

from ccc.deploy.container import ContainerStatus


class CccConsole:
    """Minimal console for the CLI. Provides print helpers."""

    def print_info(self, msg: str):
        print(f"  [info] {msg}")

    def print_success(self, msg: str):
        print(f"  [ok] {msg}")

    def print_warning(self, msg: str):
        print(f"  [warn] {msg}")

    def print_error(self, msg: str):
        print(f"  [error] {msg}", file=sys.stderr)

    def print_hint(self, msg: str):
        print(f"  -> {msg}")

    def print_item(self, label: str, ok: bool = True):
        mark = "ok" if ok else "--"
        print(f"    [{mark}] {label}")

    def print_header(self, title: str):
        print(f"\n  {title}")
        print("  " + "-" * len(title))

    def print_status(self, status: ContainerStatus, target: str):
        self.print_header(f"Container status ({target})")
        if not status.reachable:
            self.print_item("Host reachable", ok=False)
            return
        self.print_item(f"Container: {status.state.value}", ok=status.running)
        if not status.running:
            self.print_hint("Start the container: ccc start")
            return

        self.print_item("takopi running", ok=status.companion_running)
        if status.sessions:
            print(f"    Sessions: {', '.join(status.sessions)}")
        else:
            print("    Sessions: (none)")

        for name in status.agents:
            authed = name in status.authenticated
            self.print_item(f"{name} installed" + ("" if authed else " (not authenticated)"), ok=authed)
        for name, running in status.extensions.items():
            self.print_item(f"{name} running", ok=running)

    def print_sessions(self, sessions: list[str]):
        if not sessions:
            print("  No active sessions")
            self.print_hint("Start a session: ccc")
            return
        for name in sessions:
            print(f"    {name}")
