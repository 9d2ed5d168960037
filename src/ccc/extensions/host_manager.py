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
"""Host extensions: daemons installed and run inside the container.

All commands go through the container's executor, so the same calls work
locally and over SSH.  Every method returns a bool and never raises for a
failed command.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable

from ccc.config import DEFAULT_CONTAINER_NAME
from ccc.deploy.executor import Executor
from ccc.errors import CccError
from ccc.extensions.types import Extension, ExtensionType

logger = logging.getLogger("ccc.extensions.host_manager")


class HostExtensionManager:
    def __init__(self, executor: Executor, container_name: str = DEFAULT_CONTAINER_NAME) -> None:
        self.executor = executor
        self.container_name = container_name

    def _run(self, cmd: str, **kwargs) -> bool:
        try:
            self.executor.exec(cmd, **kwargs)
        except CccError as exc:
            logger.debug("Host extension command failed: %s", exc)
            return False
        return True

    def install(self, ext: Extension) -> bool:
        if ext.type != ExtensionType.HOST or not ext.install_cmd:
            return False
        cmd = f"docker exec {self.container_name} bash -c {shlex.quote(ext.install_cmd)}"
        ok = self._run(cmd, stream=True)
        if ok:
            logger.info("Host extension installed", extra={"fields": {"extension": ext.name}})
        return ok

    def start(self, ext: Extension) -> bool:
        """Start the daemon detached, stopping any previous instance first."""
        if ext.type != ExtensionType.HOST or not ext.run_cmd:
            return False
        self.stop(ext)
        return self._run(f"docker exec -d {self.container_name} {ext.run_cmd}")

    def stop(self, ext: Extension) -> bool:
        if ext.type != ExtensionType.HOST or not ext.run_cmd:
            return False
        binary = shlex.quote(ext.binary_name)
        return self._run(
            f"docker exec {self.container_name} pkill -f {binary} 2>/dev/null || true"
        )

    def is_running(self, ext: Extension) -> bool:
        if ext.type != ExtensionType.HOST or not ext.run_cmd:
            return False
        binary = shlex.quote(ext.binary_name)
        return self._run(f"docker exec {self.container_name} pgrep -f {binary} >/dev/null 2>&1")

    def status(self, extensions: Iterable[Extension]) -> dict[str, bool]:
        """Liveness of each host extension, keyed by name."""
        return {
            ext.name: self.is_running(ext)
            for ext in extensions
            if ext.type == ExtensionType.HOST
        }
