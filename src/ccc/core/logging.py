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
"""
ccc -- Log setup

Every module logs through ``logging.getLogger("ccc.<package>.<module>")``.
The CLI calls ``configure_logging()`` once per invocation, which attaches
two handlers to the ``ccc`` logger:

LOG LOCATION:
    ~/.ccc/logs/ccc.log          (current, DEBUG and up)
    ~/.ccc/logs/ccc.log.1        (previous rotation)
    stderr                       (WARNING and up, or the --log-level given)

FORMAT:
    TIMESTAMP | LEVEL | COMPONENT | MESSAGE | {structured fields}

USAGE:
    logger = logging.getLogger("ccc.deploy.container")
    logger.info("Container restarted", extra={"fields": {"container": "ccc"}})
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# =============================================================================
# CONSTANTS
# =============================================================================

MAX_LOG_FILE_BYTES = 10 * 1024 * 1024  # 10 MB per file
LOG_BACKUP_COUNT = 5
LOG_DIR = Path(os.environ.get("CCC_HOME", Path.home() / ".ccc")) / "logs"
LOG_FILE = LOG_DIR / "ccc.log"
ROOT_LOGGER = "ccc"


# =============================================================================
# FORMATTER -- human-readable + structured
# =============================================================================


class CccLogFormatter(logging.Formatter):
    """
    Format: TIMESTAMP | LEVEL | COMPONENT | MESSAGE | {structured fields}

    Example:
    2026-02-09T17:30:45.123Z | DEBUG | deploy.executor | exec | command="docker inspect ..." remote=False
    2026-02-09T17:30:46.501Z | WARN  | config          | Could not parse config file | error="..."
    """

    LEVEL_WIDTH = 5
    COMPONENT_WIDTH = 16

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.fromtimestamp(record.created, tz=timezone.utc)
        ts = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

        level = "WARN" if record.levelname == "WARNING" else record.levelname
        component = record.name
        if component.startswith(ROOT_LOGGER + "."):
            component = component[len(ROOT_LOGGER) + 1 :]

        message = record.getMessage()

        fields = getattr(record, "fields", None) or {}
        field_str = ""
        if fields:
            parts = []
            for k, v in fields.items():
                if isinstance(v, str):
                    parts.append(f'{k}="{v}"')
                elif isinstance(v, float):
                    parts.append(f"{k}={v:.3f}")
                else:
                    parts.append(f"{k}={v}")
            field_str = " | " + " ".join(parts)

        line = (
            f"{ts} | {level:<{self.LEVEL_WIDTH}} | "
            f"{component:<{self.COMPONENT_WIDTH}} | {message}{field_str}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# SETUP
# =============================================================================


def configure_logging(
    level: str = "WARNING",
    log_file: Path | str | None = LOG_FILE,
) -> logging.Logger:
    """Attach the stderr and rotating-file handlers to the ``ccc`` logger.

    Safe to call more than once: existing handlers are replaced.

    Args:
        level: Minimum level echoed to stderr.
        log_file: Rotating log file path.  ``None`` disables file logging.

    Returns:
        The configured ``ccc`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = CccLogFormatter()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(getattr(logging, level.upper(), logging.WARNING))
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    if log_file is not None:
        path = Path(log_file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                str(path),
                maxBytes=MAX_LOG_FILE_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            # Read-only home directories still get stderr logging
            logger.warning("File logging disabled: %s", exc)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
