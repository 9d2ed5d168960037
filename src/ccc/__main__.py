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
"""Allow ``python -m ccc``."""

import sys

from ccc.cli.app import main

if __name__ == "__main__":
    sys.exit(main())
