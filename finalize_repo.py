#!/usr/bin/env python3
"""
finalize-repo - Finish a GHES to GitHub repository migration.

Once a repository's history has been migrated, this tool copies the
artifacts the migration leaves behind (settings, autolinks, topics and
branch protection rules) from the source repository to the target, and can
archive the source. Every step re-reads the target first, so the command
is safe to run again after a partial failure.
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from finalize_orchestrator import FinalizeOrchestrator


def main() -> NoReturn:
    cfg = parse_arguments()
    orchestrator = FinalizeOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
