#!/usr/bin/env python3
"""
github2gitea - Migrate a GitHub organization to a Gitea instance.

Copies the organization, its members and teams, every repository (history,
wiki, issues, pull requests, releases, labels and milestones) and the
repository collaborators. An optional user list CSV provisions extra
accounts and copies their SSH public keys.

It is a one-way, one-shot copy: existing Gitea organizations, users and
teams are reused as they are, and re-running the tool is the way to pick
up anything that failed.
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from migration_orchestrator import MigrationOrchestrator


def main() -> NoReturn:
    cfg = parse_arguments()
    orchestrator = MigrationOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
