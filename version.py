#!/usr/bin/env python3
"""Version information for github2gitea."""

APP = "github2gitea"
DESCRIPTION = "Migrate GitHub organizations and repositories to Gitea"
VERSION = "0.1.0"


def version_string() -> str:
    return f"{APP} version {VERSION}: {DESCRIPTION}"
