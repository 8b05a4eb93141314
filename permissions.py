#!/usr/bin/env python3
"""Translation of GitHub permission vocabulary into Gitea access levels."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from config import AccessMode
from errors import UnknownPermissionError, UnsupportedPermissionError

GITHUB_PULL = "pull"
GITHUB_TRIAGE = "triage"
GITHUB_PUSH = "push"
GITHUB_MAINTAIN = "maintain"
GITHUB_ADMIN = "admin"

# Gitea only exposes read/write/admin for teams and collaborators, so
# maintain collapses to write.
PERMISSION_MAP: Dict[str, AccessMode] = {
    GITHUB_PULL: AccessMode.READ,
    GITHUB_PUSH: AccessMode.WRITE,
    GITHUB_MAINTAIN: AccessMode.WRITE,
    GITHUB_ADMIN: AccessMode.ADMIN,
}

UNSUPPORTED_PERMISSIONS = frozenset({GITHUB_TRIAGE})

# Highest flag wins when a collaborator carries several.
COLLABORATOR_PRIORITY = (GITHUB_ADMIN, GITHUB_MAINTAIN, GITHUB_PUSH, GITHUB_PULL)


def map_permission(permission: Optional[str]) -> AccessMode:
    """Map a single GitHub permission token to a Gitea access level.

    Raises UnsupportedPermissionError for triage and UnknownPermissionError
    for anything outside the GitHub vocabulary.
    """
    token = (permission or "").strip().lower()
    if token in UNSUPPORTED_PERMISSIONS:
        raise UnsupportedPermissionError(token)
    try:
        return PERMISSION_MAP[token]
    except KeyError:
        raise UnknownPermissionError(token) from None


def collaborator_access(permissions: Optional[Mapping[str, bool]]) -> AccessMode:
    """Pick the Gitea access level for a collaborator's permission flags."""
    flags = permissions or {}
    for token in COLLABORATOR_PRIORITY:
        if flags.get(token):
            return PERMISSION_MAP[token]
    return AccessMode.READ
