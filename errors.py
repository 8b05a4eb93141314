#!/usr/bin/env python3
"""Exception hierarchy for github2gitea."""

from __future__ import annotations

from typing import Optional

# Exit codes
EXIT_EXECUTION_ERROR = 1
EXIT_MISSING_ARGUMENTS = 2
EXIT_GITHUB_ERROR = 30
EXIT_GITEA_ERROR = 31
EXIT_AUTH_ERROR = 40

KEY_IN_USE_PHRASE = "key content has been used"


class MigrationError(Exception):
    """Base exception for migration errors."""

    exit_code = EXIT_EXECUTION_ERROR


class ConfigurationError(MigrationError):
    """Invalid or missing run-level configuration."""

    exit_code = EXIT_MISSING_ARGUMENTS


class AuthenticationError(MigrationError):
    """Credentials rejected by GitHub or Gitea."""

    exit_code = EXIT_AUTH_ERROR


class SourceError(MigrationError):
    """A GitHub read failed."""

    exit_code = EXIT_GITHUB_ERROR

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"github {operation} failed: {message}")
        self.operation = operation
        self.status_code = status_code


class GiteaError(MigrationError):
    """A Gitea API call returned an error response."""

    exit_code = EXIT_GITEA_ERROR

    def __init__(self, operation: str, status_code: int, message: str):
        super().__init__(f"gitea {operation} failed: [{status_code}] {message}")
        self.operation = operation
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_key_in_use(self) -> bool:
        return (
            self.status_code == 422
            and KEY_IN_USE_PHRASE in (self.message or "").lower()
        )


class ValidationError(MigrationError):
    """Input rejected locally before any network call."""

    exit_code = EXIT_MISSING_ARGUMENTS


class PermissionMappingError(ValidationError):
    """A GitHub permission has no Gitea counterpart."""

    def __init__(self, permission: str, message: str):
        super().__init__(message)
        self.permission = permission


class UnsupportedPermissionError(PermissionMappingError):
    """Permission is known on GitHub but cannot be expressed on Gitea."""

    def __init__(self, permission: str):
        super().__init__(
            permission, f"permission '{permission}' is not supported by gitea"
        )


class UnknownPermissionError(PermissionMappingError):
    """Permission token is not part of the GitHub vocabulary."""

    def __init__(self, permission: str):
        super().__init__(permission, f"unknown github permission '{permission}'")


class DeadlineExceededError(MigrationError):
    """The run-wide timeout has been consumed."""

    def __init__(self, operation: str):
        super().__init__(f"deadline exceeded before {operation}")
        self.operation = operation
