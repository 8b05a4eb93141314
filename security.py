#!/usr/bin/env python3
"""Security validation utilities for github2gitea."""

import re
from typing import List, Optional


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # Maximum lengths to prevent buffer overflow attacks
    MAX_NAME_LENGTH = 100
    MAX_URL_LENGTH = 2048
    MAX_PATH_LENGTH = 500

    # Allowed characters for org, user and team names
    SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate a server URL and strip any trailing slash."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        # Check for null bytes and control characters
        if "\x00" in url or any(ord(c) < 32 for c in url):
            raise ValueError("URL contains null bytes or control characters")

        # Basic URL format validation
        if not url.startswith(("http://", "https://")):
            raise ValueError("URL must use http or https scheme")

        if allowed_schemes:
            scheme = url.split("://")[0].lower()
            if scheme not in allowed_schemes:
                raise ValueError(
                    f"URL scheme '{scheme}' not in allowed schemes: {allowed_schemes}"
                )

        return url.rstrip("/")

    @classmethod
    def validate_name(cls, name: str, kind: str = "Name") -> str:
        """Validate an organization or user name."""
        if not name or not isinstance(name, str):
            raise ValueError(f"{kind} must be a non-empty string")

        if len(name) > cls.MAX_NAME_LENGTH:
            raise ValueError(
                f"{kind} exceeds maximum length of {cls.MAX_NAME_LENGTH}"
            )

        # Check for null bytes and control characters
        if "\x00" in name or any(ord(c) < 32 for c in name):
            raise ValueError(f"{kind} contains null bytes or control characters")

        # Basic name validation
        if not cls.SAFE_NAME_PATTERN.match(name):
            raise ValueError(f"{kind} contains invalid characters")

        return name

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate a local file path such as the user list."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        # Check for null bytes
        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        return path

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"https?://[^:/@\s]+:[^@\s]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"token[=:\s]+[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"password[=:\s]+[^\s]+", "password=[REDACTED]"),  # Password assignments
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub tokens
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained tokens
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
