#!/usr/bin/env python3
"""Utility functions for github2gitea."""

import re
import threading
import time
from typing import Any, List

from errors import DeadlineExceededError
from logging_utils import Logger

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_INVALID_TEAM_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class RateLimiter:
    """Rate limiter to prevent abuse and respect API limits."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    # Use Logger.security_event to maintain consistent formatting
                    Logger.security_event(
                        "RATE_LIMIT_HIT",
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s",
                    )
                    time.sleep(wait_time)
                    self._clean_old_requests(time.time())
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


class Deadline:
    """Time budget shared by every remote call of a single run."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str) -> None:
        if self.expired:
            raise DeadlineExceededError(operation)

    def request_timeout(self, cap: float = 30.0) -> float:
        """Per-request timeout that never outlives the run."""
        return max(0.001, min(cap, self.remaining()))


def parse_duration(text: str) -> float:
    """Parse a duration such as '10m', '1h30m' or '1.5s' into seconds."""
    value = (text or "").strip()
    if not value:
        raise ValueError("duration must be a non-empty string")

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(value):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(value):
        raise ValueError(f"invalid duration '{text}'")
    if total <= 0:
        raise ValueError(f"duration must be positive: '{text}'")
    return total


def sanitize_team_name(name: str) -> str:
    """Replace every character Gitea rejects in team names with '_'."""
    return _INVALID_TEAM_CHARS.sub("_", name or "")


def value_or(obj: Any, attr: str, default: Any = "") -> Any:
    """Read an optional attribute, substituting default when absent or None."""
    value = getattr(obj, attr, None)
    return default if value is None else value
