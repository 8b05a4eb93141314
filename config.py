#!/usr/bin/env python3
"""Configuration dataclasses for github2gitea."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

DEFAULT_GITHUB_API = "https://api.github.com"
DEFAULT_GITEA_SERVER = "https://gitea.com"


class Visibility(Enum):
    """Enumeration for organization visibility levels."""
    PRIVATE = "private"
    PUBLIC = "public"


class AccessMode(Enum):
    """Gitea access levels for teams and collaborators."""
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


@dataclass
class GitHubConfig:
    """GitHub-specific configuration."""
    token: str
    server: str = ""
    skip_verify: bool = False

    @property
    def api_url(self) -> str:
        return self.server.rstrip("/") if self.server else DEFAULT_GITHUB_API


@dataclass
class GiteaConfig:
    """Gitea-specific configuration."""
    server: str
    token: str
    skip_verify: bool = False
    source_id: int = 0


@dataclass
class MigrationConfig:
    """Migration behavior configuration."""
    source_org: str
    target_org: str
    timeout_s: float
    org_visibility: Visibility = Visibility.PRIVATE
    user_list_file: Optional[str] = None
    migrate_ssh_keys: bool = True


@dataclass(frozen=True)
class TeamDefaults:
    """Unit types granted to every team created on Gitea."""
    units: Tuple[str, ...] = (
        "repo.code",
        "repo.issues",
        "repo.ext_issues",
        "repo.wiki",
        "repo.ext_wiki",
        "repo.pulls",
        "repo.releases",
        "repo.projects",
        "repo.packages",
        "repo.actions",
    )
    includes_all_repositories: bool = False


@dataclass(frozen=True)
class MigrationBundle:
    """Content requested on every repository import."""
    service: str = "github"
    wiki: bool = True
    issues: bool = True
    pull_requests: bool = True
    releases: bool = True
    labels: bool = True
    milestones: bool = True

    def as_payload(self) -> dict:
        return {
            "service": self.service,
            "wiki": self.wiki,
            "issues": self.issues,
            "pull_requests": self.pull_requests,
            "releases": self.releases,
            "labels": self.labels,
            "milestones": self.milestones,
        }


@dataclass
class Config:
    """Main configuration for GitHub-to-Gitea migration."""
    github: GitHubConfig
    gitea: GiteaConfig
    migration: MigrationConfig
    debug: bool = False
    team_defaults: TeamDefaults = field(default_factory=TeamDefaults)
    bundle: MigrationBundle = field(default_factory=MigrationBundle)
