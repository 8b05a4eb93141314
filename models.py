#!/usr/bin/env python3
"""Data models exchanged between GitHubSource, GiteaTarget and the orchestrator.

Everything here is transient: values are read from GitHub, pushed to Gitea
and dropped at the end of the run. Optional API attributes are normalised to
empty strings or zero when they are read, so callers never see None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass
class SourceOrg:
    login: str
    description: str = ""
    name: str = ""


@dataclass
class SourceUser:
    login: str
    name: str = ""
    email: str = ""
    type: str = "User"


@dataclass
class SourceTeam:
    name: str
    slug: str
    description: str = ""
    permission: str = "pull"


@dataclass
class SourceRepo:
    owner: str
    name: str
    clone_url: str
    description: str = ""
    private: bool = False


@dataclass
class Collaborator:
    """A repository collaborator as listed by GitHub."""

    login: str
    type: str = "User"
    permissions: Dict[str, bool] = field(default_factory=dict)

    @property
    def is_user(self) -> bool:
        return self.type == "User"


@dataclass
class SourceKey:
    id: int
    key: str
    title: str = ""


@dataclass
class TargetOrg:
    id: int
    name: str
    description: str = ""
    visibility: str = "private"


@dataclass
class TargetUser:
    id: int
    login: str
    full_name: str = ""
    email: str = ""


@dataclass
class TargetTeam:
    id: int
    name: str
    permission: str = ""


@dataclass
class TargetRepo:
    id: int
    full_name: str


@dataclass
class RosterEntry:
    """One row of the user list CSV."""

    login: str
    email: str
    role: str


class UnitStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class UnitResult:
    """Outcome of a single unit of work (one member, team, repo, key...)."""

    phase: str
    name: str
    status: UnitStatus
    reason: str = ""


@dataclass
class PhaseSummary:
    phase: str
    results: List[UnitResult] = field(default_factory=list)

    def record(self, name: str, status: UnitStatus, reason: str = "") -> UnitResult:
        result = UnitResult(self.phase, name, status, reason)
        self.results.append(result)
        return result

    def count(self, status: UnitStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return self.count(UnitStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self.count(UnitStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(UnitStatus.SKIPPED)

    def names(self, status: Optional[UnitStatus] = None) -> List[str]:
        return [r.name for r in self.results if status is None or r.status == status]


@dataclass
class KeySummary:
    login: str
    total: int = 0
    success: int = 0
    exists: int = 0
    failed: int = 0


@dataclass
class RunReport:
    """Everything a run attempted, grouped by phase."""

    ok: bool = False
    phases: Dict[str, PhaseSummary] = field(default_factory=dict)
    team_repos: Dict[str, List[str]] = field(default_factory=dict)
    key_summaries: Dict[str, KeySummary] = field(default_factory=dict)

    def phase(self, name: str) -> PhaseSummary:
        if name not in self.phases:
            self.phases[name] = PhaseSummary(name)
        return self.phases[name]
