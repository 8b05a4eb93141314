#!/usr/bin/env python3
"""GitHub API wrapper for reading organizations, teams, users and repos."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, TypeVar

import github
import requests

from config import GitHubConfig
from errors import AuthenticationError, SourceError
from logging_utils import Logger
from models import (Collaborator, SourceKey, SourceOrg, SourceRepo, SourceTeam,
                    SourceUser)
from utils import Deadline, RateLimiter, value_or

T = TypeVar("T")

PER_PAGE = 100
DEFAULT_TIMEOUT_S = 30.0
PERMISSION_FLAGS = ("admin", "maintain", "push", "triage", "pull")


def _to_user(user: object) -> SourceUser:
    return SourceUser(
        login=value_or(user, "login"),
        name=value_or(user, "name"),
        email=value_or(user, "email"),
        type=value_or(user, "type", "User"),
    )


def _to_team(team: object) -> SourceTeam:
    return SourceTeam(
        name=value_or(team, "name"),
        slug=value_or(team, "slug"),
        description=value_or(team, "description"),
        permission=value_or(team, "permission", "pull"),
    )


def _to_repo(repo: object) -> SourceRepo:
    owner = getattr(repo, "owner", None)
    return SourceRepo(
        owner=value_or(owner, "login"),
        name=value_or(repo, "name"),
        clone_url=value_or(repo, "clone_url"),
        description=value_or(repo, "description"),
        private=bool(value_or(repo, "private", False)),
    )


def _to_collaborator(user: object) -> Collaborator:
    perms = getattr(user, "permissions", None)
    return Collaborator(
        login=value_or(user, "login"),
        type=value_or(user, "type", "User"),
        permissions={flag: bool(value_or(perms, flag, False)) for flag in PERMISSION_FLAGS},
    )


class GitHubSource:
    """Read-only wrapper around the GitHub API.

    Every list method walks all pages before returning and drops entries
    already seen, so callers always get a complete, de-duplicated list.
    A failure on any page aborts the whole listing with SourceError.
    """

    def __init__(self, config: GitHubConfig, deadline: Optional[Deadline] = None) -> None:
        self.config = config
        self.deadline = deadline
        self.api: Optional[github.Github] = None
        self.api_timeout = DEFAULT_TIMEOUT_S
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=50
        )  # GitHub's standard rate limit

    def connect(self) -> None:
        Logger.info(f"init github API: {self.config.api_url}")
        self.api = self._build_api(self._request_timeout())

    def _build_api(self, timeout: float) -> github.Github:
        self.api_timeout = timeout
        return github.Github(
            base_url=self.config.api_url,
            auth=github.Auth.Token(self.config.token),
            timeout=timeout,
            verify=not self.config.skip_verify,
            per_page=PER_PAGE,
            retry=None,
        )

    def _request_timeout(self) -> float:
        if self.deadline is None:
            return DEFAULT_TIMEOUT_S
        return self.deadline.request_timeout(DEFAULT_TIMEOUT_S)

    def _require_api(self) -> github.Github:
        if self.api is None:
            raise SourceError("connect", "github API not initialized")
        # Client timeout never exceeds what is left of the run
        timeout = self._request_timeout()
        if timeout < self.api_timeout:
            Logger.debug("shrink github request timeout", timeout=f"{timeout:.3f}s")
            self.api = self._build_api(timeout)
        return self.api

    def _check_deadline(self, operation: str) -> None:
        if self.deadline is not None:
            self.deadline.check(f"github {operation}")

    def _call(self, operation: str, fn: Callable[[github.Github], T]) -> T:
        self._check_deadline(operation)
        api = self._require_api()
        self.rate_limiter.wait_if_needed("GitHub API")
        try:
            return fn(api)
        except github.BadCredentialsException as e:
            raise AuthenticationError(f"authentication failed (github): {e}") from e
        except github.GithubException as e:
            raise SourceError(operation, str(e), e.status) from e
        except requests.RequestException as e:
            raise SourceError(operation, str(e)) from e

    def _collect(
        self,
        operation: str,
        fetch: Callable[[github.Github], Iterable[object]],
        convert: Callable[[object], T],
        key: Callable[[T], object],
    ) -> List[T]:
        def walk(api: github.Github) -> List[T]:
            items: List[T] = []
            seen = set()
            for raw in fetch(api):
                # Later pages are fetched lazily while iterating
                self._check_deadline(operation)
                item = convert(raw)
                ident = key(item)
                if ident in seen:
                    continue
                seen.add(ident)
                items.append(item)
            return items

        items = self._call(operation, walk)
        Logger.debug(f"github {operation}", count=len(items))
        return items

    def get_current_user(self) -> SourceUser:
        return self._call("get_current_user", lambda api: _to_user(api.get_user()))

    def get_user(self, login: str) -> SourceUser:
        return self._call("get_user", lambda api: _to_user(api.get_user(login)))

    def get_org(self, org: str) -> SourceOrg:
        def fetch(api: github.Github) -> SourceOrg:
            ghorg = api.get_organization(org)
            return SourceOrg(
                login=value_or(ghorg, "login", org),
                description=value_or(ghorg, "description"),
                name=value_or(ghorg, "name"),
            )

        return self._call("get_org", fetch)

    def get_org_role(self, org: str, login: str) -> str:
        """Return the member's organization role (admin or member)."""

        def fetch(api: github.Github) -> str:
            membership = api.get_user(login).get_organization_membership(org)
            return value_or(membership, "role")

        return self._call("get_org_membership", fetch)

    def list_org_members(self, org: str) -> List[SourceUser]:
        return self._collect(
            "list_org_members",
            lambda api: api.get_organization(org).get_members(),
            _to_user,
            lambda u: u.login,
        )

    def list_org_teams(self, org: str) -> List[SourceTeam]:
        return self._collect(
            "list_org_teams",
            lambda api: api.get_organization(org).get_teams(),
            _to_team,
            lambda t: t.slug,
        )

    def list_team_members(self, org: str, team_slug: str) -> List[SourceUser]:
        return self._collect(
            "list_team_members",
            lambda api: api.get_organization(org).get_team_by_slug(team_slug).get_members(),
            _to_user,
            lambda u: u.login,
        )

    def list_team_repos(self, org: str, team_slug: str) -> List[SourceRepo]:
        return self._collect(
            "list_team_repos",
            lambda api: api.get_organization(org).get_team_by_slug(team_slug).get_repos(),
            _to_repo,
            lambda r: (r.owner, r.name),
        )

    def list_org_repos(self, org: str) -> List[SourceRepo]:
        return self._collect(
            "list_org_repos",
            lambda api: api.get_organization(org).get_repos(),
            _to_repo,
            lambda r: (r.owner, r.name),
        )

    def list_repo_collaborators(self, owner: str, repo: str) -> List[Collaborator]:
        return self._collect(
            "list_repo_collaborators",
            lambda api: api.get_repo(f"{owner}/{repo}").get_collaborators(),
            _to_collaborator,
            lambda c: c.login,
        )

    def list_user_keys(self, login: str) -> List[SourceKey]:
        return self._collect(
            "list_user_keys",
            lambda api: api.get_user(login).get_keys(),
            lambda k: SourceKey(
                id=value_or(k, "id", 0),
                key=value_or(k, "key"),
                title=value_or(k, "title"),
            ),
            lambda k: k.key,
        )
