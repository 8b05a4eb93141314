#!/usr/bin/env python3
"""Gitea API wrapper for provisioning orgs, users, teams and repo imports."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

import requests

from config import (AccessMode, GiteaConfig, MigrationBundle, TeamDefaults,
                    Visibility)
from errors import AuthenticationError, GiteaError, ValidationError
from logging_utils import Logger
from models import TargetOrg, TargetRepo, TargetTeam, TargetUser
from permissions import collaborator_access
from utils import Deadline, RateLimiter

USER_AGENT = "github2gitea"

DEFAULT_TIMEOUT_S = 30.0
MIGRATE_TIMEOUT_S = 600.0  # full history, wiki and issues

# Gitea caps page sizes at its MAX_RESPONSE_ITEMS setting (50 by default).
TEAM_SEARCH_LIMIT = 50


def _to_user(data: Mapping[str, Any]) -> TargetUser:
    return TargetUser(
        id=data.get("id") or 0,
        login=data.get("login") or data.get("username") or "",
        full_name=data.get("full_name") or "",
        email=data.get("email") or "",
    )


def _to_org(data: Mapping[str, Any]) -> TargetOrg:
    return TargetOrg(
        id=data.get("id") or 0,
        name=data.get("username") or data.get("name") or "",
        description=data.get("description") or "",
        visibility=data.get("visibility") or Visibility.PRIVATE.value,
    )


def _to_team(data: Mapping[str, Any]) -> TargetTeam:
    return TargetTeam(
        id=data.get("id") or 0,
        name=data.get("name") or "",
        permission=data.get("permission") or "",
    )


class GiteaTarget:
    """Wrapper around the Gitea REST API (``/api/v1``).

    Organizations, users and teams use create-or-reuse: look up first,
    create only on a miss, never modify an existing record.
    """

    def __init__(
        self,
        config: GiteaConfig,
        team_defaults: TeamDefaults,
        bundle: MigrationBundle,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.config = config
        self.team_defaults = team_defaults
        self.bundle = bundle
        self.deadline = deadline
        self.api_url = f"{config.server.rstrip('/')}/api/v1"
        self.session: Optional[requests.Session] = None
        self.rate_limiter = RateLimiter(max_requests_per_minute=120)

    def connect(self) -> None:
        if not self.config.server.startswith(("http://", "https://")):
            raise ValidationError(
                "invalid gitea server: must start with http:// or https://"
            )
        if not self.config.token:
            raise ValidationError("missing gitea token")
        Logger.info(f"init gitea API: {self.api_url}")
        session = requests.Session()
        session.headers.update(self._get_api_headers())
        session.verify = not self.config.skip_verify
        self.session = session

    def _get_api_headers(self) -> dict:
        """Get standard API headers for Gitea requests."""
        return {
            "Accept": "application/json",
            "Authorization": f"token {self.config.token}",
            "User-Agent": USER_AGENT,
        }

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text or ""

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        expected: Tuple[int, ...] = (200, 201, 204),
        timeout_cap: float = DEFAULT_TIMEOUT_S,
        **kwargs: Any,
    ) -> requests.Response:
        if self.session is None:
            raise GiteaError(operation, 0, "gitea API not initialized")
        timeout = timeout_cap
        if self.deadline is not None:
            self.deadline.check(f"gitea {operation}")
            timeout = self.deadline.request_timeout(timeout_cap)

        self.rate_limiter.wait_if_needed("Gitea API")
        try:
            response = self.session.request(
                method, f"{self.api_url}{path}", timeout=timeout, **kwargs
            )
        except requests.RequestException as e:
            raise GiteaError(operation, 0, str(e)) from e

        if response.status_code not in expected:
            raise GiteaError(operation, response.status_code, self._error_message(response))
        return response

    def get_current_user(self) -> TargetUser:
        try:
            response = self._request("get_current_user", "GET", "/user")
        except GiteaError as e:
            if e.status_code in (401, 403):
                raise AuthenticationError(
                    f"authentication failed (gitea): {e.message}"
                ) from e
            raise
        return _to_user(response.json())

    def get_or_create_org(
        self, name: str, description: str, visibility: Visibility
    ) -> TargetOrg:
        try:
            response = self._request("get_org", "GET", f"/orgs/{name}")
            org = _to_org(response.json())
            Logger.info("reuse existing organization", name=org.name)
            return org
        except GiteaError as e:
            if not e.is_not_found:
                raise

        response = self._request(
            "create_org",
            "POST",
            "/orgs",
            json={
                "username": name,
                "description": description,
                "visibility": visibility.value,
            },
        )
        org = _to_org(response.json())
        Logger.info("created organization", name=org.name, visibility=org.visibility)
        return org

    def get_or_create_user(
        self,
        username: str,
        full_name: str = "",
        email: str = "",
    ) -> TargetUser:
        try:
            response = self._request("get_user_info", "GET", f"/users/{username}")
            return _to_user(response.json())
        except GiteaError as e:
            if not e.is_not_found:
                raise
            Logger.debug("gitea user not found", username=username)

        response = self._request(
            "admin_create_user",
            "POST",
            "/admin/users",
            json={
                "source_id": self.config.source_id,
                "login_name": username,
                "username": username,
                "full_name": full_name,
                "email": email,
                "must_change_password": False,
            },
        )
        user = _to_user(response.json())
        Logger.info("create a new user", username=username, fullname=full_name)
        return user

    def _find_team(self, org: str, name: str) -> Optional[TargetTeam]:
        """Walk every page of Gitea's team search looking for ``name``."""
        page = 1
        while True:
            response = self._request(
                "search_org_teams",
                "GET",
                f"/orgs/{org}/teams/search",
                params={"q": name, "page": page, "limit": TEAM_SEARCH_LIMIT},
            )
            body = response.json()
            candidates = (body.get("data") if isinstance(body, dict) else body) or []
            if not candidates:
                return None
            for data in candidates:
                if (data.get("name") or "").lower() == name.lower():
                    return _to_team(data)
            page += 1

    def get_or_create_team(
        self, org: str, name: str, description: str, permission: AccessMode
    ) -> TargetTeam:
        """Reuse the team named ``name`` in ``org`` or create it.

        Gitea's search is a substring match, so only a case-insensitive
        exact name match counts as an existing team.
        """
        team = self._find_team(org, name)
        if team is not None:
            return team

        response = self._request(
            "create_team",
            "POST",
            f"/orgs/{org}/teams",
            json={
                "name": name,
                "description": description,
                "permission": permission.value,
                "units": list(self.team_defaults.units),
                "includes_all_repositories": self.team_defaults.includes_all_repositories,
                "can_create_org_repo": permission == AccessMode.ADMIN,
            },
        )
        team = _to_team(response.json())
        Logger.info("created team", org=org, name=team.name, permission=permission.value)
        return team

    def add_team_member(self, team_id: int, username: str) -> None:
        self._request("add_team_member", "PUT", f"/teams/{team_id}/members/{username}")

    def migrate_repo(
        self,
        owner: str,
        name: str,
        clone_addr: str,
        private: bool = False,
        description: str = "",
        auth_username: str = "",
        auth_token: str = "",
    ) -> TargetRepo:
        if not name or not owner or not clone_addr:
            raise ValidationError(
                "missing required migration parameters: "
                "repo name, repo owner and clone address are required"
            )

        payload = {
            "repo_name": name,
            "repo_owner": owner,
            "clone_addr": clone_addr,
            "private": private,
            "description": description,
            "mirror": False,
        }
        payload.update(self.bundle.as_payload())
        if auth_username:
            payload["auth_username"] = auth_username
        if auth_token:
            payload["auth_token"] = auth_token

        response = self._request(
            "migrate_repo",
            "POST",
            "/repos/migrate",
            timeout_cap=MIGRATE_TIMEOUT_S,
            json=payload,
        )
        data = response.json()
        return TargetRepo(id=data.get("id") or 0, full_name=data.get("full_name") or f"{owner}/{name}")

    def add_collaborator(
        self,
        owner: str,
        repo: str,
        username: str,
        permissions: Optional[Mapping[str, bool]],
    ) -> AccessMode:
        access = collaborator_access(permissions)
        self._request(
            "add_collaborator",
            "PUT",
            f"/repos/{owner}/{repo}/collaborators/{username}",
            json={"permission": access.value},
        )
        return access

    def add_user_public_key(self, username: str, title: str, key: str) -> int:
        response = self._request(
            "create_user_public_key",
            "POST",
            f"/admin/users/{username}/keys",
            json={"title": title, "key": key, "read_only": False},
        )
        return response.json().get("id") or 0
