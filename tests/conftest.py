"""Shared fixtures: an in-memory Gitea API and config builders."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from config import (Config, GiteaConfig, GitHubConfig, MigrationBundle,
                    MigrationConfig, TeamDefaults)
from gitea_target import GiteaTarget


def make_response(status: int, body: Any = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = b"" if body is None else json.dumps(body).encode()
    return response


class FakeGitea:
    """Minimal stand-in for the Gitea REST API used through requests.Session."""

    def __init__(self) -> None:
        self.orgs: Dict[str, dict] = {}
        self.users: Dict[str, dict] = {"admin": {"id": 1, "login": "admin", "full_name": "Admin", "email": "admin@example.com"}}
        self.teams: Dict[Tuple[str, str], dict] = {}
        self.team_members: Dict[int, List[str]] = {}
        self.repos: Dict[str, dict] = {}
        self.collaborators: Dict[str, Dict[str, str]] = {}
        self.keys: Dict[str, List[str]] = {}
        self.calls: List[Tuple[str, str, Optional[dict]]] = []
        self.fail: Dict[Tuple[str, str], Tuple[int, str]] = {}
        self.headers: Dict[str, str] = {}
        self.verify = True
        self.page_size = 30
        self._next_id = 100

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def created(self, path: str) -> List[dict]:
        return [body for method, p, body in self.calls if method == "POST" and p == path]

    def request(self, method: str, url: str, timeout=None, json=None, params=None):
        path = url.split("/api/v1", 1)[1]
        self.calls.append((method, path, json))
        if (method, path) in self.fail:
            status, message = self.fail[(method, path)]
            return make_response(status, {"message": message})

        parts = path.strip("/").split("/")
        if method == "GET" and path == "/user":
            return make_response(200, self.users["admin"])
        if method == "GET" and parts[0] == "orgs" and len(parts) == 2:
            org = self.orgs.get(parts[1])
            return make_response(200, org) if org else make_response(404, {"message": "not found"})
        if method == "POST" and path == "/orgs":
            org = {"id": self._id(), "username": json["username"], "description": json["description"], "visibility": json["visibility"]}
            self.orgs[json["username"]] = org
            return make_response(201, org)
        if method == "GET" and parts[0] == "users":
            user = self.users.get(parts[1])
            return make_response(200, user) if user else make_response(404, {"message": "user does not exist"})
        if method == "POST" and path == "/admin/users":
            user = {"id": self._id(), "login": json["username"], "full_name": json["full_name"], "email": json["email"]}
            self.users[json["username"]] = user
            return make_response(201, user)
        if method == "GET" and parts[0] == "orgs" and parts[2:] == ["teams", "search"]:
            query = (params or {}).get("q", "").lower()
            data = [t for (org, _), t in self.teams.items() if org == parts[1] and query in t["name"].lower()]
            limit = min(int((params or {}).get("limit", self.page_size)), self.page_size)
            start = (int((params or {}).get("page", 1)) - 1) * limit
            return make_response(200, {"ok": True, "data": data[start:start + limit]})
        if method == "POST" and parts[0] == "orgs" and parts[2:] == ["teams"]:
            team = {"id": self._id(), "name": json["name"], "permission": json["permission"], "units": json["units"]}
            self.teams[(parts[1], json["name"])] = team
            return make_response(201, team)
        if method == "PUT" and parts[0] == "teams":
            self.team_members.setdefault(int(parts[1]), []).append(parts[3])
            return make_response(204)
        if method == "POST" and path == "/repos/migrate":
            full_name = f"{json['repo_owner']}/{json['repo_name']}"
            if full_name in self.repos:
                return make_response(409, {"message": "The repository with the same name already exists."})
            repo = {"id": self._id(), "full_name": full_name, "request": json}
            self.repos[full_name] = repo
            return make_response(201, repo)
        if method == "PUT" and parts[0] == "repos" and parts[3] == "collaborators":
            self.collaborators.setdefault(f"{parts[1]}/{parts[2]}", {})[parts[4]] = json["permission"]
            return make_response(204)
        if method == "POST" and parts[:2] == ["admin", "users"] and parts[3:] == ["keys"]:
            used = [k for keys in self.keys.values() for k in keys]
            if json["key"] in used:
                return make_response(422, {"message": "Key content has been used as non-deploy key"})
            self.keys.setdefault(parts[2], []).append(json["key"])
            return make_response(201, {"id": self._id(), "title": json["title"]})
        return make_response(404, {"message": f"no route for {method} {path}"})


@pytest.fixture
def fake_gitea() -> FakeGitea:
    return FakeGitea()


@pytest.fixture
def gitea_target(fake_gitea: FakeGitea) -> GiteaTarget:
    target = GiteaTarget(
        GiteaConfig(server="https://gitea.example.com", token="gt-token", source_id=3),
        TeamDefaults(),
        MigrationBundle(),
    )
    target.session = fake_gitea
    target.rate_limiter.wait_if_needed = lambda *_args, **_kwargs: None
    return target


def build_config(user_list_file: Optional[str] = None, migrate_ssh_keys: bool = True) -> Config:
    return Config(
        github=GitHubConfig(token="gh-token"),
        gitea=GiteaConfig(server="https://gitea.example.com", token="gt-token"),
        migration=MigrationConfig(
            source_org="acme",
            target_org="acme-gt",
            timeout_s=600.0,
            user_list_file=user_list_file,
            migrate_ssh_keys=migrate_ssh_keys,
        ),
    )


@pytest.fixture
def make_config():
    return build_config
