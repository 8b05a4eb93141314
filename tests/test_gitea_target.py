"""Tests for GiteaTarget create-or-reuse and import helpers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from config import (AccessMode, GiteaConfig, MigrationBundle, TeamDefaults,
                    Visibility)
from errors import AuthenticationError, GiteaError, ValidationError
from gitea_target import GiteaTarget


def test_get_or_create_org_is_idempotent(gitea_target, fake_gitea) -> None:
    """A second call should find the org created by the first one."""
    first = gitea_target.get_or_create_org("acme-gt", "Acme", Visibility.PRIVATE)
    second = gitea_target.get_or_create_org("acme-gt", "changed", Visibility.PUBLIC)

    assert first.id == second.id
    assert second.description == "Acme"
    assert len(fake_gitea.created("/orgs")) == 1
    assert fake_gitea.created("/orgs")[0]["visibility"] == "private"


def test_get_or_create_org_lookup_error_is_fatal(gitea_target, fake_gitea) -> None:
    """Only 404 triggers creation; other lookup errors propagate."""
    fake_gitea.fail[("GET", "/orgs/acme-gt")] = (500, "database locked")

    with pytest.raises(GiteaError) as excinfo:
        gitea_target.get_or_create_org("acme-gt", "", Visibility.PRIVATE)

    assert excinfo.value.status_code == 500
    assert fake_gitea.created("/orgs") == []


def test_get_or_create_user_forces_no_password_change(gitea_target, fake_gitea) -> None:
    """New accounts are created with must_change_password disabled."""
    user = gitea_target.get_or_create_user("alice", "Alice A", "alice@example.com")

    assert user.login == "alice"
    body = fake_gitea.created("/admin/users")[0]
    assert body["must_change_password"] is False
    assert body["source_id"] == 3
    assert body["login_name"] == "alice"


def test_get_or_create_user_is_idempotent(gitea_target, fake_gitea) -> None:
    """Existing users are returned untouched and never re-created."""
    first = gitea_target.get_or_create_user("alice", "Alice", "alice@example.com")
    second = gitea_target.get_or_create_user("alice", "Other", "other@example.com")

    assert first.id == second.id
    assert second.email == "alice@example.com"
    assert len(fake_gitea.created("/admin/users")) == 1


def test_get_or_create_team_reuses_exact_match(gitea_target, fake_gitea) -> None:
    """Team lookup is keyed by name; a substring hit is not a match."""
    gitea_target.get_or_create_team("acme-gt", "devops", "", AccessMode.WRITE)
    dev = gitea_target.get_or_create_team("acme-gt", "dev", "", AccessMode.READ)
    again = gitea_target.get_or_create_team("acme-gt", "dev", "", AccessMode.READ)

    assert dev.id == again.id
    assert len(fake_gitea.created("/orgs/acme-gt/teams")) == 2


def test_get_or_create_team_searches_every_page(gitea_target, fake_gitea) -> None:
    """An exact match past the first search page is still reused."""
    for i in range(30):
        fake_gitea.teams[("acme-gt", f"dev-{i:02d}")] = {"id": i + 1, "name": f"dev-{i:02d}", "permission": "read"}
    fake_gitea.teams[("acme-gt", "dev")] = {"id": 99, "name": "dev", "permission": "write"}

    team = gitea_target.get_or_create_team("acme-gt", "dev", "", AccessMode.WRITE)

    assert team.id == 99
    assert fake_gitea.created("/orgs/acme-gt/teams") == []
    searches = [c for c in fake_gitea.calls if c[1] == "/orgs/acme-gt/teams/search"]
    assert len(searches) == 2


def test_get_or_create_team_creates_after_last_page(gitea_target, fake_gitea) -> None:
    for i in range(45):
        fake_gitea.teams[("acme-gt", f"dev-{i:02d}")] = {"id": i + 1, "name": f"dev-{i:02d}", "permission": "read"}

    team = gitea_target.get_or_create_team("acme-gt", "dev", "", AccessMode.WRITE)

    assert team.name == "dev"
    assert len(fake_gitea.created("/orgs/acme-gt/teams")) == 1
    searches = [c for c in fake_gitea.calls if c[1] == "/orgs/acme-gt/teams/search"]
    assert len(searches) == 3


def test_get_or_create_team_applies_defaults(gitea_target, fake_gitea) -> None:
    """Created teams carry the unit bundle and mapped permission."""
    gitea_target.get_or_create_team("acme-gt", "admins", "Admins", AccessMode.ADMIN)

    body = fake_gitea.created("/orgs/acme-gt/teams")[0]
    assert body["permission"] == "admin"
    assert body["units"] == list(TeamDefaults().units)
    assert body["can_create_org_repo"] is True


def test_migrate_repo_requires_name_owner_and_clone_addr(gitea_target, fake_gitea) -> None:
    """Missing required parameters fail before any request is sent."""
    for owner, name, addr in [
        ("", "demo", "https://github.com/acme/demo.git"),
        ("acme-gt", "", "https://github.com/acme/demo.git"),
        ("acme-gt", "demo", ""),
    ]:
        with pytest.raises(ValidationError):
            gitea_target.migrate_repo(owner=owner, name=name, clone_addr=addr)

    assert fake_gitea.calls == []


def test_migrate_repo_requests_full_bundle(gitea_target, fake_gitea) -> None:
    """Every import asks for wiki, issues, PRs, releases, labels, milestones."""
    repo = gitea_target.migrate_repo(
        owner="acme-gt",
        name="demo",
        clone_addr="https://github.com/acme/demo.git",
        private=True,
        description="Demo",
        auth_username="octocat",
        auth_token="ghp_secret",
    )

    assert repo.full_name == "acme-gt/demo"
    body = fake_gitea.created("/repos/migrate")[0]
    for flag in ("wiki", "issues", "pull_requests", "releases", "labels", "milestones"):
        assert body[flag] is True
    assert body["service"] == "github"
    assert body["private"] is True
    assert body["auth_username"] == "octocat"
    assert body["auth_token"] == "ghp_secret"


def test_migrate_repo_surfaces_existing_repository(gitea_target) -> None:
    """Re-importing the same repository surfaces Gitea's conflict."""
    gitea_target.migrate_repo("acme-gt", "demo", "https://github.com/acme/demo.git")

    with pytest.raises(GiteaError) as excinfo:
        gitea_target.migrate_repo("acme-gt", "demo", "https://github.com/acme/demo.git")

    assert excinfo.value.status_code == 409


@pytest.mark.parametrize(
    "flags,expected",
    [
        ({"admin": True, "maintain": True, "push": True, "pull": True}, "admin"),
        ({"maintain": True, "push": True, "pull": True}, "write"),
        ({"push": True, "pull": True}, "write"),
        ({"pull": True}, "read"),
        ({"triage": True}, "read"),
        ({}, "read"),
    ],
)
def test_add_collaborator_uses_highest_permission(gitea_target, fake_gitea, flags, expected) -> None:
    access = gitea_target.add_collaborator("acme-gt", "demo", "alice", flags)

    assert access.value == expected
    assert fake_gitea.collaborators["acme-gt/demo"]["alice"] == expected


def test_add_user_public_key_reports_key_in_use(gitea_target) -> None:
    """A reused key surfaces as a GiteaError flagged as key-in-use."""
    gitea_target.add_user_public_key("alice", "laptop", "ssh-ed25519 AAAA alice")

    with pytest.raises(GiteaError) as excinfo:
        gitea_target.add_user_public_key("bob", "laptop", "ssh-ed25519 AAAA alice")

    assert excinfo.value.is_key_in_use
    assert not excinfo.value.is_not_found


def test_get_current_user_unauthorized_raises_auth_error(gitea_target, fake_gitea) -> None:
    fake_gitea.fail[("GET", "/user")] = (401, "token is required")

    with pytest.raises(AuthenticationError):
        gitea_target.get_current_user()


def test_connect_rejects_server_without_scheme() -> None:
    target = GiteaTarget(
        GiteaConfig(server="gitea.example.com", token="gt-token"),
        TeamDefaults(),
        MigrationBundle(),
    )

    with pytest.raises(ValidationError):
        target.connect()


def test_connect_builds_authenticated_session() -> None:
    target = GiteaTarget(
        GiteaConfig(server="https://gitea.example.com/", token="gt-token", skip_verify=True),
        TeamDefaults(),
        MigrationBundle(),
    )

    target.connect()

    assert target.api_url == "https://gitea.example.com/api/v1"
    assert target.session.headers["Authorization"] == "token gt-token"
    assert target.session.verify is False


def test_deadline_bounds_request_timeout(gitea_target, fake_gitea) -> None:
    """Requests never get a timeout longer than what is left of the run."""
    deadline = MagicMock()
    deadline.request_timeout.return_value = 4.0
    gitea_target.deadline = deadline
    fake_gitea.request = MagicMock(wraps=fake_gitea.request)

    gitea_target.get_current_user()

    deadline.check.assert_called_once()
    assert fake_gitea.request.call_args.kwargs["timeout"] == 4.0
