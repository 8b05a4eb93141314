"""Tests for command line parsing and validation."""

from __future__ import annotations

import pytest

from argument_parser import parse_arguments
from config import DEFAULT_GITEA_SERVER, Visibility
from logging_utils import Logger
from version import version_string


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    monkeypatch.setattr(Logger, "debug_enabled", False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITEA_TOKEN", raising=False)


def test_defaults_and_target_org_fallback() -> None:
    cfg = parse_arguments(["--gh-token", "gh", "--gt-token", "gt", "--source-org", "acme"])

    assert cfg.migration.source_org == "acme"
    assert cfg.migration.target_org == "acme"
    assert cfg.migration.timeout_s == 600.0
    assert cfg.migration.org_visibility is Visibility.PRIVATE
    assert cfg.migration.migrate_ssh_keys is True
    assert cfg.gitea.server == DEFAULT_GITEA_SERVER
    assert cfg.github.api_url == "https://api.github.com"


def test_full_flag_set(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "gh-env")
    monkeypatch.setenv("GITEA_TOKEN", "gt-env")

    cfg = parse_arguments([
        "--gh-server", "https://github.acme.com/api/v3/",
        "--gt-server", "https://gitea.acme.io/",
        "--gt-source-id", "2",
        "--gt-skip-verify",
        "--source-org", "acme",
        "--target-org", "acme-gt",
        "--org-visibility", "public",
        "--timeout", "1h30m",
        "--user-list", "users.csv",
        "--skip-ssh-keys",
        "--debug",
    ])

    assert cfg.github.token == "gh-env"
    assert cfg.github.api_url == "https://github.acme.com/api/v3"
    assert cfg.gitea.token == "gt-env"
    assert cfg.gitea.server == "https://gitea.acme.io"
    assert cfg.gitea.source_id == 2
    assert cfg.gitea.skip_verify is True
    assert cfg.migration.target_org == "acme-gt"
    assert cfg.migration.org_visibility is Visibility.PUBLIC
    assert cfg.migration.timeout_s == 5400.0
    assert cfg.migration.user_list_file == "users.csv"
    assert cfg.migration.migrate_ssh_keys is False
    assert cfg.debug is True


def test_bad_timeout_exits_with_argument_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(["--gh-token", "gh", "--gt-token", "gt", "--source-org", "acme", "--timeout", "soon"])

    assert excinfo.value.code == 2


def test_missing_source_org_exits_with_argument_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(["--gh-token", "gh", "--gt-token", "gt"])

    assert excinfo.value.code == 2


def test_missing_token_exits_with_auth_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(["--gh-token", "gh", "--source-org", "acme"])

    assert excinfo.value.code == 40


def test_version_short_circuits(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(["--version"])

    assert excinfo.value.code == 0
    assert version_string() in capsys.readouterr().out
