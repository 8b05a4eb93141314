#!/usr/bin/env python3
"""Main orchestrator for migrating a GitHub organization to Gitea."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from config import Config
from errors import DeadlineExceededError, MigrationError
from gitea_target import GiteaTarget
from github_source import GitHubSource
from logging_utils import Logger
from models import (KeySummary, PhaseSummary, RosterEntry, RunReport,
                    SourceOrg, SourceRepo, SourceTeam, SourceUser, TargetOrg,
                    TargetUser, UnitStatus)
from permissions import map_permission
from roster import read_user_list
from utils import Deadline, sanitize_team_name

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1

PHASE_MEMBERS = "members"
PHASE_TEAMS = "teams"
PHASE_TEAM_MEMBERS = "team_members"
PHASE_REPOS = "repos"
PHASE_COLLABORATORS = "collaborators"
PHASE_ROSTER = "roster"
PHASE_SSH_KEYS = "ssh_keys"


class MigrationOrchestrator:
    """Runs one migration, strictly in order: org, members, teams, repos, roster.

    Authentication and organization setup are fatal on failure. Everything
    after that is attempted one unit at a time; a failed unit is logged,
    recorded in the run report and skipped.
    """

    def __init__(
        self,
        cfg: Config,
        source: Optional[GitHubSource] = None,
        target: Optional[GiteaTarget] = None,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.cfg = cfg
        self.deadline = deadline or Deadline(cfg.migration.timeout_s)
        self.gh = source or GitHubSource(cfg.github, self.deadline)
        self.gt = target or GiteaTarget(
            cfg.gitea, cfg.team_defaults, cfg.bundle, self.deadline
        )
        self.report = RunReport()
        self.source_user: Optional[SourceUser] = None
        self.target_org: Optional[TargetOrg] = None
        self._users: Dict[str, TargetUser] = {}

    def run(self) -> int:
        try:
            roster = self._load_roster()

            self.gh.connect()
            self.gt.connect()
            self._authenticate()

            source_org = self._fetch_source_org()
            self.target_org = self._create_target_org(source_org)
            self.report.ok = True

            self._migrate_members()
            self._migrate_teams()
            self._migrate_repos()
            if roster:
                self._provision_roster(roster)

            self._log_summary()
            Logger.info("mission accomplished")
            return EXIT_SUCCESS
        except DeadlineExceededError as e:
            Logger.error(f"run timed out: {e}")
            self._log_summary()
            return e.exit_code
        except MigrationError as e:
            Logger.error(f"migration failed: {e}")
            return e.exit_code
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _load_roster(self) -> List[RosterEntry]:
        path = self.cfg.migration.user_list_file
        if not path:
            return []
        return read_user_list(path)

    def _authenticate(self) -> None:
        self.source_user = self.gh.get_current_user()
        target_user = self.gt.get_current_user()
        Logger.info(
            "github user",
            login=self.source_user.login,
            name=self.source_user.name,
            email=self.source_user.email,
        )
        Logger.info(
            "gitea user",
            login=target_user.login,
            name=target_user.full_name,
            email=target_user.email,
        )

    def _fetch_source_org(self) -> SourceOrg:
        return self.gh.get_org(self.cfg.migration.source_org)

    def _create_target_org(self, source_org: SourceOrg) -> TargetOrg:
        Logger.info("start create organization", name=self.cfg.migration.target_org)
        return self.gt.get_or_create_org(
            self.cfg.migration.target_org,
            source_org.description,
            self.cfg.migration.org_visibility,
        )

    def _attempt(
        self,
        phase: PhaseSummary,
        name: str,
        action: Callable[[], Optional[UnitStatus]],
    ) -> bool:
        """Run one unit of work, recording its outcome instead of raising.

        Only an exhausted deadline escapes: it ends the whole run.
        """
        try:
            status = action() or UnitStatus.SUCCESS
        except DeadlineExceededError:
            raise
        except Exception as e:
            Logger.error(f"{phase.phase}: failed", name=name, error=e)
            phase.record(name, UnitStatus.FAILED, str(e))
            return False
        phase.record(name, status)
        return status == UnitStatus.SUCCESS

    def _ensure_user(self, login: str, profile: Optional[SourceUser] = None) -> TargetUser:
        """Create-or-reuse a Gitea account for a GitHub login, once per run."""
        cached = self._users.get(login)
        if cached is not None:
            return cached
        if profile is None:
            profile = self.gh.get_user(login)
        user = self.gt.get_or_create_user(
            username=login, full_name=profile.name, email=profile.email
        )
        Logger.debug("gitea user ready", name=login, email=profile.email)
        self._users[login] = user
        return user

    def _migrate_members(self) -> None:
        org = self.cfg.migration.source_org
        phase = self.report.phase(PHASE_MEMBERS)
        members = self.gh.list_org_members(org)
        Logger.info(f"found {len(members)} organization members")

        for member in members:
            def migrate_member(login: str = member.login) -> None:
                self._ensure_user(login)
                role = self.gh.get_org_role(org, login)
                Logger.debug("github member role", name=login, role=role)

            self._attempt(phase, member.login, migrate_member)

    def _migrate_teams(self) -> None:
        org = self.cfg.migration.source_org
        phase = self.report.phase(PHASE_TEAMS)
        teams = self.gh.list_org_teams(org)
        Logger.info(f"found {len(teams)} teams")

        for team in teams:
            self._collect_team_repos(org, team)
            self._attempt(phase, team.name, lambda team=team: self._migrate_team(org, team))

    def _collect_team_repos(self, org: str, team: SourceTeam) -> None:
        try:
            repos = self.gh.list_team_repos(org, team.slug)
        except DeadlineExceededError:
            raise
        except MigrationError as e:
            Logger.error("failed to list github team repos", name=team.name, error=e)
            return
        # Recorded for reference only; access is not applied to migrated repos.
        self.report.team_repos[team.name] = [r.name for r in repos]

    def _migrate_team(self, org: str, team: SourceTeam) -> None:
        access = map_permission(team.permission)
        team_name = sanitize_team_name(team.name)
        if team_name != team.name:
            Logger.debug("sanitized team name", name=team.name, sanitized=team_name)

        gt_team = self.gt.get_or_create_team(
            self.cfg.migration.target_org, team_name, team.description, access
        )
        Logger.debug("gitea team ready", name=team_name, permission=access.value)

        members = self.gh.list_team_members(org, team.slug)
        phase = self.report.phase(PHASE_TEAM_MEMBERS)
        for member in members:
            def add_member(login: str = member.login) -> None:
                self._ensure_user(login)
                self.gt.add_team_member(gt_team.id, login)
                Logger.debug("add gitea team member", name=team_name, user=login)

            self._attempt(phase, f"{team_name}/{member.login}", add_member)

    def _migrate_repos(self) -> None:
        phase = self.report.phase(PHASE_REPOS)
        repos = self.gh.list_org_repos(self.cfg.migration.source_org)
        total = len(repos)
        Logger.info(f"found {total} repositories to migrate")

        for idx, repo in enumerate(repos, start=1):
            Logger.info(
                f"[{idx}/{total}] migrate: {repo.owner}/{repo.name} -> "
                f"{self.cfg.migration.target_org}/{repo.name}"
            )
            if self._attempt(phase, repo.name, lambda repo=repo: self._migrate_repo(repo)):
                self._migrate_collaborators(repo)

    def _migrate_repo(self, repo: SourceRepo) -> None:
        auth_username = self.source_user.login if self.source_user else ""
        migrated = self.gt.migrate_repo(
            owner=self.cfg.migration.target_org,
            name=repo.name,
            clone_addr=repo.clone_url,
            private=repo.private,
            description=repo.description,
            auth_username=auth_username,
            auth_token=self.cfg.github.token,
        )
        Logger.info("migrate repo success", name=repo.name, target=migrated.full_name)

    def _migrate_collaborators(self, repo: SourceRepo) -> None:
        phase = self.report.phase(PHASE_COLLABORATORS)
        target_org = self.cfg.migration.target_org
        try:
            collaborators = self.gh.list_repo_collaborators(repo.owner, repo.name)
        except DeadlineExceededError:
            raise
        except MigrationError as e:
            Logger.error("failed to list github collaborators", name=repo.name, error=e)
            phase.record(f"{repo.name}/*", UnitStatus.FAILED, str(e))
            return

        for collaborator in collaborators:
            unit = f"{repo.name}/{collaborator.login}"
            if not collaborator.is_user:
                Logger.debug(
                    "skip github user type",
                    name=collaborator.login,
                    type=collaborator.type,
                )
                phase.record(unit, UnitStatus.SKIPPED, f"type {collaborator.type}")
                continue

            def grant(collaborator=collaborator) -> None:
                self._ensure_user(collaborator.login)
                access = self.gt.add_collaborator(
                    target_org, repo.name, collaborator.login, collaborator.permissions
                )
                Logger.debug(
                    "add gitea repo collaborator",
                    repo=repo.name,
                    name=collaborator.login,
                    permission=access.value,
                )

            self._attempt(phase, unit, grant)

    def _provision_roster(self, roster: List[RosterEntry]) -> None:
        phase = self.report.phase(PHASE_ROSTER)
        Logger.info(f"provisioning {len(roster)} users from user list")

        for entry in roster:
            created = self._attempt(phase, entry.login, lambda entry=entry: self._provision_user(entry))
            if created and self.cfg.migration.migrate_ssh_keys:
                self._attempt(
                    phase,
                    f"{entry.login}/ssh_keys",
                    lambda entry=entry: self._migrate_ssh_keys(entry.login),
                )

    def _provision_user(self, entry: RosterEntry) -> None:
        profile = self.gh.get_user(entry.login)
        user = self.gt.get_or_create_user(
            username=entry.login,
            full_name=profile.name,
            email=entry.email or profile.email,
        )
        self._users[entry.login] = user
        Logger.info(
            "user created or exists",
            login=entry.login,
            role=entry.role,
            fullName=profile.name,
        )

    def _migrate_ssh_keys(self, login: str) -> Optional[UnitStatus]:
        keys = self.gh.list_user_keys(login)
        phase = self.report.phase(PHASE_SSH_KEYS)
        summary = KeySummary(login=login, total=len(keys))
        self.report.key_summaries[login] = summary

        for index, key in enumerate(keys):
            title = key.title or f"Migrate key-{index} from {login}"
            unit = f"{login}/{title}"
            try:
                self.gt.add_user_public_key(login, title, key.key)
            except DeadlineExceededError:
                raise
            except MigrationError as e:
                if getattr(e, "is_key_in_use", False):
                    summary.exists += 1
                    phase.record(unit, UnitStatus.DUPLICATE)
                    Logger.info("ssh key already exists in gitea", login=login, title=title)
                    continue
                summary.failed += 1
                phase.record(unit, UnitStatus.FAILED, str(e))
                Logger.warn("failed to migrate ssh key", login=login, title=title, error=e)
                continue
            summary.success += 1
            phase.record(unit, UnitStatus.SUCCESS)
            Logger.info("successfully migrated ssh key", login=login, title=title)

        Logger.info(
            "ssh key migration summary",
            login=login,
            total=summary.total,
            success=summary.success,
            exists=summary.exists,
            failed=summary.failed,
        )
        if summary.failed and not summary.success:
            return UnitStatus.FAILED
        return None

    def _log_summary(self) -> None:
        for name, phase in self.report.phases.items():
            Logger.info(
                "phase summary",
                phase=name,
                attempted=phase.attempted,
                success=phase.succeeded,
                skipped=phase.skipped,
                failed=phase.failed,
            )
        for team, repos in self.report.team_repos.items():
            Logger.debug("team repositories", team=team, repos=",".join(repos))
