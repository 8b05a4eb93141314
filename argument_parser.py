#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional, Tuple

from config import (DEFAULT_GITEA_SERVER, Config, GiteaConfig, GitHubConfig,
                    MigrationConfig, Visibility)
from errors import EXIT_AUTH_ERROR, EXIT_MISSING_ARGUMENTS
from logging_utils import Logger
from security import SecurityValidator
from utils import parse_duration
from version import version_string


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Migrate a GitHub organization to Gitea via API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --source-org acme --gt-server https://gitea.acme.io
  %(prog)s --source-org acme --target-org acme-gt --timeout 1h
  %(prog)s --source-org acme --user-list users.csv --skip-ssh-keys
  %(prog)s --gh-server https://github.acme.com/api/v3 \\
           --gt-server https://gitea.acme.io --gt-source-id 2 \\
           --source-org acme --debug
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=version_string(),
    )
    return parser


def _add_github_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitHub-related arguments to parser."""
    parser.add_argument(
        "--gh-token",
        dest="gh_token",
        help="GitHub personal access token (or set GITHUB_TOKEN env var)",
    )
    parser.add_argument(
        "--gh-server",
        dest="gh_server",
        default="",
        help="GitHub Enterprise API URL (default: public GitHub)",
    )
    parser.add_argument(
        "--gh-skip-verify",
        action="store_true",
        dest="gh_skip_verify",
        help="Skip TLS verification for GitHub",
    )


def _add_gitea_arguments(parser: argparse.ArgumentParser) -> None:
    """Add Gitea-related arguments to parser."""
    parser.add_argument(
        "--gt-server",
        dest="gt_server",
        default=DEFAULT_GITEA_SERVER,
        help=f"Gitea server URL (default: {DEFAULT_GITEA_SERVER})",
    )
    parser.add_argument(
        "--gt-token",
        dest="gt_token",
        help="Gitea access token with admin rights (or set GITEA_TOKEN env var)",
    )
    parser.add_argument(
        "--gt-skip-verify",
        action="store_true",
        dest="gt_skip_verify",
        help="Skip TLS verification for Gitea",
    )
    parser.add_argument(
        "--gt-source-id",
        dest="gt_source_id",
        type=int,
        default=0,
        help="Gitea authentication source id for created users (default: 0)",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add behavior and configuration arguments to parser."""
    parser.add_argument(
        "--source-org",
        dest="source_org",
        help="GitHub organization to migrate",
    )
    parser.add_argument(
        "--target-org",
        dest="target_org",
        help="Gitea organization to create or reuse (default: source org)",
    )
    parser.add_argument(
        "--org-visibility",
        dest="org_visibility",
        choices=[visibility.value for visibility in Visibility],
        default=Visibility.PRIVATE.value,
        help="Visibility for a newly created Gitea organization (default: private)",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout",
        default="10m",
        help="Time budget for the whole run, e.g. 30s, 10m, 1h30m (default: 10m)",
    )
    parser.add_argument(
        "--user-list",
        dest="user_list",
        help="CSV user list (created_at,id,login,email,role) to provision",
    )
    parser.add_argument(
        "--skip-ssh-keys",
        action="store_true",
        dest="skip_ssh_keys",
        help="Do not copy SSH keys for users in the user list",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        dest="debug",
        help="Enable debug logging",
    )


def _validate_parsed_arguments(args) -> Tuple[str, str, str, str, float, Optional[str]]:
    """Validate and sanitize parsed arguments for security."""
    try:
        if not args.source_org:
            raise ValueError("source org is required (use --source-org)")
        validated_source_org = SecurityValidator.validate_name(
            args.source_org, "Source organization"
        )
        validated_target_org = SecurityValidator.validate_name(
            args.target_org or args.source_org, "Target organization"
        )

        validated_gt_server = SecurityValidator.validate_url(
            args.gt_server, ["https", "http"]
        )
        validated_gh_server = ""
        if args.gh_server:
            validated_gh_server = SecurityValidator.validate_url(
                args.gh_server, ["https", "http"]
            )

        timeout_s = parse_duration(args.timeout)

        validated_user_list = None
        if args.user_list:
            validated_user_list = SecurityValidator.validate_file_path(args.user_list)

        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all configuration inputs"
        )

        return (
            validated_source_org,
            validated_target_org,
            validated_gh_server,
            validated_gt_server,
            timeout_s,
            validated_user_list,
        )

    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)


def _get_and_validate_tokens(args) -> Tuple[str, str]:
    """Get and validate authentication tokens."""
    gh_token = args.gh_token or os.getenv("GITHUB_TOKEN")
    gt_token = args.gt_token or os.getenv("GITEA_TOKEN")
    if not gh_token:
        Logger.error(
            "error: github token not provided (use --gh-token or GITHUB_TOKEN)"
        )
        sys.exit(EXIT_AUTH_ERROR)
    if not gt_token:
        Logger.error(
            "error: gitea token not provided (use --gt-token or GITEA_TOKEN)"
        )
        sys.exit(EXIT_AUTH_ERROR)
    return gh_token, gt_token


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_github_arguments(parser)
    _add_gitea_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)
    Logger.set_debug(args.debug)

    (
        validated_source_org,
        validated_target_org,
        validated_gh_server,
        validated_gt_server,
        timeout_s,
        validated_user_list,
    ) = _validate_parsed_arguments(args)

    gh_token, gt_token = _get_and_validate_tokens(args)

    return Config(
        github=GitHubConfig(
            token=gh_token,
            server=validated_gh_server,
            skip_verify=args.gh_skip_verify,
        ),
        gitea=GiteaConfig(
            server=validated_gt_server,
            token=gt_token,
            skip_verify=args.gt_skip_verify,
            source_id=args.gt_source_id,
        ),
        migration=MigrationConfig(
            source_org=validated_source_org,
            target_org=validated_target_org,
            timeout_s=timeout_s,
            org_visibility=Visibility(args.org_visibility),
            user_list_file=validated_user_list,
            migrate_ssh_keys=not args.skip_ssh_keys,
        ),
        debug=args.debug,
    )
