#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional, Tuple

from config import (DEFAULT_TARGET_API_URL, ArtifactType, Config,
                    FinalizeOptions, RepositoryIdentity)
from logging_utils import Logger
from security import SecurityValidator

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_INVALID_ARGUMENTS = 2


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="finalize-repo",
        description=(
            "Finalizes a completed migration by optionally archiving the source "
            "repository and migrating repository artifacts (settings, autolinks, "
            "topics, branch protection rules) that are not included in the "
            "default migration."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --github-source-org legacy --source-repo app \\
           --github-target-org acme --ghes-api-url https://ghes.acme.com/api/v3
  %(prog)s --github-source-org legacy --source-repo app --github-target-org acme \\
           --ghes-api-url https://ghes.acme.com/api/v3 --archive-source-repo --dry-run
  %(prog)s --github-source-org legacy --source-repo app --github-target-org acme \\
           --ghes-api-url https://ghes.acme.com/api/v3 --skip-artifacts topics,autolinks
        """,
    )
    return parser


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    """Add source (GHES) arguments to parser."""
    parser.add_argument(
        "--github-source-org",
        dest="github_source_org",
        required=True,
        help=(
            "Source organization. Uses GH_SOURCE_PAT env variable or "
            "--github-source-pat option. Will fall back to GH_PAT or "
            "--github-target-pat if not set."
        ),
    )
    parser.add_argument(
        "--source-repo",
        dest="source_repo",
        required=True,
        help="Source repository name",
    )
    parser.add_argument(
        "--ghes-api-url",
        dest="ghes_api_url",
        required=True,
        help=(
            "The API endpoint for your GHES instance. For example: "
            "http(s)://ghes.contoso.com/api/v3"
        ),
    )
    parser.add_argument(
        "--no-ssl-verify",
        action="store_true",
        dest="no_ssl_verify",
        help=(
            "Disables SSL verification when communicating with your GHES instance. "
            "All other operations will continue to verify SSL."
        ),
    )
    parser.add_argument(
        "--github-source-pat",
        dest="github_source_pat",
        help="Source personal access token (or set GH_SOURCE_PAT env var)",
    )


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    """Add target arguments to parser."""
    parser.add_argument(
        "--github-target-org",
        dest="github_target_org",
        required=True,
        help="Target organization. Uses GH_PAT env variable or --github-target-pat option.",
    )
    parser.add_argument(
        "--target-repo",
        dest="target_repo",
        help="Target repository name. Defaults to the name of source-repo",
    )
    parser.add_argument(
        "--target-api-url",
        dest="target_api_url",
        default=DEFAULT_TARGET_API_URL,
        help=(
            "The URL of the target API, if not migrating to github.com. "
            f"Defaults to {DEFAULT_TARGET_API_URL}"
        ),
    )
    parser.add_argument(
        "--github-target-pat",
        dest="github_target_pat",
        help="Target personal access token (or set GH_PAT env var)",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add behavior arguments to parser."""
    parser.add_argument(
        "--archive-source-repo",
        action="store_true",
        dest="archive_source_repo",
        help=(
            "Archive the source repository on GHES after finalization. This sets "
            "the repository to archived (read-only), blocking all writes including "
            "pushes, issues, and pull requests. This is reversible."
        ),
    )
    parser.add_argument(
        "--skip-artifacts",
        dest="skip_artifacts",
        help=(
            "Comma-separated list of artifact types to skip during finalization. "
            "Valid values: " + ", ".join(a.value for a in ArtifactType)
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Show what would be done without making any changes.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Show debug output",
    )


def _validate_parsed_arguments(args) -> Tuple[str, str, str, str, str, str]:
    """Validate names and URLs; exits with EXIT_INVALID_ARGUMENTS on failure."""
    try:
        source_org = _validate_option(
            "--github-source-org", SecurityValidator.validate_org_name, args.github_source_org
        )
        target_org = _validate_option(
            "--github-target-org", SecurityValidator.validate_org_name, args.github_target_org
        )
        source_repo = _validate_option(
            "--source-repo", SecurityValidator.validate_repo_name, args.source_repo
        )

        if args.target_repo is not None and args.target_repo.strip():
            target_repo = _validate_option(
                "--target-repo", SecurityValidator.validate_repo_name, args.target_repo
            )
        else:
            Logger.info(
                "Target repo name not provided, defaulting to same as source repo "
                f"({source_repo})"
            )
            target_repo = source_repo

        if not args.ghes_api_url or not args.ghes_api_url.strip():
            raise ValueError(
                "--ghes-api-url is required. The finalize-repo command currently "
                "only supports GHES as a source."
            )
        ghes_api_url = _validate_option(
            "--ghes-api-url", SecurityValidator.validate_url, args.ghes_api_url
        )
        target_api_url = _validate_option(
            "--target-api-url",
            lambda url: SecurityValidator.validate_url(url, ["https"]),
            args.target_api_url,
        )

        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all configuration inputs"
        )
        return (
            source_org,
            source_repo,
            target_org,
            target_repo,
            ghes_api_url,
            target_api_url,
        )

    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_INVALID_ARGUMENTS)


def _validate_option(option: str, validator, value: str) -> str:
    try:
        return validator(value)
    except ValueError as e:
        raise ValueError(f"{option}: {e}") from e


def _parse_skip_artifacts(value: Optional[str]):
    try:
        return ArtifactType.parse_skip_set(value)
    except ValueError as e:
        Logger.error(f"--skip-artifacts: {e}")
        sys.exit(EXIT_INVALID_ARGUMENTS)


def _get_and_validate_tokens(args) -> Tuple[str, str]:
    """Resolve source and target tokens from options and environment."""
    target_token = args.github_target_pat or os.getenv("GH_PAT")
    source_token = args.github_source_pat or os.getenv("GH_SOURCE_PAT")

    if not source_token and target_token:
        Logger.info(
            "Since github-target-pat is provided, github-source-pat will also use its value."
        )
        source_token = target_token

    if not target_token:
        Logger.error(
            "error: target access token not provided (use --github-target-pat or GH_PAT)"
        )
        sys.exit(EXIT_AUTH_ERROR)

    return source_token, target_token


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_source_arguments(parser)
    _add_target_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)
    Logger.set_verbose(args.verbose)

    (
        source_org,
        source_repo,
        target_org,
        target_repo,
        ghes_api_url,
        target_api_url,
    ) = _validate_parsed_arguments(args)
    skip_artifacts = _parse_skip_artifacts(args.skip_artifacts)
    source_token, target_token = _get_and_validate_tokens(args)

    return Config(
        source=RepositoryIdentity(
            api_url=ghes_api_url,
            org=source_org,
            repo=source_repo,
            token=source_token,
            no_ssl_verify=args.no_ssl_verify,
        ),
        target=RepositoryIdentity(
            api_url=target_api_url,
            org=target_org,
            repo=target_repo,
            token=target_token,
        ),
        options=FinalizeOptions(
            skip_artifacts=skip_artifacts,
            archive_source=args.archive_source_repo,
            dry_run=args.dry_run,
        ),
        verbose=args.verbose,
    )
