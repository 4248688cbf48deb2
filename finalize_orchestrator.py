#!/usr/bin/env python3
"""Orchestrator that finalizes a migrated repository on the target host."""

from __future__ import annotations

from typing import Callable, Optional

from branch_protection import build_branch_protection_payload
from config import ArtifactType, Config
from exceptions import (ConflictError, FinalizeError, HostAuthenticationError,
                        HostValidationError, RepoNotFoundError)
from github_host import GitHubHost
from logging_utils import Logger
from models import (AutolinkTally, BranchFailure, BranchProtectionTally,
                    FinalizeSummary, StepOutcome)
from repo_host import RepoHost
from utils import pluralize

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_AUTH_ERROR = 40

SKIP_LABELS = {
    ArtifactType.SETTINGS: "repository settings",
    ArtifactType.AUTOLINKS: "autolinks",
    ArtifactType.TOPICS: "topics",
    ArtifactType.BRANCH_PROTECTION: "branch protection rules",
}


class FinalizeOrchestrator:
    """Runs the finalization steps for one source/target repository pair.

    Every step re-reads the state it needs from the hosts, so a run that
    failed halfway can simply be repeated.
    """

    def __init__(
        self,
        cfg: Config,
        source: Optional[RepoHost] = None,
        target: Optional[RepoHost] = None,
    ) -> None:
        self.cfg = cfg
        self.options = cfg.options
        self.source = source if source is not None else GitHubHost(cfg.source)
        self.target = target if target is not None else GitHubHost(cfg.target)
        self.summary = FinalizeSummary(dry_run=cfg.options.dry_run)

    def run(self) -> int:
        """Finalize and map the outcome to a process exit code."""
        try:
            self.source.connect()
            self.target.connect()
            self.finalize()
            return EXIT_SUCCESS
        except HostAuthenticationError as e:
            Logger.error(f"authentication failed: {e}")
            return EXIT_AUTH_ERROR
        except FinalizeError as e:
            Logger.error(str(e))
            return EXIT_EXECUTION_ERROR
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def finalize(self) -> FinalizeSummary:
        """Validate both repositories, then run every enabled step in order.

        Raises:
            RepoNotFoundError: If the source or target repository is missing.
        """
        self.summary = FinalizeSummary(dry_run=self.options.dry_run)
        Logger.info(
            f"Finalizing migration for repository '{self.source.full_name}' -> "
            f"'{self.target.full_name}'..."
        )
        if self.options.dry_run:
            Logger.info("DRY RUN: No changes will be made.")

        self._validate_preconditions()

        if self.options.archive_source:
            self._execute_step("Archive source repository", self._archive_source)

        self._execute_artifact_step(
            ArtifactType.SETTINGS, "Migrate repository settings", self._migrate_settings
        )
        self._execute_artifact_step(
            ArtifactType.AUTOLINKS, "Migrate autolinks", self._migrate_autolinks
        )
        self._execute_artifact_step(
            ArtifactType.TOPICS, "Migrate topics", self._migrate_topics
        )
        self._execute_artifact_step(
            ArtifactType.BRANCH_PROTECTION,
            "Migrate branch protection rules",
            self._migrate_branch_protection,
        )

        self._log_summary()
        return self.summary

    def _validate_preconditions(self) -> None:
        Logger.info("Validating source repository exists...")
        if not self.source.repo_exists():
            raise RepoNotFoundError(
                self.source.full_name,
                f"Source repository '{self.source.full_name}' does not exist "
                "or is not accessible.",
            )

        Logger.info("Validating target repository exists...")
        if not self.target.repo_exists():
            raise RepoNotFoundError(
                self.target.full_name,
                f"Target repository '{self.target.full_name}' does not exist. "
                "Ensure the migration has completed before running finalize-repo.",
            )

    def _execute_artifact_step(
        self, artifact: ArtifactType, name: str, action: Callable[[], None]
    ) -> None:
        if self.options.is_skipped(artifact):
            Logger.info(
                f"Skipping {SKIP_LABELS[artifact]} (excluded via --skip-artifacts)."
            )
            return
        self._execute_step(name, action)

    def _execute_step(self, name: str, action: Callable[[], None]) -> bool:
        """Run one step, recording a failure instead of propagating it."""
        Logger.info(f"[{name}]")
        try:
            action()
            succeeded = True
        except FinalizeError as e:
            Logger.error(f"[{name}] failed: {e}")
            Logger.debug(repr(e))
            succeeded = False
        self.summary.steps.append(StepOutcome(name=name, succeeded=succeeded))
        return succeeded

    def _archive_source(self) -> None:
        if self.source.is_archived():
            Logger.info("Source repository is already archived. Skipping.")
            return

        if self.options.dry_run:
            Logger.info(
                f"DRY RUN: Would archive source repository '{self.source.full_name}'."
            )
            return

        self.source.archive()
        Logger.success(
            f"Source repository '{self.source.full_name}' has been archived (read-only)."
        )

    def _migrate_settings(self) -> None:
        settings = self.source.get_settings()

        if self.options.dry_run:
            Logger.info(
                "DRY RUN: Would migrate repository settings (description, homepage, "
                "merge options, feature toggles)."
            )
            return

        self.target.update_settings(settings.update_payload())
        Logger.info("Repository settings migrated.")

    def _migrate_autolinks(self) -> None:
        source_autolinks = self.source.get_autolinks()
        if not source_autolinks:
            Logger.info("No autolinks found on source repository.")
            return

        target_prefixes = {a.key_prefix for a in self.target.get_autolinks()}
        tally = AutolinkTally()
        self.summary.autolinks = tally

        for autolink in source_autolinks:
            prefix = autolink.key_prefix
            if prefix in target_prefixes:
                Logger.debug(
                    f"Autolink with key prefix '{prefix}' already exists on target. "
                    "Skipping."
                )
                tally.skipped += 1
                continue

            if self.options.dry_run:
                Logger.info(
                    f"DRY RUN: Would add autolink '{prefix}' -> "
                    f"'{autolink.url_template}'."
                )
                tally.added += 1
                continue

            try:
                self.target.add_autolink(prefix, autolink.url_template)
                tally.added += 1
            except ConflictError:
                # Prefix created after the target was read, or differing only in case.
                Logger.warn(
                    f"Autolink with key prefix '{prefix}' could not be added "
                    "(may already exist). Skipping."
                )
                tally.skipped += 1

        Logger.info(f"Autolinks: {tally.added} added, {tally.skipped} skipped.")

    def _migrate_topics(self) -> None:
        topics = list(self.source.get_topics())
        if not topics:
            Logger.info("No topics found on source repository.")
            return

        if self.options.dry_run:
            Logger.info(f"DRY RUN: Would set topics: {', '.join(topics)}")
            return

        self.target.set_topics(topics)
        Logger.info(f"Migrated {pluralize(len(topics), 'topic')}.")

    def _migrate_branch_protection(self) -> None:
        source_branches = self.source.get_branches()
        target_branches = set(self.target.get_branches())
        tally = BranchProtectionTally()
        self.summary.branch_protection = tally

        for branch in source_branches:
            rule = self.source.get_branch_protection(branch)
            if rule is None:
                continue

            if branch not in target_branches:
                Logger.debug(
                    f"Branch '{branch}' does not exist on target. "
                    "Skipping branch protection."
                )
                tally.skipped += 1
                continue

            if self.options.dry_run:
                Logger.info(
                    f"DRY RUN: Would apply branch protection rules to '{branch}'."
                )
                tally.migrated += 1
                continue

            try:
                payload = build_branch_protection_payload(rule)
                self.target.set_branch_protection(branch, payload)
                tally.migrated += 1
            except FinalizeError as e:
                reason = "validation" if isinstance(e, HostValidationError) else "transport"
                Logger.warn(
                    f"Failed to set branch protection for '{branch}' ({reason}): {e}"
                )
                tally.failures.append(
                    BranchFailure(branch=branch, reason=reason, message=str(e))
                )

        Logger.info(
            f"Branch protection rules: {tally.migrated} migrated, "
            f"{tally.skipped} skipped, {tally.failed} failed."
        )

    def _log_summary(self) -> None:
        Logger.info("")
        Logger.info("== Finalization Summary ==")
        Logger.info(f"Steps succeeded: {self.summary.succeeded}")
        if self.summary.failed > 0:
            Logger.warn(f"Steps failed: {self.summary.failed}")

        if self.summary.dry_run:
            Logger.info("DRY RUN completed. No changes were made.")
        elif self.summary.ok:
            Logger.success("Repository finalization completed successfully.")
        else:
            Logger.warn(
                "Repository finalization completed with errors. Review the log "
                "output above and retry if needed. The command is safe to re-run "
                "(idempotent)."
            )
