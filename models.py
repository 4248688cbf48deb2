#!/usr/bin/env python3
"""Value objects read from hosts and produced by a finalization run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class RepositorySettings:
    """Repository-level settings as read from a host."""
    description: Optional[str] = None
    homepage: Optional[str] = None
    visibility: Optional[str] = None
    default_branch: Optional[str] = None
    has_issues: bool = False
    has_projects: bool = False
    has_wiki: bool = False
    is_archived: bool = False
    allow_squash_merge: bool = False
    allow_merge_commit: bool = False
    allow_rebase_merge: bool = False
    delete_branch_on_merge: bool = False

    def update_payload(self) -> Dict[str, Any]:
        """Return the subset of settings that is written to a target.

        Visibility, default branch and archived state are left alone.
        """
        return {
            "description": self.description,
            "homepage": self.homepage,
            "has_issues": self.has_issues,
            "has_projects": self.has_projects,
            "has_wiki": self.has_wiki,
            "allow_squash_merge": self.allow_squash_merge,
            "allow_merge_commit": self.allow_merge_commit,
            "allow_rebase_merge": self.allow_rebase_merge,
            "delete_branch_on_merge": self.delete_branch_on_merge,
        }


@dataclass(frozen=True)
class Autolink:
    """An autolink reference; ``id`` is host-assigned and never written."""
    id: Optional[int]
    key_prefix: str
    url_template: str


@dataclass(frozen=True)
class StepOutcome:
    name: str
    succeeded: bool


@dataclass
class AutolinkTally:
    added: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class BranchFailure:
    """A branch whose protection rule could not be written."""
    branch: str
    reason: str  # "validation" or "transport"
    message: str


@dataclass
class BranchProtectionTally:
    migrated: int = 0
    skipped: int = 0
    failures: List[BranchFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass
class FinalizeSummary:
    """Outcome of a finalization run."""
    dry_run: bool = False
    steps: List[StepOutcome] = field(default_factory=list)
    autolinks: Optional[AutolinkTally] = None
    branch_protection: Optional[BranchProtectionTally] = None

    @property
    def succeeded(self) -> int:
        return sum(1 for step in self.steps if step.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for step in self.steps if not step.succeeded)

    @property
    def ok(self) -> bool:
        return self.failed == 0
