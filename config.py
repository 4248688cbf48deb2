#!/usr/bin/env python3
"""Configuration dataclasses for finalize-repo."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

DEFAULT_TARGET_API_URL = "https://api.github.com"


class ArtifactType(Enum):
    """Repository artifacts that finalize-repo can migrate."""
    SETTINGS = "settings"
    AUTOLINKS = "autolinks"
    TOPICS = "topics"
    BRANCH_PROTECTION = "branch-protection"

    @classmethod
    def parse_skip_set(cls, value: Optional[str]) -> FrozenSet["ArtifactType"]:
        """Parse a comma-separated list of artifact names.

        Matching is case-insensitive and blank entries are ignored. Unknown
        names raise ValueError so a typo cannot silently skip nothing.
        """
        if not value or not value.strip():
            return frozenset()

        by_name = {artifact.value: artifact for artifact in cls}
        skipped = set()
        for raw in value.split(","):
            name = raw.strip().lower()
            if not name:
                continue
            if name not in by_name:
                valid = ", ".join(by_name)
                raise ValueError(
                    f"invalid artifact type '{raw.strip()}' (valid values: {valid})"
                )
            skipped.add(by_name[name])
        return frozenset(skipped)


@dataclass(frozen=True)
class RepositoryIdentity:
    """Location and credentials of one repository."""
    api_url: str
    org: str
    repo: str
    token: str = field(repr=False)
    no_ssl_verify: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.repo}"


@dataclass
class FinalizeOptions:
    """What the finalization run should do."""
    skip_artifacts: FrozenSet[ArtifactType] = frozenset()
    archive_source: bool = False
    dry_run: bool = False

    def is_skipped(self, artifact: ArtifactType) -> bool:
        return artifact in self.skip_artifacts


@dataclass
class Config:
    """Main configuration for a finalization run."""
    source: RepositoryIdentity
    target: RepositoryIdentity
    options: FinalizeOptions
    verbose: bool = False
