#!/usr/bin/env python3
"""Abstract capability for reading and writing one hosted repository."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from config import RepositoryIdentity
from models import Autolink, RepositorySettings


class RepoHost(ABC):
    """Operations the finalizer needs against one repository on one host.

    Failures surface as HostCommunicationError or one of its subclasses.
    """

    def __init__(self, identity: RepositoryIdentity) -> None:
        self.identity = identity

    @property
    def full_name(self) -> str:
        return self.identity.full_name

    def connect(self) -> None:
        """Prepare the API client. Hosts without setup need not override this."""

    @abstractmethod
    def repo_exists(self) -> bool:
        """Return True if the repository exists and is visible to the token."""

    @abstractmethod
    def is_archived(self) -> bool:
        pass

    @abstractmethod
    def archive(self) -> None:
        pass

    @abstractmethod
    def get_settings(self) -> RepositorySettings:
        pass

    @abstractmethod
    def update_settings(self, payload: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def get_autolinks(self) -> List[Autolink]:
        pass

    @abstractmethod
    def add_autolink(self, key_prefix: str, url_template: str) -> None:
        """Create an autolink.

        Raises:
            ConflictError: If an autolink with this prefix already exists.
        """

    @abstractmethod
    def get_topics(self) -> List[str]:
        pass

    @abstractmethod
    def set_topics(self, topics: List[str]) -> None:
        """Replace the whole topic list."""

    @abstractmethod
    def get_branches(self) -> List[str]:
        pass

    @abstractmethod
    def get_branch_protection(self, branch: str) -> Optional[Dict[str, Any]]:
        """Return the raw protection rule of a branch, or None if unprotected."""

    @abstractmethod
    def set_branch_protection(self, branch: str, payload: Dict[str, Any]) -> None:
        """Write a protection payload.

        Raises:
            HostValidationError: If the host rejects the payload.
            HostCommunicationError: On any other failure.
        """
