#!/usr/bin/env python3
"""Exception hierarchy for finalize-repo."""

from __future__ import annotations

from typing import Optional


class FinalizeError(Exception):
    """Base exception for all finalize-repo errors."""


class RepoNotFoundError(FinalizeError):
    """Raised when the source or target repository cannot be accessed."""

    def __init__(self, full_name: str, message: str) -> None:
        super().__init__(message)
        self.full_name = full_name


class HostCommunicationError(FinalizeError):
    """A request against a code-hosting API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HostAuthenticationError(HostCommunicationError):
    """The API rejected the supplied token."""


class HostValidationError(HostCommunicationError):
    """The API rejected a payload (HTTP 422)."""


class ConflictError(HostValidationError):
    """The resource already exists on the host."""
