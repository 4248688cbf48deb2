#!/usr/bin/env python3
"""Input validation and log redaction for finalize-repo."""

import re
from typing import List, Optional


class SecurityValidator:
    """Validation of user-supplied names and URLs, plus log sanitization."""

    MAX_NAME_LENGTH = 100
    MAX_URL_LENGTH = 2048

    SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    URL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://\S+$")

    @classmethod
    def is_url(cls, value: Optional[str]) -> bool:
        """Return True if value looks like an absolute URL."""
        if not value:
            return False
        candidate = value.strip()
        return bool(cls.URL_PATTERN.match(candidate)) or candidate.lower().startswith(
            "www."
        )

    @classmethod
    def _validate_name(cls, value: str, kind: str, example: str, url_example: str) -> str:
        if not value or not isinstance(value, str):
            raise ValueError(f"{kind} name must be a non-empty string")

        if cls.is_url(value):
            raise ValueError(
                f"expects the {kind} name, not a URL. Please provide just the "
                f"{kind} name (e.g., '{example}' instead of '{url_example}')"
            )

        if len(value) > cls.MAX_NAME_LENGTH:
            raise ValueError(
                f"{kind} name exceeds maximum length of {cls.MAX_NAME_LENGTH}"
            )

        if "\x00" in value or any(ord(c) < 32 for c in value):
            raise ValueError(f"{kind} name contains null bytes or control characters")

        if ".." in value or not cls.SAFE_NAME_PATTERN.match(value):
            raise ValueError(f"{kind} name '{value}' contains invalid characters")

        return value

    @classmethod
    def validate_org_name(cls, org: str) -> str:
        return cls._validate_name(
            org, "organization", "my-org", "https://github.com/my-org"
        )

    @classmethod
    def validate_repo_name(cls, repo: str) -> str:
        return cls._validate_name(
            repo, "repository", "my-repo", "https://github.com/my-org/my-repo"
        )

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate an API base URL and return it without a trailing slash."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        if "\x00" in url or any(ord(c) < 32 for c in url):
            raise ValueError("URL contains null bytes or control characters")

        if "://" not in url:
            raise ValueError(f"'{url}' is not an absolute URL")

        scheme = url.split("://")[0].lower()
        allowed = allowed_schemes or ["https", "http"]
        if scheme not in allowed:
            raise ValueError(f"URL scheme '{scheme}' not in allowed schemes: {allowed}")

        return url.rstrip("/")

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Redact credentials from a message before it is written out."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"https?://[^:/@\s]+:[^@\s]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"token[=:]\s*[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"bearer\s+[^\s]+", "Bearer [REDACTED]"),  # Authorization headers
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained PATs
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Classic, OAuth, app tokens
        ]

        sanitized = str(message)
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
