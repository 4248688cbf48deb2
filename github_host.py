#!/usr/bin/env python3
"""GitHub API wrapper reading and writing one repository's artifacts."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import github
import requests

from config import DEFAULT_TARGET_API_URL, RepositoryIdentity
from exceptions import (ConflictError, HostAuthenticationError,
                        HostCommunicationError, HostValidationError)
from logging_utils import Logger
from models import Autolink, RepositorySettings
from repo_host import RepoHost
from utils import RateLimiter

T = TypeVar("T")

REQUEST_TIMEOUT_S = 30


class GitHubHost(RepoHost):
    """RepoHost backed by PyGithub, with raw REST calls where the JSON shape matters."""

    def __init__(
        self, identity: RepositoryIdentity, max_requests_per_minute: int = 50
    ) -> None:
        super().__init__(identity)
        self.api: Optional[github.Github] = None
        self._repo = None
        self.rate_limiter = RateLimiter(
            f"GitHub API ({identity.api_url})",
            max_requests_per_minute=max_requests_per_minute,
        )

    @property
    def verify_ssl(self) -> bool:
        return not self.identity.no_ssl_verify

    def connect(self) -> None:
        Logger.info(f"init github API: {self.identity.api_url}")
        if not self.verify_ssl:
            Logger.warn(f"SSL verification disabled for {self.identity.api_url}")
        auth = github.Auth.Token(self.identity.token)
        if self.identity.api_url != DEFAULT_TARGET_API_URL:
            self.api = github.Github(
                base_url=self.identity.api_url, auth=auth, verify=self.verify_ssl
            )
        else:
            self.api = github.Github(auth=auth, verify=self.verify_ssl)
        self._repo = None

    def _get_api_headers(self) -> dict:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.identity.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @staticmethod
    def _error_message(data: Any, fallback: str) -> str:
        if isinstance(data, dict) and data.get("message"):
            message = str(data["message"])
            errors = data.get("errors")
            if errors:
                message = f"{message} ({errors})"
            return message
        return fallback

    def _host_error(
        self, action: str, status: Optional[int], message: str
    ) -> HostCommunicationError:
        text = f"failed to {action} for '{self.full_name}': {message}"
        if status == 401:
            return HostAuthenticationError(text, status)
        if status == 422:
            return HostValidationError(text, status)
        return HostCommunicationError(text, status)

    def _call(self, action: str, operation: Callable[[], T]) -> T:
        """Run a PyGithub operation, translating its errors."""
        if self.api is None:
            self.connect()
        try:
            self.rate_limiter.wait_if_needed()
            return operation()
        except github.GithubException as e:
            raise self._host_error(
                action, e.status, self._error_message(e.data, str(e))
            ) from e
        except requests.RequestException as e:
            raise self._host_error(action, None, str(e)) from e

    def _repository(self):
        # One lookup per host; PyGithub refreshes the object on edit().
        if self._repo is None:
            self._repo = self.api.get_repo(self.full_name)
        return self._repo

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        url = f"{self.identity.api_url}/repos/{self.full_name}{path}"
        try:
            self.rate_limiter.wait_if_needed()
            return requests.request(
                method,
                url,
                headers=self._get_api_headers(),
                json=payload,
                timeout=REQUEST_TIMEOUT_S,
                verify=self.verify_ssl,
            )
        except requests.RequestException as e:
            raise self._host_error(action, None, str(e)) from e

    def _raise_for_status(self, response: requests.Response, action: str) -> None:
        if response.status_code < 400:
            return
        try:
            data = response.json()
        except ValueError:
            data = None
        raise self._host_error(
            action,
            response.status_code,
            self._error_message(data, f"HTTP {response.status_code}"),
        )

    def _json(self, response: requests.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise self._host_error(
                action, response.status_code, "response body is not valid JSON"
            ) from e

    def repo_exists(self) -> bool:
        try:
            self._call("look up repository", self._repository)
            return True
        except HostCommunicationError as e:
            # 403 comes back for SAML-enforced orgs the token cannot reach.
            if e.status_code in (403, 404):
                return False
            raise

    def is_archived(self) -> bool:
        repo = self._call("read archived state", self._repository)
        return bool(repo.archived)

    def archive(self) -> None:
        def _archive() -> None:
            self._repository().edit(archived=True)

        self._call("archive repository", _archive)

    def get_settings(self) -> RepositorySettings:
        repo = self._call("read repository settings", self._repository)
        return RepositorySettings(
            description=repo.description,
            homepage=repo.homepage,
            visibility=getattr(repo, "visibility", None),
            default_branch=repo.default_branch,
            has_issues=bool(repo.has_issues),
            has_projects=bool(repo.has_projects),
            has_wiki=bool(repo.has_wiki),
            is_archived=bool(repo.archived),
            allow_squash_merge=bool(repo.allow_squash_merge),
            allow_merge_commit=bool(repo.allow_merge_commit),
            allow_rebase_merge=bool(repo.allow_rebase_merge),
            delete_branch_on_merge=bool(repo.delete_branch_on_merge),
        )

    def update_settings(self, payload: Dict[str, Any]) -> None:
        action = "update repository settings"
        response = self._request("PATCH", "", action, payload)
        self._raise_for_status(response, action)

    def get_autolinks(self) -> List[Autolink]:
        def _list() -> List[Autolink]:
            return [
                Autolink(
                    id=autolink.id,
                    key_prefix=autolink.key_prefix,
                    url_template=autolink.url_template,
                )
                for autolink in self._repository().get_autolinks()
            ]

        return self._call("list autolinks", _list)

    def add_autolink(self, key_prefix: str, url_template: str) -> None:
        def _create() -> None:
            self._repository().create_autolink(key_prefix, url_template)

        try:
            self._call(f"add autolink '{key_prefix}'", _create)
        except HostValidationError as e:
            raise ConflictError(str(e), e.status_code) from e

    def get_topics(self) -> List[str]:
        return self._call("list topics", lambda: list(self._repository().get_topics()))

    def set_topics(self, topics: List[str]) -> None:
        self._call("set topics", lambda: self._repository().replace_topics(list(topics)))

    def get_branches(self) -> List[str]:
        return self._call(
            "list branches",
            lambda: [branch.name for branch in self._repository().get_branches()],
        )

    @staticmethod
    def _protection_path(branch: str) -> str:
        return f"/branches/{quote(branch, safe='')}/protection"

    def get_branch_protection(self, branch: str) -> Optional[Dict[str, Any]]:
        action = f"read branch protection of '{branch}'"
        response = self._request("GET", self._protection_path(branch), action)
        if response.status_code == 404:
            # Unprotected branches answer 404 "Branch not protected".
            return None
        self._raise_for_status(response, action)
        return self._json(response, action)

    def set_branch_protection(self, branch: str, payload: Dict[str, Any]) -> None:
        action = f"set branch protection of '{branch}'"
        response = self._request("PUT", self._protection_path(branch), action, payload)
        self._raise_for_status(response, action)
        Logger.debug(f"branch protection applied to '{branch}' on {self.full_name}")
