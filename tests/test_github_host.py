"""Tests for GitHubHost error mapping and wire handling."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import ANY, MagicMock, patch

import github
import pytest
import requests

from config import ArtifactType, Config, FinalizeOptions, RepositoryIdentity
from exceptions import (ConflictError, HostAuthenticationError,
                        HostCommunicationError, HostValidationError)
from finalize_orchestrator import EXIT_SUCCESS, FinalizeOrchestrator
from github_host import GitHubHost
from models import Autolink


def _make_host(api_url: str = 'https://ghes.acme.com/api/v3', no_ssl_verify: bool = False) -> GitHubHost:
    identity = RepositoryIdentity(
        api_url=api_url,
        org='legacy',
        repo='app',
        token='token-value',
        no_ssl_verify=no_ssl_verify,
    )
    host = GitHubHost(identity)
    host.api = MagicMock()
    host.rate_limiter.wait_if_needed = lambda *_args, **_kwargs: None
    return host


def _response(status_code: int, data=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    return response


@patch('github_host.github.Github')
def test_connect_uses_enterprise_base_url(mock_github: MagicMock) -> None:
    """GHES API URLs are passed as base_url, with SSL verification optional."""
    host = GitHubHost(RepositoryIdentity(
        api_url='https://ghes.acme.com/api/v3',
        org='legacy',
        repo='app',
        token='token-value',
        no_ssl_verify=True,
    ))

    host.connect()

    mock_github.assert_called_once_with(
        base_url='https://ghes.acme.com/api/v3', auth=ANY, verify=False
    )
    assert host.api is mock_github.return_value


@patch('github_host.github.Github')
def test_connect_public_api_uses_default_base_url(mock_github: MagicMock) -> None:
    host = GitHubHost(RepositoryIdentity(
        api_url='https://api.github.com', org='acme', repo='app', token='token-value'
    ))

    host.connect()

    mock_github.assert_called_once_with(auth=ANY, verify=True)


def test_repo_exists_true() -> None:
    host = _make_host()

    assert host.repo_exists() is True
    host.api.get_repo.assert_called_once_with('legacy/app')


def test_repo_exists_false_on_404() -> None:
    host = _make_host()
    host.api.get_repo.side_effect = github.UnknownObjectException(
        404, {'message': 'Not Found'}, None
    )

    assert host.repo_exists() is False


def test_repo_exists_false_when_access_is_forbidden() -> None:
    """SAML-enforced orgs answer 403 to tokens that are not authorized."""
    host = _make_host()
    host.api.get_repo.side_effect = github.GithubException(
        403, {'message': 'Resource protected by organization SAML enforcement'}, None
    )

    assert host.repo_exists() is False


def test_repository_is_looked_up_once_per_host() -> None:
    host = _make_host()

    host.repo_exists()
    host.get_settings()
    host.get_topics()
    host.archive()
    host.set_topics(['a'])

    assert host.api.get_repo.call_count == 1


def test_repo_exists_raises_on_bad_credentials() -> None:
    host = _make_host()
    host.api.get_repo.side_effect = github.BadCredentialsException(
        401, {'message': 'Bad credentials'}, None
    )

    with pytest.raises(HostAuthenticationError):
        host.repo_exists()


def test_github_errors_become_host_errors() -> None:
    host = _make_host()
    host.api.get_repo.side_effect = github.GithubException(
        502, {'message': 'Bad Gateway'}, None
    )

    with pytest.raises(HostCommunicationError) as excinfo:
        host.get_topics()

    assert excinfo.value.status_code == 502
    assert 'Bad Gateway' in str(excinfo.value)


def test_get_settings_maps_repository_attributes() -> None:
    host = _make_host()
    host.api.get_repo.return_value = SimpleNamespace(
        description='Payments',
        homepage=None,
        visibility='internal',
        default_branch='main',
        has_issues=True,
        has_projects=False,
        has_wiki=True,
        archived=False,
        allow_squash_merge=True,
        allow_merge_commit=False,
        allow_rebase_merge=None,
        delete_branch_on_merge=True,
    )

    settings = host.get_settings()

    assert settings.description == 'Payments'
    assert settings.homepage is None
    assert settings.visibility == 'internal'
    assert settings.default_branch == 'main'
    assert settings.has_wiki is True
    assert settings.allow_rebase_merge is False
    assert settings.delete_branch_on_merge is True


def test_archive_edits_repository() -> None:
    host = _make_host()

    host.archive()

    host.api.get_repo.return_value.edit.assert_called_once_with(archived=True)


def test_get_autolinks_returns_models() -> None:
    host = _make_host()
    host.api.get_repo.return_value.get_autolinks.return_value = [
        SimpleNamespace(id=11, key_prefix='JIRA-', url_template='https://jira/<num>'),
    ]

    assert host.get_autolinks() == [Autolink(11, 'JIRA-', 'https://jira/<num>')]


def test_add_autolink_conflict() -> None:
    host = _make_host()
    host.api.get_repo.return_value.create_autolink.side_effect = github.GithubException(
        422, {'message': 'Validation Failed', 'errors': [{'code': 'already_exists'}]}, None
    )

    with pytest.raises(ConflictError):
        host.add_autolink('JIRA-', 'https://jira/<num>')


def test_set_topics_replaces_topics() -> None:
    host = _make_host()

    host.set_topics(['a', 'b'])

    host.api.get_repo.return_value.replace_topics.assert_called_once_with(['a', 'b'])


def test_get_branches_returns_names() -> None:
    host = _make_host()
    host.api.get_repo.return_value.get_branches.return_value = [
        SimpleNamespace(name='main'),
        SimpleNamespace(name='develop'),
    ]

    assert host.get_branches() == ['main', 'develop']


@patch('github_host.requests.request')
def test_get_branch_protection_unprotected(mock_request: MagicMock) -> None:
    mock_request.return_value = _response(404, {'message': 'Branch not protected'})
    host = _make_host()

    assert host.get_branch_protection('main') is None


@patch('github_host.requests.request')
def test_get_branch_protection_encodes_branch(mock_request: MagicMock) -> None:
    rule = {'enforce_admins': {'enabled': True}}
    mock_request.return_value = _response(200, rule)
    host = _make_host(no_ssl_verify=True)

    assert host.get_branch_protection('release/1.0') == rule
    method, url = mock_request.call_args.args
    assert method == 'GET'
    assert url == (
        'https://ghes.acme.com/api/v3/repos/legacy/app/branches/release%2F1.0/protection'
    )
    assert mock_request.call_args.kwargs['verify'] is False


@patch('github_host.requests.request')
def test_set_branch_protection_validation_failure(mock_request: MagicMock) -> None:
    mock_request.return_value = _response(422, {'message': 'Validation Failed'})
    host = _make_host()

    with pytest.raises(HostValidationError) as excinfo:
        host.set_branch_protection('main', {'enforce_admins': True})

    assert excinfo.value.status_code == 422
    assert mock_request.call_args.kwargs['json'] == {'enforce_admins': True}


@patch('github_host.requests.request')
def test_set_branch_protection_transport_failure(mock_request: MagicMock) -> None:
    mock_request.side_effect = requests.ConnectionError('connection reset')
    host = _make_host()

    with pytest.raises(HostCommunicationError) as excinfo:
        host.set_branch_protection('main', {})

    assert not isinstance(excinfo.value, HostValidationError)


@patch('github_host.requests.request')
def test_update_settings_patches_repository(mock_request: MagicMock) -> None:
    mock_request.return_value = _response(200, {})
    host = _make_host()

    host.update_settings({'description': 'Payments'})

    method, url = mock_request.call_args.args
    assert method == 'PATCH'
    assert url == 'https://ghes.acme.com/api/v3/repos/legacy/app'
    headers = mock_request.call_args.kwargs['headers']
    assert headers['Authorization'] == 'Bearer token-value'


def _html_response() -> MagicMock:
    response = _response(200)
    response.json.side_effect = requests.exceptions.JSONDecodeError(
        'Expecting value', '<html>proxy</html>', 0
    )
    return response


@patch('github_host.requests.request')
def test_get_branch_protection_rejects_non_json_body(mock_request: MagicMock) -> None:
    """A proxy page served with 200 is a host error, not a crash."""
    mock_request.return_value = _html_response()
    host = _make_host()

    with pytest.raises(HostCommunicationError) as excinfo:
        host.get_branch_protection('main')

    assert excinfo.value.status_code == 200
    assert not isinstance(excinfo.value, HostValidationError)
    assert 'not valid JSON' in str(excinfo.value)


@patch('github_host.requests.request')
@patch('github_host.github.Github')
def test_non_json_protection_body_fails_only_its_step(
    mock_github: MagicMock, mock_request: MagicMock
) -> None:
    mock_github.return_value.get_repo.return_value.get_branches.return_value = [
        SimpleNamespace(name='main'),
    ]
    mock_request.return_value = _html_response()
    source = _make_host()
    target = _make_host(api_url='https://api.github.com')
    cfg = Config(
        source=source.identity,
        target=target.identity,
        options=FinalizeOptions(skip_artifacts=frozenset({
            ArtifactType.SETTINGS,
            ArtifactType.AUTOLINKS,
            ArtifactType.TOPICS,
        })),
    )
    orchestrator = FinalizeOrchestrator(cfg, source=source, target=target)

    assert orchestrator.run() == EXIT_SUCCESS
    steps = [(step.name, step.succeeded) for step in orchestrator.summary.steps]
    assert steps == [('Migrate branch protection rules', False)]
