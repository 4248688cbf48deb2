#!/usr/bin/env python3
"""Conversion of branch protection rules from the read shape to the write shape.

The GitHub REST API returns a protection rule as nested objects
(``GET /repos/{owner}/{repo}/branches/{branch}/protection``) but expects a
flatter payload on ``PUT``. Any sub-object in the read shape may be missing
or null, and any leaf inside a present sub-object may be missing too.

Toggle settings are plain booleans on write, so an absent toggle becomes
False. Composite settings (status checks, reviews, restrictions) are
nullable objects on write: an absent category must stay None, since an
empty object would turn the policy on with default values.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

TOGGLE_SETTINGS = (
    "required_linear_history",
    "allow_force_pushes",
    "allow_deletions",
)

DEFAULT_REQUIRED_APPROVING_REVIEW_COUNT = 1


def _section(rule: Mapping[str, Any], name: str) -> Optional[Mapping[str, Any]]:
    value = rule.get(name)
    if isinstance(value, Mapping):
        return value
    return None


def _value(section: Mapping[str, Any], key: str, default: Any) -> Any:
    value = section.get(key)
    return default if value is None else value


def _strings(items: Any) -> List[str]:
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, str)]


def _count(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _identifiers(items: Any, key: str) -> List[str]:
    if not isinstance(items, (list, tuple)):
        return []
    return [item[key] for item in items if isinstance(item, Mapping) and item.get(key)]


def _toggle(rule: Mapping[str, Any], name: str) -> bool:
    section = _section(rule, name)
    if section is None:
        return False
    return bool(_value(section, "enabled", False))


def _required_status_checks(rule: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    checks = _section(rule, "required_status_checks")
    if checks is None:
        return None
    return {
        "strict": bool(_value(checks, "strict", False)),
        "contexts": _strings(checks.get("contexts")),
    }


def _required_pull_request_reviews(
    rule: Mapping[str, Any],
) -> Optional[Dict[str, Any]]:
    reviews = _section(rule, "required_pull_request_reviews")
    if reviews is None:
        return None
    return {
        "dismiss_stale_reviews": bool(_value(reviews, "dismiss_stale_reviews", False)),
        "require_code_owner_reviews": bool(
            _value(reviews, "require_code_owner_reviews", False)
        ),
        "required_approving_review_count": _count(
            reviews.get("required_approving_review_count"),
            DEFAULT_REQUIRED_APPROVING_REVIEW_COUNT,
        ),
    }


def _restrictions(rule: Mapping[str, Any]) -> Optional[Dict[str, List[str]]]:
    restrictions = _section(rule, "restrictions")
    if restrictions is None:
        return None
    # The read shape lists full user/team/app objects; writes take identifiers.
    return {
        "users": _identifiers(restrictions.get("users"), "login"),
        "teams": _identifiers(restrictions.get("teams"), "slug"),
        "apps": _identifiers(restrictions.get("apps"), "slug"),
    }


def build_branch_protection_payload(rule: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Build the PUT payload for a branch protection rule.

    Never raises: missing or malformed parts fall back to the defaults
    described in the module docstring.
    """
    rule = rule if isinstance(rule, Mapping) else {}

    payload: Dict[str, Any] = {
        "required_status_checks": _required_status_checks(rule),
        "enforce_admins": _toggle(rule, "enforce_admins"),
        "required_pull_request_reviews": _required_pull_request_reviews(rule),
        "restrictions": _restrictions(rule),
    }
    for name in TOGGLE_SETTINGS:
        payload[name] = _toggle(rule, name)
    return payload
