"""Audience membership check for surveys.

A survey with no target departments and no target roles is open to every
authenticated user. When either list is set, matching either one is enough:
departments and roles are ORed, not ANDed. Elevated roles are not handled here;
the eligibility service bypasses this check for them.
"""
from __future__ import annotations

from typing import Iterable
from uuid import UUID


def _normalize_ids(values: Iterable | None) -> set[str]:
    normalized: set[str] = set()
    for value in values or ():
        if value is None:
            continue
        try:
            normalized.add(UUID(str(value)).hex)
        except ValueError:
            normalized.add(str(value).strip().lower())
    return normalized


def _normalize_roles(values: Iterable | None) -> set[str]:
    return {str(value).strip().lower() for value in values or () if value is not None and str(value).strip()}


def matches_audience(
    target_departments: Iterable | None,
    target_roles: Iterable | None,
    role: str | None,
    department_id: UUID | str | None,
) -> bool:
    """Whether a user with ``role`` in ``department_id`` is targeted."""
    departments = _normalize_ids(target_departments)
    roles = _normalize_roles(target_roles)

    if not departments and not roles:
        return True

    if role and role.strip().lower() in roles:
        return True

    if department_id is not None and _normalize_ids([department_id]) & departments:
        return True

    return False
