"""
Identity domain constants and simple helpers.

Why:
- Centralize course and course-instance roles to avoid drift between the
  permission helpers, the sync tool and the web layer.
- Roles are ordered; "at least" comparisons go through `course_role_at_least`
  and `course_instance_role_at_least` instead of ad-hoc string checks.
"""

from __future__ import annotations

from typing import Optional

# Ordered from weakest to strongest. Immutable to prevent accidental mutation.
COURSE_ROLES = ("None", "Previewer", "Viewer", "Editor", "Owner")
COURSE_INSTANCE_ROLES = ("None", "Student Data Viewer", "Student Data Editor")


def _rank(roles: tuple[str, ...], role: Optional[str]) -> int:
    if not role:
        return 0
    try:
        return roles.index(role)
    except ValueError:
        raise ValueError(f"unknown role: {role!r}")


def course_role_at_least(role: Optional[str], minimum: str) -> bool:
    """Return True when `role` is `minimum` or stronger (None counts as "None")."""
    return _rank(COURSE_ROLES, role) >= _rank(COURSE_ROLES, minimum)


def course_instance_role_at_least(role: Optional[str], minimum: str) -> bool:
    return _rank(COURSE_INSTANCE_ROLES, role) >= _rank(COURSE_INSTANCE_ROLES, minimum)


def validate_course_role(role: str) -> str:
    if role not in COURSE_ROLES or role == "None":
        raise ValueError("invalid_course_role")
    return role


def validate_course_instance_role(role: str) -> str:
    if role not in COURSE_INSTANCE_ROLES or role == "None":
        raise ValueError("invalid_course_instance_role")
    return role


__all__ = [
    "COURSE_ROLES",
    "COURSE_INSTANCE_ROLES",
    "course_role_at_least",
    "course_instance_role_at_least",
    "validate_course_role",
    "validate_course_instance_role",
]
