"""
Per-request authorization data for courses and course instances.

Why:
    Every route needs the same answers ("may this user preview the course?",
    "may they view student data in this course instance?"). Computing them in
    one place keeps the route guards to a single attribute lookup.

Behavior:
    - Administrators hold every permission.
    - Course roles are ordered None < Previewer < Viewer < Editor < Owner.
    - Course instance roles are ordered None < Student Data Viewer < Student Data Editor.
    - `has_student_access` is True for enrolled users; when the course instance
      allows self-enrollment, an unenrolled user is enrolled on first access
      (opt-in via `auto_enroll=True`).
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional

from backend.courses.repo import CoursesRepo, User
from backend.identity_access.domain import (
    course_instance_role_at_least,
    course_role_at_least,
)


logger = logging.getLogger("tessera.courses.permissions")


@dataclass
class AuthzData:
    user_id: str
    is_administrator: bool = False
    course_role: Optional[str] = None
    has_course_permission_preview: bool = False
    has_course_permission_view: bool = False
    has_course_permission_edit: bool = False
    has_course_permission_own: bool = False
    course_instance_role: Optional[str] = None
    has_course_instance_permission_view: bool = False
    has_course_instance_permission_edit: bool = False
    has_student_access: bool = False


def compute_course_authz(repo: CoursesRepo, user: User, course_id: str) -> AuthzData:
    role = repo.get_course_role(course_id, user.user_id)
    admin = bool(user.is_administrator)
    return AuthzData(
        user_id=user.user_id,
        is_administrator=admin,
        course_role=role,
        has_course_permission_preview=admin or course_role_at_least(role, "Previewer"),
        has_course_permission_view=admin or course_role_at_least(role, "Viewer"),
        has_course_permission_edit=admin or course_role_at_least(role, "Editor"),
        has_course_permission_own=admin or course_role_at_least(role, "Owner"),
    )


def compute_course_instance_authz(
    repo: CoursesRepo,
    user: User,
    course_instance_id: str,
    *,
    auto_enroll: bool = False,
) -> Optional[AuthzData]:
    """Return course + course-instance permissions, or None for an unknown instance."""
    ci = repo.get_course_instance(course_instance_id)
    if ci is None:
        return None
    authz = compute_course_authz(repo, user, ci.course_id)
    role = repo.get_course_instance_role(course_instance_id, user.user_id)
    admin = authz.is_administrator
    authz.course_instance_role = role
    authz.has_course_instance_permission_view = admin or course_instance_role_at_least(role, "Student Data Viewer")
    authz.has_course_instance_permission_edit = admin or course_instance_role_at_least(role, "Student Data Editor")

    enrolled = repo.is_enrolled(user_id=user.user_id, course_instance_id=course_instance_id)
    if not enrolled and auto_enroll and ci.self_enrollment:
        repo.enroll(user_id=user.user_id, course_instance_id=course_instance_id)
        logger.info("self-enrolled user_id=%s course_instance_id=%s", user.user_id, course_instance_id)
        enrolled = True
    authz.has_student_access = enrolled
    return authz


def get_course_owners(repo: CoursesRepo, course_id: str) -> List[User]:
    return repo.list_course_owners(course_id)


__all__ = [
    "AuthzData",
    "compute_course_authz",
    "compute_course_instance_authz",
    "get_course_owners",
]
