"""
Variant and workspace access rules.

Why:
    A variant (and everything hanging off it: generated files, submissions,
    the rendered submission panel, the workspace) belongs to the user who
    created it. Staff may look at it only with the matching role. Every route
    that serves one of those resources asks the same question, so the rule
    lives here once.

Rule (`can_access_variant`):
    1. The variant must belong to the route's question (or, on the student
       route, to the route's instance question).
    2. Public route: only the creator.
    3. Student route: the variant must be the route's instance question's
       variant; the route guard has already checked the instance question.
    4. Instructor route: the creator; for student variants (those with a
       course instance) a user with student-data view permission in that
       course instance; other variants of the course: any course previewer.
"""
from __future__ import annotations

from typing import Optional

from backend.courses.permissions import AuthzData, compute_course_authz, compute_course_instance_authz
from backend.courses.repo import CoursesRepo, User, Variant, Workspace


ROUTE_INSTRUCTOR = "instructor"
ROUTE_PUBLIC = "public"
ROUTE_STUDENT = "student"


def can_access_variant(
    repo: CoursesRepo,
    *,
    variant: Variant,
    user: User,
    route: str,
    question_id: str,
    instance_question_id: Optional[str] = None,
) -> bool:
    if variant.question_id != question_id:
        return False
    if route == ROUTE_PUBLIC:
        return variant.user_id == user.user_id
    if route == ROUTE_STUDENT:
        return instance_question_id is not None and variant.instance_question_id == instance_question_id
    if route != ROUTE_INSTRUCTOR:
        raise ValueError(f"unknown route kind: {route!r}")
    if variant.user_id == user.user_id:
        return True
    if variant.course_instance_id is not None:
        ci_authz = compute_course_instance_authz(repo, user, variant.course_instance_id)
        return bool(ci_authz and ci_authz.has_course_instance_permission_view)
    # TODO: restrict to variants created in instructor preview once public
    # preview variants are tagged as such; today any previewer can open them.
    return compute_course_authz(repo, user, variant.course_id).has_course_permission_preview


def can_access_workspace(repo: CoursesRepo, *, workspace: Workspace, user: User) -> bool:
    variant = repo.get_variant(workspace.variant_id)
    if variant is None:
        return False
    if variant.user_id == user.user_id:
        return True
    if variant.course_instance_id is not None:
        ci_authz = compute_course_instance_authz(repo, user, variant.course_instance_id)
        return bool(ci_authz and ci_authz.has_course_instance_permission_view)
    authz: AuthzData = compute_course_authz(repo, user, variant.course_id)
    return authz.has_course_permission_preview


__all__ = [
    "ROUTE_INSTRUCTOR",
    "ROUTE_PUBLIC",
    "ROUTE_STUDENT",
    "can_access_variant",
    "can_access_workspace",
]
