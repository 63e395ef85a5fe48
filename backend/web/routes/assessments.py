"""
Assessment routes (SSR): student entry into an assessment and the
assessment instance overview.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from backend.courses.permissions import compute_course_instance_authz
from backend.web.components import AssessmentInstancePage
from backend.web.routes.common import current_user, error_page, html_page
from backend.web.wiring import get_courses_repo


assessments_router = APIRouter(tags=["Assessments"])
logger = logging.getLogger("tessera.web.assessments")


@assessments_router.get("/pl/course_instance/{course_instance_id}/assessment/{assessment_id}")
async def assessment_start(request: Request, course_instance_id: str, assessment_id: str):
    """
    Open (or resume) the caller's instance of an assessment.

    Behavior:
        - Self-enrolls the caller when the course instance allows it.
        - Creates the assessment instance (with one instance question per
          assessment question) on first visit and redirects (302) to it.

    Permissions:
        Enrolled students, or staff with student-data view permission.
    """
    repo = get_courses_repo()
    user = current_user(request)
    assessment = repo.get_assessment(assessment_id)
    if user is None or assessment is None or assessment.course_instance_id != course_instance_id:
        return error_page(request, 404, "Assessment not found")
    authz = compute_course_instance_authz(repo, user, course_instance_id, auto_enroll=True)
    if authz is None:
        return error_page(request, 404, "Course instance not found")
    if not (authz.has_student_access or authz.has_course_instance_permission_view):
        return error_page(request, 403, "Access denied (not enrolled in this course instance)")
    ai = repo.get_or_create_assessment_instance(assessment_id=assessment.id, user_id=user.user_id)
    logger.debug("assessment instance id=%s user_id=%s", ai.id, user.user_id)
    return RedirectResponse(
        url=f"/pl/course_instance/{course_instance_id}/assessment_instance/{ai.id}", status_code=302
    )


@assessments_router.get("/pl/course_instance/{course_instance_id}/assessment_instance/{assessment_instance_id}")
async def assessment_instance_page(request: Request, course_instance_id: str, assessment_instance_id: str):
    """List the instance questions of an assessment instance (owner or student-data viewer)."""
    repo = get_courses_repo()
    user = current_user(request)
    ai = repo.get_assessment_instance(assessment_instance_id)
    assessment = repo.get_assessment(ai.assessment_id) if ai else None
    if user is None or ai is None or assessment is None or assessment.course_instance_id != course_instance_id:
        return error_page(request, 404, "Assessment instance not found")
    if ai.user_id != user.user_id:
        authz = compute_course_instance_authz(repo, user, course_instance_id)
        if not (authz and authz.has_course_instance_permission_view):
            return error_page(request, 403, "Access denied")
    rows = []
    for iq in repo.list_instance_questions(ai.id):
        question = repo.get_question(iq.question_id)
        rows.append((iq.id, iq.number, question.title if question else iq.question_id))
    content = AssessmentInstancePage(
        title=assessment.title, course_instance_id=course_instance_id, questions=rows
    ).render()
    return html_page(request, title=assessment.title, content=content)
