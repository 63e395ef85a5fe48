"""Job sequence status page (SSR)."""
from __future__ import annotations

from fastapi import APIRouter, Request

from backend.courses.permissions import compute_course_authz
from backend.jobs.server_jobs import JobSequenceNotFound, get_job_sequence_with_formatted_output
from backend.web.components import JobSequencePanel
from backend.web.routes.common import current_user, error_page, html_page
from backend.web.wiring import get_courses_repo, get_job_repo


jobs_router = APIRouter(tags=["Jobs"])


@jobs_router.get("/pl/course/{course_id}/jobSequence/{job_sequence_id}")
async def job_sequence_page(request: Request, course_id: str, job_sequence_id: str):
    """
    Show a job sequence of the course, refreshing while it is running.

    Permissions:
        Course Viewer or stronger. Sequences of other courses are reported as 404.
    """
    repo = get_courses_repo()
    user = current_user(request)
    course = repo.get_course(course_id)
    if user is None or course is None:
        return error_page(request, 404, "Course not found")
    if not compute_course_authz(repo, user, course.id).has_course_permission_view:
        return error_page(request, 403, "Access denied (must be a course Viewer)")
    try:
        seq = get_job_sequence_with_formatted_output(get_job_repo(), job_sequence_id, course.id)
    except JobSequenceNotFound:
        return error_page(request, 404, "Job sequence not found")
    content = JobSequencePanel(seq, refresh_seconds=2).render()
    return html_page(request, title=seq.description or "Job sequence", content=content)
