"""
Question routes (SSR): render variants, save submissions, serve variant files.

Mounted under three bases that differ only in who may enter and which
variants they may see:

    /pl/course/{course_id}/question/{question_id}                 instructor preview
    /pl/public/course/{course_id}/question/{question_id}          public preview
    /pl/course_instance/{ci}/instance_question/{iq}               student

Every resource that hangs off a variant (page, generated file, submission
file, rendered submission) goes through `can_access_variant`.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse, Response

from backend.courses.permissions import compute_course_authz, compute_course_instance_authz
from backend.courses.repo import CoursesRepo, Question, User, Variant
from backend.learning.rendering import render_generated_file, render_question_html
from backend.learning.usecases import (
    CreateVariantInput,
    CreateVariantUseCase,
    ListSubmissionsUseCase,
    SaveSubmissionInput,
    SaveSubmissionUseCase,
    get_or_create_instance_question_variant,
)
from backend.learning.variant_access import (
    ROUTE_INSTRUCTOR,
    ROUTE_PUBLIC,
    ROUTE_STUDENT,
    can_access_variant,
)
from backend.web.components import QuestionPage, SubmissionPanel
from backend.web.routes.common import (
    csrf_token,
    current_user,
    empty_not_found,
    error_page,
    html_page,
    private_bytes,
    private_json,
    read_form,
    session_id,
)
from backend.web.routes.security import check_form_csrf
from backend.web.wiring import get_courses_repo


questions_router = APIRouter(tags=["Questions"])
logger = logging.getLogger("tessera.web.questions")


@dataclass
class QuestionContext:
    kind: str
    base_path: str
    user: User
    question: Question
    course_instance_id: Optional[str] = None
    instance_question_id: Optional[str] = None

    @property
    def page_path(self) -> str:
        return self.base_path if self.kind == ROUTE_STUDENT else f"{self.base_path}/preview"


def _instructor_ctx(request: Request, course_id: str, question_id: str):
    """Return (ctx, error_response); requires course preview permission."""
    repo = get_courses_repo()
    user = current_user(request)
    if user is None:
        return None, error_page(request, 403, "Access denied")
    course = repo.get_course(course_id)
    question = repo.get_question(question_id)
    if course is None or question is None or question.course_id != course.id:
        return None, error_page(request, 404, "Question not found")
    if not compute_course_authz(repo, user, course.id).has_course_permission_preview:
        return None, error_page(request, 403, "Access denied (must have course preview permission)")
    ctx = QuestionContext(
        kind=ROUTE_INSTRUCTOR,
        base_path=f"/pl/course/{course.id}/question/{question.id}",
        user=user,
        question=question,
    )
    return ctx, None


def _public_ctx(request: Request, course_id: str, question_id: str):
    """Return (ctx, error_response); the question must be shared publicly."""
    repo = get_courses_repo()
    user = current_user(request)
    if user is None:
        return None, error_page(request, 403, "Access denied")
    course = repo.get_course(course_id)
    question = repo.get_question(question_id)
    if (
        course is None
        or question is None
        or question.course_id != course.id
        or not course.sharing_name
        or not question.share_publicly
    ):
        return None, error_page(request, 404, "Question not found")
    ctx = QuestionContext(
        kind=ROUTE_PUBLIC,
        base_path=f"/pl/public/course/{course.id}/question/{question.id}",
        user=user,
        question=question,
    )
    return ctx, None


def _student_ctx(request: Request, course_instance_id: str, instance_question_id: str):
    """Return (ctx, error_response).

    Permissions:
        The instance question must belong to the caller's assessment instance,
        or the caller needs student-data view permission in the course instance.
    """
    repo = get_courses_repo()
    user = current_user(request)
    if user is None:
        return None, error_page(request, 403, "Access denied")
    iq = repo.get_instance_question(instance_question_id)
    ai = repo.get_assessment_instance(iq.assessment_instance_id) if iq else None
    assessment = repo.get_assessment(ai.assessment_id) if ai else None
    question = repo.get_question(iq.question_id) if iq else None
    if iq is None or ai is None or assessment is None or question is None:
        return None, error_page(request, 404, "Instance question not found")
    if assessment.course_instance_id != course_instance_id:
        return None, error_page(request, 404, "Instance question not found")
    if ai.user_id != user.user_id:
        authz = compute_course_instance_authz(repo, user, course_instance_id)
        if not (authz and authz.has_course_instance_permission_view):
            return None, error_page(request, 403, "Access denied")
    ctx = QuestionContext(
        kind=ROUTE_STUDENT,
        base_path=f"/pl/course_instance/{course_instance_id}/instance_question/{iq.id}",
        user=user,
        question=question,
        course_instance_id=course_instance_id,
        instance_question_id=iq.id,
    )
    return ctx, None


def _variant_for(repo: CoursesRepo, request: Request, ctx: QuestionContext, variant_id: str):
    """Return (variant, error_response) after the variant access check."""
    variant = repo.get_variant(variant_id)
    if variant is None:
        return None, error_page(request, 404, "Variant not found")
    allowed = can_access_variant(
        repo,
        variant=variant,
        user=ctx.user,
        route=ctx.kind,
        question_id=ctx.question.id,
        instance_question_id=ctx.instance_question_id,
    )
    if not allowed:
        logger.info("variant access denied variant_id=%s user_id=%s route=%s", variant.id, ctx.user.user_id, ctx.kind)
        return None, error_page(request, 403, "Access denied")
    return variant, None


def _submission_panel(ctx: QuestionContext, submission) -> SubmissionPanel:
    return SubmissionPanel(
        submission_id=submission.id,
        date=submission.created_at,
        file_names=sorted(submission.files),
        base_path=ctx.base_path,
    )


def _render_question(request: Request, ctx: QuestionContext, variant_id: Optional[str]):
    repo = get_courses_repo()
    if variant_id:
        variant, err = _variant_for(repo, request, ctx, variant_id)
        if err:
            return err
    elif ctx.kind == ROUTE_STUDENT:
        variant = get_or_create_instance_question_variant(
            repo,
            question=ctx.question,
            instance_question_id=ctx.instance_question_id,
            course_instance_id=ctx.course_instance_id,
            user_id=ctx.user.user_id,
            authn_user_id=ctx.user.user_id,
        )
    else:
        variant = CreateVariantUseCase(repo).execute(
            CreateVariantInput(question_id=ctx.question.id, user_id=ctx.user.user_id, authn_user_id=ctx.user.user_id)
        )
    submissions = ListSubmissionsUseCase(repo).execute(variant.id)
    content = QuestionPage(
        title=ctx.question.title,
        variant_id=variant.id,
        question_html=render_question_html(ctx.question, variant),
        form_action=ctx.page_path,
        csrf_token=csrf_token(request),
        base_path=ctx.base_path,
        generated_files=sorted(ctx.question.generated_files),
        workspace_id=variant.workspace_id,
        submissions=[_submission_panel(ctx, s) for s in submissions],
    ).render()
    return html_page(request, title=ctx.question.title, content=content)


async def _save_submission(request: Request, ctx: QuestionContext):
    form = await read_form(request)
    if not check_form_csrf(request, session_id(request), form.get("__csrf_token")):
        return error_page(request, 403, "csrf_violation")
    action = form.get("__action")
    if action != "save":
        return error_page(request, 400, f"unknown __action: {action}")
    repo = get_courses_repo()
    variant, err = _variant_for(repo, request, ctx, form.get("__variant_id") or "")
    if err:
        return err
    answer = {k: v for k, v in form.items() if not k.startswith("__")}
    try:
        submission = SaveSubmissionUseCase(repo).execute(
            SaveSubmissionInput(variant_id=variant.id, auth_user_id=ctx.user.user_id, submitted_answer=answer)
        )
    except ValueError:
        return error_page(request, 400, "Variant is closed")
    logger.info("submission saved id=%s variant_id=%s", submission.id, variant.id)
    return RedirectResponse(url=f"{ctx.page_path}?variant_id={quote(variant.id)}", status_code=303)


def _generated_file(request: Request, ctx: QuestionContext, variant_id: str, filename: str) -> Response:
    repo = get_courses_repo()
    variant, err = _variant_for(repo, request, ctx, variant_id)
    if err:
        return err
    contents = render_generated_file(ctx.question, variant, filename)
    if contents is None:
        return error_page(request, 404, "File not found")
    return private_bytes(contents)


def _in_scope(ctx: QuestionContext, variant: Optional[Variant]) -> bool:
    if variant is None or variant.question_id != ctx.question.id:
        return False
    if ctx.kind == ROUTE_STUDENT:
        return variant.instance_question_id == ctx.instance_question_id
    return True


def _submission_file(request: Request, ctx: QuestionContext, submission_id: str, filename: str) -> Response:
    """Submission outside the route's scope -> empty 404; in scope but denied -> 403."""
    repo = get_courses_repo()
    submission = repo.get_submission(submission_id)
    variant = repo.get_variant(submission.variant_id) if submission else None
    if submission is None or not _in_scope(ctx, variant):
        return empty_not_found()
    _, err = _variant_for(repo, request, ctx, variant.id)
    if err:
        return err
    contents = submission.files.get(filename)
    if contents is None:
        return empty_not_found()
    return private_bytes(contents)


def _rendered_submission(request: Request, ctx: QuestionContext, variant_id: str, submission_id: str) -> Response:
    repo = get_courses_repo()
    variant, err = _variant_for(repo, request, ctx, variant_id)
    if err:
        return err
    submission = repo.get_submission(submission_id)
    if submission is None or submission.variant_id != variant.id:
        return error_page(request, 404, "Submission not found")
    return private_json({"submissionPanel": _submission_panel(ctx, submission).render()})


# --- Instructor preview ----------------------------------------------------------

@questions_router.get("/pl/course/{course_id}/question/{question_id}/preview")
async def instructor_question_preview(request: Request, course_id: str, question_id: str, variant_id: str | None = None):
    ctx, err = _instructor_ctx(request, course_id, question_id)
    return err or _render_question(request, ctx, variant_id)


@questions_router.post("/pl/course/{course_id}/question/{question_id}/preview")
async def instructor_question_save(request: Request, course_id: str, question_id: str):
    ctx, err = _instructor_ctx(request, course_id, question_id)
    return err or await _save_submission(request, ctx)


@questions_router.get("/pl/course/{course_id}/question/{question_id}/generatedFilesQuestion/variant/{variant_id}/{filename}")
async def instructor_generated_file(request: Request, course_id: str, question_id: str, variant_id: str, filename: str):
    ctx, err = _instructor_ctx(request, course_id, question_id)
    return err or _generated_file(request, ctx, variant_id, filename)


@questions_router.get("/pl/course/{course_id}/question/{question_id}/submission/{submission_id}/file/{filename}")
async def instructor_submission_file(request: Request, course_id: str, question_id: str, submission_id: str, filename: str):
    ctx, err = _instructor_ctx(request, course_id, question_id)
    return err or _submission_file(request, ctx, submission_id, filename)


@questions_router.get("/pl/course/{course_id}/question/{question_id}/preview/variant/{variant_id}/submission/{submission_id}")
async def instructor_rendered_submission(request: Request, course_id: str, question_id: str, variant_id: str, submission_id: str):
    ctx, err = _instructor_ctx(request, course_id, question_id)
    return err or _rendered_submission(request, ctx, variant_id, submission_id)


# --- Public preview ----------------------------------------------------------------

@questions_router.get("/pl/public/course/{course_id}/question/{question_id}/preview")
async def public_question_preview(request: Request, course_id: str, question_id: str, variant_id: str | None = None):
    ctx, err = _public_ctx(request, course_id, question_id)
    return err or _render_question(request, ctx, variant_id)


@questions_router.post("/pl/public/course/{course_id}/question/{question_id}/preview")
async def public_question_save(request: Request, course_id: str, question_id: str):
    ctx, err = _public_ctx(request, course_id, question_id)
    return err or await _save_submission(request, ctx)


@questions_router.get("/pl/public/course/{course_id}/question/{question_id}/generatedFilesQuestion/variant/{variant_id}/{filename}")
async def public_generated_file(request: Request, course_id: str, question_id: str, variant_id: str, filename: str):
    ctx, err = _public_ctx(request, course_id, question_id)
    return err or _generated_file(request, ctx, variant_id, filename)


@questions_router.get("/pl/public/course/{course_id}/question/{question_id}/submission/{submission_id}/file/{filename}")
async def public_submission_file(request: Request, course_id: str, question_id: str, submission_id: str, filename: str):
    ctx, err = _public_ctx(request, course_id, question_id)
    return err or _submission_file(request, ctx, submission_id, filename)


@questions_router.get("/pl/public/course/{course_id}/question/{question_id}/preview/variant/{variant_id}/submission/{submission_id}")
async def public_rendered_submission(request: Request, course_id: str, question_id: str, variant_id: str, submission_id: str):
    ctx, err = _public_ctx(request, course_id, question_id)
    return err or _rendered_submission(request, ctx, variant_id, submission_id)


# --- Student (instance question) -------------------------------------------------

@questions_router.get("/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}")
@questions_router.get("/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}/")
async def student_instance_question(
    request: Request, course_instance_id: str, instance_question_id: str, variant_id: str | None = None
):
    ctx, err = _student_ctx(request, course_instance_id, instance_question_id)
    return err or _render_question(request, ctx, variant_id)


@questions_router.post("/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}")
@questions_router.post("/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}/")
async def student_instance_question_save(request: Request, course_instance_id: str, instance_question_id: str):
    ctx, err = _student_ctx(request, course_instance_id, instance_question_id)
    return err or await _save_submission(request, ctx)


@questions_router.get(
    "/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}/generatedFilesQuestion/variant/{variant_id}/{filename}"
)
async def student_generated_file(
    request: Request, course_instance_id: str, instance_question_id: str, variant_id: str, filename: str
):
    ctx, err = _student_ctx(request, course_instance_id, instance_question_id)
    return err or _generated_file(request, ctx, variant_id, filename)


@questions_router.get(
    "/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}/submission/{submission_id}/file/{filename}"
)
async def student_submission_file(
    request: Request, course_instance_id: str, instance_question_id: str, submission_id: str, filename: str
):
    ctx, err = _student_ctx(request, course_instance_id, instance_question_id)
    return err or _submission_file(request, ctx, submission_id, filename)


@questions_router.get(
    "/pl/course_instance/{course_instance_id}/instance_question/{instance_question_id}/variant/{variant_id}/submission/{submission_id}"
)
async def student_rendered_submission(
    request: Request, course_instance_id: str, instance_question_id: str, variant_id: str, submission_id: str
):
    ctx, err = _student_ctx(request, course_instance_id, instance_question_id)
    return err or _rendered_submission(request, ctx, variant_id, submission_id)
