"""
Draft file editor routes (SSR).

Why:
    Course Editors change course files in the browser. Unsaved work is kept as
    a short-lived draft so the outcome of a save (and any conflict with a
    concurrent change on disk) can be shown after the redirect.

Flow:
    - GET loads the file, consumes the caller's draft, and reconciles both with
      the save job that ran for the draft. While that job is still running the
      caller is sent to the job page instead.
    - POST stores the submitted contents as a new draft, runs a `file_modify`
      server job that writes and re-syncs, and redirects back to the GET.
"""
from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field, ValidationError
from pydantic.functional_validators import field_validator

from backend.authoring.editors import EditorContainer, FileModifyEditor
from backend.authoring.file_editor import (
    load_file_edit,
    new_file_edit,
    reconcile_file_edit,
    update_job_sequence_id,
    write_draft_edit,
)
from backend.authoring.paths import get_paths
from backend.courses.permissions import compute_course_authz, get_course_owners
from backend.jobs.server_jobs import ServerJobError
from backend.web.components import FileEditorAccessDenied, FileEditorPage
from backend.web.routes.common import csrf_token, current_user, html_page, read_form, session_id
from backend.web.routes.security import check_form_csrf
from backend.web.wiring import get_courses_repo, get_draft_repo, get_file_store, get_job_repo


file_editor_router = APIRouter(tags=["File editor"])
logger = logging.getLogger("tessera.web.editor")

EDIT_PATH = "/pl/course/{course_id}/file_edit/{file_path:path}"


class FileEditForm(BaseModel):
    action: str = Field(default="", alias="__action")
    orig_hash: str = Field(default="", alias="file_edit_orig_hash", max_length=128)
    contents: str = Field(default="", alias="file_edit_contents")

    @field_validator("action", "orig_hash", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


def _course_and_user(request: Request, course_id: str):
    repo = get_courses_repo()
    course = repo.get_course(course_id)
    user = current_user(request)
    if course is None or user is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return repo, course, user


@file_editor_router.get(EDIT_PATH)
async def file_edit_get(request: Request, course_id: str, file_path: str):
    """
    Show the editor for one course file.

    Permissions:
        Course Editor or stronger. The example course is never editable.
    """
    repo, course, user = _course_and_user(request, course_id)
    authz = compute_course_authz(repo, user, course.id)
    if not authz.has_course_permission_edit or course.example_course:
        owners = [(o.name, o.uid) for o in get_course_owners(repo, course.id)]
        content = FileEditorAccessDenied(example_course=course.example_course, owners=owners).render()
        return html_page(request, title="Access denied", content=content, status_code=403)

    paths = get_paths(course, file_path)
    if not Path(paths.working_path).is_file():
        raise HTTPException(status_code=404, detail="File not found")
    file_edit = new_file_edit(
        user_id=user.user_id, authn_user_id=user.user_id, course_id=course.id, paths=paths
    )
    # BinaryFileError propagates; the app renders it as a 500 page.
    load_file_edit(
        file_edit,
        paths=paths,
        drafts=get_draft_repo(),
        file_store=get_file_store(),
        jobs=get_job_repo(),
        courses=repo,
    )
    url_prefix = f"/pl/course/{course.id}"
    if file_edit.job_running:
        return RedirectResponse(url=f"{url_prefix}/jobSequence/{file_edit.job_sequence_id}", status_code=302)

    reconcile_file_edit(file_edit)
    content = FileEditorPage(
        file_edit=file_edit,
        csrf_token=csrf_token(request),
        action_url=request.url.path,
        url_prefix=url_prefix,
    ).render()
    return html_page(request, title=f"Edit {file_edit.file_name_for_display}", content=content)


@file_editor_router.post(EDIT_PATH)
async def file_edit_post(request: Request, course_id: str, file_path: str):
    """
    Save the submitted contents as a draft, then write and sync them.

    Behavior:
        - `__action=save_and_sync` is the only accepted action (400 otherwise).
        - A failing save job is recorded on the job sequence; the request still
          redirects so the GET can report the outcome.
    """
    repo, course, user = _course_and_user(request, course_id)
    if not compute_course_authz(repo, user, course.id).has_course_permission_edit:
        raise HTTPException(status_code=403, detail="Access denied (must be a course Editor)")

    form = await read_form(request)
    if not check_form_csrf(request, session_id(request), form.get("__csrf_token")):
        raise HTTPException(status_code=403, detail="invalid_csrf")
    try:
        payload = FileEditForm.model_validate(form)
    except ValidationError:
        raise HTTPException(status_code=400, detail="invalid_form")
    if payload.action != "save_and_sync":
        raise HTTPException(status_code=400, detail=f"unknown __action: {payload.action}")

    paths = get_paths(course, file_path)
    file_edit = new_file_edit(
        user_id=user.user_id, authn_user_id=user.user_id, course_id=course.id, paths=paths
    )
    drafts = get_draft_repo()
    orig_hash = payload.orig_hash
    edit_contents = payload.contents
    try:
        edit_id = write_draft_edit(
            drafts=drafts,
            file_store=get_file_store(),
            user_id=user.user_id,
            authn_user_id=user.user_id,
            course_id=course.id,
            dir_name=file_edit.dir_name,
            file_name=file_edit.file_name,
            orig_hash=orig_hash,
            edit_contents=edit_contents,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    editor = FileModifyEditor(
        courses=repo,
        jobs=get_job_repo(),
        course=course,
        user_id=user.user_id,
        authn_user_id=user.user_id,
        container=EditorContainer(root_path=paths.root_path, invalid_root_paths=paths.invalid_root_paths),
        file_path=paths.working_path,
        edit_contents=edit_contents,
        orig_hash=orig_hash,
    )
    job = await editor.prepare_server_job()
    update_job_sequence_id(drafts, edit_id, job.job_sequence_id)
    try:
        await editor.execute_with_server_job(job)
    except ServerJobError as exc:
        # The failure is stored on the job sequence and shown after the redirect.
        logger.info("file_modify job failed seq=%s: %s", exc.job_sequence_id, exc)

    target = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    return RedirectResponse(url=target, status_code=303)


__all__ = ["file_editor_router"]
