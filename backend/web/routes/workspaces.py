"""
Workspace route (SSR). Workspaces are placeholders here: the page exists so
the access rule for a variant's workspace can be enforced and tested.
"""
from __future__ import annotations

from fastapi import APIRouter, Request

from backend.learning.variant_access import can_access_workspace
from backend.web.components.base import Component
from backend.web.routes.common import current_user, error_page, html_page
from backend.web.wiring import get_courses_repo


workspaces_router = APIRouter(tags=["Workspaces"])


@workspaces_router.get("/pl/workspace/{workspace_id}")
async def workspace_page(request: Request, workspace_id: str):
    """
    Show a variant's workspace.

    Permissions:
        The variant's creator; for student variants a holder of student-data
        view permission in the course instance; for other variants any course
        previewer.
    """
    repo = get_courses_repo()
    user = current_user(request)
    workspace = repo.get_workspace(workspace_id)
    if user is None or workspace is None:
        return error_page(request, 404, "Workspace not found")
    if not can_access_workspace(repo, workspace=workspace, user=user):
        return error_page(request, 403, "Access denied")
    attrs = Component.attributes(class_="workspace", data_workspace_id=workspace.id, data_state=workspace.state)
    content = f"<section {attrs}><h1>Workspace</h1><p>State: {Component.escape(workspace.state)}</p></section>"
    return html_page(request, title="Workspace", content=content)
