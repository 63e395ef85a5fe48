"""
Question page components: the rendered variant, its answer form and the
list of submissions.

Markup contract used by tests and the E2E suite:
- `.question-container[data-variant-id]` wraps the rendered question.
- `form.question-form` carries `__csrf_token`, `__variant_id` and `__action=save`.
- An "Open workspace" link points at `/pl/workspace/{id}` when the variant has one.
- Each submission renders `[data-testid="submission-with-feedback"]` with a
  `.js-submission-body[data-submission-id]` child.
"""

from typing import List, Optional
from urllib.parse import quote

from .base import Component


class SubmissionPanel(Component):
    """One submission with links to its stored files."""

    def __init__(self, *, submission_id: str, date: str, file_names: List[str], base_path: str):
        self.submission_id = submission_id
        self.date = date
        self.file_names = file_names
        self.base_path = base_path.rstrip("/")

    def render(self) -> str:
        files = "".join(
            f'<li><a href="{self.escape(self.base_path)}/submission/{self.escape(self.submission_id)}'
            f'/file/{self.escape(quote(name))}">{self.escape(name)}</a></li>'
            for name in self.file_names
        )
        files_html = f'<ul class="submission-files">{files}</ul>' if files else ""
        body_attrs = self.attributes(class_="js-submission-body card-body", data_submission_id=self.submission_id)
        return (
            '<div class="card submission" data-testid="submission-with-feedback">'
            f'<div class="card-header">Submitted answer <time>{self.escape(self.date)}</time></div>'
            f"<div {body_attrs}>{files_html}</div>"
            "</div>"
        )


class QuestionPage(Component):
    """Rendered variant plus answer form and submission history."""

    def __init__(
        self,
        *,
        title: str,
        variant_id: str,
        question_html: str,
        form_action: str,
        csrf_token: str,
        base_path: str,
        generated_files: Optional[List[str]] = None,
        workspace_id: Optional[str] = None,
        submissions: Optional[List[SubmissionPanel]] = None,
    ):
        self.title = title
        self.variant_id = variant_id
        self.question_html = question_html
        self.form_action = form_action
        self.csrf_token = csrf_token
        self.base_path = base_path.rstrip("/")
        self.generated_files = generated_files or []
        self.workspace_id = workspace_id
        self.submissions = submissions or []

    def _render_generated_files(self) -> str:
        if not self.generated_files:
            return ""
        items = "".join(
            f'<li><a href="{self.escape(self.base_path)}/generatedFilesQuestion/variant/'
            f'{self.escape(self.variant_id)}/{self.escape(quote(name))}">{self.escape(name)}</a></li>'
            for name in self.generated_files
        )
        return f'<ul class="generated-files">{items}</ul>'

    def render(self) -> str:
        # Question HTML comes from the course repository (trusted authors).
        container_attrs = self.attributes(class_="question-container", data_variant_id=self.variant_id)
        workspace = (
            f'<a class="btn btn-secondary" href="/pl/workspace/{self.escape(self.workspace_id)}">Open workspace</a>'
            if self.workspace_id
            else ""
        )
        form = (
            f'<form class="question-form" method="post" action="{self.escape(self.form_action)}">'
            f"{self.hidden_input('__csrf_token', self.csrf_token)}"
            f"{self.hidden_input('__variant_id', self.variant_id)}"
            '<button type="submit" class="btn btn-primary" name="__action" value="save">Save</button>'
            "</form>"
        )
        submissions = "".join(s.render() for s in self.submissions)
        return (
            f'<h1>{self.escape(self.title)}</h1>'
            f"<div {container_attrs}>"
            f'<div class="question-body">{self.question_html}</div>'
            f"{self._render_generated_files()}"
            f"{form}"
            f"{workspace}"
            "</div>"
            f'<section class="submissions" aria-label="Submissions">{submissions}</section>'
        )
