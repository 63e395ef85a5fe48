"""
Draft file editor components.

The editor form posts `file_edit_contents` base64-encoded (UTF-8) together
with `file_edit_orig_hash`; `static/js/tessera.js` keeps the hidden field in
sync with the textarea. The page root exposes the reconciliation flags as
`data-*` attributes so the state is visible to tests and scripts.
"""

from typing import List, Optional, Tuple

from backend.authoring.file_editor import FileEdit, b64_decode_unicode

from .base import Component


def _decode(contents: Optional[str]) -> str:
    return b64_decode_unicode(contents) if contents else ""


class FileEditorPage(Component):
    def __init__(self, *, file_edit: FileEdit, csrf_token: str, action_url: str, url_prefix: str):
        self.fe = file_edit
        self.csrf_token = csrf_token
        self.action_url = action_url
        self.url_prefix = url_prefix.rstrip("/")

    def _flag(self, value: bool) -> str:
        return "true" if value else "false"

    def _render_sync_messages(self) -> str:
        out = []
        if self.fe.sync_errors:
            out.append(
                '<div class="alert alert-danger" data-testid="sync-errors">'
                "<p>The following errors occurred when this file was last synced:</p>"
                f"<pre>{self.escape(self.fe.sync_errors)}</pre></div>"
            )
        if self.fe.sync_warnings:
            out.append(
                '<div class="alert alert-warning" data-testid="sync-warnings">'
                "<p>The following warnings occurred when this file was last synced:</p>"
                f"<pre>{self.escape(self.fe.sync_warnings)}</pre></div>"
            )
        return "".join(out)

    def _render_results(self) -> str:
        if not self.fe.alert_results:
            return ""
        job_link = ""
        if self.fe.job_sequence_id:
            job_link = (
                f' <a href="{self.escape(self.url_prefix)}/jobSequence/{self.escape(self.fe.job_sequence_id)}">'
                "View job log</a>"
            )
        if self.fe.did_save and self.fe.did_sync:
            return f'<div class="alert alert-success" data-testid="save-result">File was saved and synced.{job_link}</div>'
        if self.fe.did_save:
            return (
                '<div class="alert alert-warning" data-testid="save-result">'
                f"File was saved, but the course failed to sync.{job_link}</div>"
            )
        return f'<div class="alert alert-danger" data-testid="save-result">Failed to save the file.{job_link}</div>'

    def _render_choice(self) -> str:
        if not self.fe.alert_choice:
            return ""
        if self.fe.has_same_hash:
            why = "Your unsaved draft was based on the current version of this file."
        else:
            why = "The file was changed on disk after you started editing it."
        return (
            '<div class="alert alert-info js-draft-choice" data-testid="draft-choice">'
            f"<p>{why} Choose which version to keep editing.</p>"
            '<button type="button" class="btn btn-primary js-choose-draft">My draft</button> '
            '<button type="button" class="btn btn-secondary js-choose-disk">Version on disk</button>'
            f'<textarea class="js-disk-contents" hidden readonly>{self.escape(_decode(self.fe.disk_contents))}</textarea>'
            "</div>"
        )

    def render(self) -> str:
        fe = self.fe
        root_attrs = self.attributes(
            class_="file-editor",
            data_file=fe.file_name_for_display,
            data_alert_results=self._flag(fe.alert_results),
            data_alert_choice=self._flag(fe.alert_choice),
            data_has_same_hash=self._flag(fe.has_same_hash),
            data_did_save=self._flag(fe.did_save),
            data_did_sync=self._flag(fe.did_sync),
            data_disk_hash=fe.disk_hash,
        )
        textarea_attrs = self.attributes(
            id="file-editor-text",
            class_="file-editor-text",
            name="file_editor_text",
            data_ace_mode=fe.ace_mode,
            rows=30,
            spellcheck="false",
        )
        return (
            f"<section {root_attrs}>"
            f"<h1>Editing <code>{self.escape(fe.file_name_for_display)}</code></h1>"
            f"{self._render_sync_messages()}"
            f"{self._render_results()}"
            f"{self._render_choice()}"
            f'<form class="js-file-editor-form" method="post" action="{self.escape(self.action_url)}">'
            f"{self.hidden_input('__csrf_token', self.csrf_token)}"
            f"{self.hidden_input('__action', 'save_and_sync')}"
            f"{self.hidden_input('file_edit_orig_hash', fe.orig_hash)}"
            f"{self.hidden_input('file_edit_contents', fe.edit_contents)}"
            f"<textarea {textarea_attrs}>{self.escape(_decode(fe.edit_contents))}</textarea>"
            '<button type="submit" class="btn btn-primary">Save and sync</button>'
            "</form>"
            "</section>"
        )


class FileEditorAccessDenied(Component):
    """Explanatory 403 body: example course, or who to ask for edit access."""

    def __init__(self, *, example_course: bool, owners: List[Tuple[str, str]]):
        """
        Args:
            example_course: True when the course is the protected example course
            owners: (name, uid) pairs of the course owners
        """
        self.example_course = example_course
        self.owners = owners

    def render(self) -> str:
        if self.example_course:
            return (
                '<section class="alert alert-danger" data-testid="editor-denied">'
                "<h1>Access denied</h1>"
                "<p>You cannot edit files in the example course. Copy it to a course of your own first.</p>"
                "</section>"
            )
        if self.owners:
            items = "".join(
                f"<li>{self.escape(name)} ({self.escape(uid)})</li>" for name, uid in self.owners
            )
            owners_html = f'<p>Ask one of the course owners to grant you access:</p><ul class="course-owners">{items}</ul>'
        else:
            owners_html = "<p>This course has no owners. Contact an administrator.</p>"
        return (
            '<section class="alert alert-danger" data-testid="editor-denied">'
            "<h1>Access denied</h1>"
            "<p>You must be a course Editor to edit course files.</p>"
            f"{owners_html}"
            "</section>"
        )
