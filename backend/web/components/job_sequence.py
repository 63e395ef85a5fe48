"""Job sequence status panel (used by the job sequence page and the editor)."""

from typing import Optional

from backend.jobs.server_jobs import JobSequence

from .base import Component


class JobSequencePanel(Component):
    def __init__(self, sequence: JobSequence, *, refresh_seconds: Optional[int] = None):
        self.sequence = sequence
        self.refresh_seconds = refresh_seconds

    def render(self) -> str:
        seq = self.sequence
        status_class = self.classes(
            "badge",
            **{
                "badge-running": seq.status == "Running",
                "badge-success": seq.status == "Success",
                "badge-error": seq.status == "Error",
            },
        )
        jobs = "".join(
            '<div class="job">'
            f"<h3>Job {job.number}: {self.escape(job.status)}</h3>"
            f'<pre class="job-output">{job.output_html or self.escape(job.output)}</pre>'
            "</div>"
            for job in seq.jobs
        )
        refresh = ""
        if self.refresh_seconds and seq.status == "Running":
            refresh = f'<meta http-equiv="refresh" content="{int(self.refresh_seconds)}">'
        return (
            f"{refresh}"
            f'<section class="job-sequence" data-job-sequence-id="{self.escape(seq.id)}">'
            f"<h2>{self.escape(seq.description)}</h2>"
            f'<p>Status: <span class="{status_class}" data-testid="job-sequence-status">{self.escape(seq.status)}</span></p>'
            f"{jobs}"
            "</section>"
        )
