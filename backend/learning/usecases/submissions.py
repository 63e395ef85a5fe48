from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from backend.courses.repo import CoursesRepo, Submission
from backend.learning.rendering import render_submission_files


@dataclass
class SaveSubmissionInput:
    variant_id: str
    auth_user_id: str
    submitted_answer: Dict[str, Any] = field(default_factory=dict)


class SaveSubmissionUseCase:
    def __init__(self, repo: CoursesRepo) -> None:
        self._repo = repo

    def execute(self, req: SaveSubmissionInput) -> Submission:
        """Record a submission for a variant and return it.

        Intent:
            Provide a minimal, framework-free boundary for saving answers.
            Access to the variant is checked by the caller.

        Behavior:
            - Rejects closed variants (`ValueError("variant_closed")`).
            - Attaches the question's declared `submissionFiles`, rendered with
              the variant params, as the submission's files.

        Raises:
            LookupError for unknown variants/questions.
        """
        variant = self._repo.get_variant(req.variant_id)
        if variant is None:
            raise LookupError("unknown_variant")
        if not variant.open:
            raise ValueError("variant_closed")
        question = self._repo.get_question(variant.question_id)
        if question is None:
            raise LookupError("unknown_question")
        return self._repo.insert_submission(
            variant_id=variant.id,
            auth_user_id=req.auth_user_id,
            submitted_answer=req.submitted_answer,
            files=render_submission_files(question, variant),
        )


class ListSubmissionsUseCase:
    def __init__(self, repo: CoursesRepo) -> None:
        self._repo = repo

    def execute(self, variant_id: str) -> List[Submission]:
        """Return the variant's submissions, newest first."""
        return self._repo.list_submissions_for_variant(variant_id)


__all__ = ["SaveSubmissionInput", "SaveSubmissionUseCase", "ListSubmissionsUseCase"]
