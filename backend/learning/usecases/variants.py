from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import Optional

from backend.courses.repo import CoursesRepo, Question, Variant
from backend.learning.rendering import generate_params


logger = logging.getLogger("tessera.learning.variants")


@dataclass
class CreateVariantInput:
    question_id: str
    user_id: str
    authn_user_id: str
    course_instance_id: Optional[str] = None
    instance_question_id: Optional[str] = None
    seed: Optional[int] = None


class CreateVariantUseCase:
    def __init__(self, repo: CoursesRepo) -> None:
        self._repo = repo

    def execute(self, req: CreateVariantInput) -> Variant:
        """Create a new variant of a question for the caller.

        Behavior:
            - Draws a seed (unless given) and derives params from the
              question's `params` declaration.
            - `course_instance_id` is only set for student variants (created
              from an instance question); previews leave it empty.
            - Questions with a workspace get a fresh workspace linked to the
              variant.

        Raises:
            LookupError when the question does not exist.
        """
        question = self._repo.get_question(req.question_id)
        if question is None:
            raise LookupError("unknown_question")
        seed = req.seed if req.seed is not None else random.SystemRandom().randint(1, 10**9)
        variant = self._repo.insert_variant(
            question_id=question.id,
            course_id=question.course_id,
            course_instance_id=req.course_instance_id,
            instance_question_id=req.instance_question_id,
            user_id=req.user_id,
            authn_user_id=req.authn_user_id,
            seed=seed,
            params=generate_params(question.params, seed),
        )
        if question.workspace:
            self._repo.create_workspace(variant_id=variant.id)
        logger.debug(
            "variant created id=%s question_id=%s instance_question_id=%s",
            variant.id,
            question.id,
            req.instance_question_id,
        )
        return variant


def get_or_create_instance_question_variant(
    repo: CoursesRepo,
    *,
    question: Question,
    instance_question_id: str,
    course_instance_id: str,
    user_id: str,
    authn_user_id: str,
) -> Variant:
    """Reuse the latest open variant of the instance question or create one."""
    existing = repo.latest_open_variant_for_instance_question(instance_question_id)
    if existing is not None:
        return existing
    return CreateVariantUseCase(repo).execute(
        CreateVariantInput(
            question_id=question.id,
            user_id=user_id,
            authn_user_id=authn_user_id,
            course_instance_id=course_instance_id,
            instance_question_id=instance_question_id,
        )
    )


__all__ = [
    "CreateVariantInput",
    "CreateVariantUseCase",
    "get_or_create_instance_question_variant",
]
