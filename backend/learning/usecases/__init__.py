"""Use case layer for the Learning context.

Re-export common use cases for convenient imports in tests.
"""

from .submissions import (
    ListSubmissionsUseCase,
    SaveSubmissionInput,
    SaveSubmissionUseCase,
)
from .variants import (
    CreateVariantInput,
    CreateVariantUseCase,
    get_or_create_instance_question_variant,
)

__all__ = [
    "ListSubmissionsUseCase",
    "SaveSubmissionInput",
    "SaveSubmissionUseCase",
    "CreateVariantInput",
    "CreateVariantUseCase",
    "get_or_create_instance_question_variant",
]
