"""
Render question content for a variant.

Question templates (`question.html`, `generatedFiles`, `submissionFiles` in
`info.json`) use `$name` / `${name}` placeholders filled from the variant
params. Unknown placeholders are left as-is so a typo in a course file never
breaks the page.
"""
from __future__ import annotations

from html import escape
import random
from string import Template
from typing import Any, Dict, Optional

from backend.courses.repo import Question, Variant


def generate_params(spec: Dict[str, Any], seed: int) -> Dict[str, Any]:
    """Derive variant params from the question's `params` declaration.

    - `{"min": a, "max": b}` (ints) -> random int in [a, b]
    - list -> random element
    - anything else -> the literal value
    """
    rng = random.Random(seed)
    params: Dict[str, Any] = {}
    for name in sorted(spec):
        value = spec[name]
        if isinstance(value, dict) and isinstance(value.get("min"), int) and isinstance(value.get("max"), int):
            low, high = value["min"], value["max"]
            params[name] = rng.randint(min(low, high), max(low, high))
        elif isinstance(value, list) and value:
            params[name] = rng.choice(value)
        else:
            params[name] = value
    return params


def render_template(template: str, params: Dict[str, Any]) -> str:
    return Template(template).safe_substitute({k: str(v) for k, v in params.items()})


def render_question_html(question: Question, variant: Variant) -> str:
    return render_template(question.html or "", {k: escape(str(v)) for k, v in variant.params.items()})


def render_generated_file(question: Question, variant: Variant, filename: str) -> Optional[bytes]:
    """Return the generated file for the variant, or None when not declared."""
    template = question.generated_files.get(filename)
    if template is None:
        return None
    return render_template(template, variant.params).encode("utf-8")


def render_submission_files(question: Question, variant: Variant) -> Dict[str, bytes]:
    return {
        name: render_template(template, variant.params).encode("utf-8")
        for name, template in question.submission_files.items()
    }


__all__ = [
    "generate_params",
    "render_template",
    "render_question_html",
    "render_generated_file",
    "render_submission_files",
]
