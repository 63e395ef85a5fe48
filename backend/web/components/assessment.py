"""Assessment instance overview: one link per instance question."""

from typing import List, Tuple

from .base import Component


class AssessmentInstancePage(Component):
    def __init__(self, *, title: str, course_instance_id: str, questions: List[Tuple[str, int, str]]):
        """
        Args:
            title: Assessment title
            course_instance_id: Course instance the assessment belongs to
            questions: (instance_question_id, number, question title) triples
        """
        self.title = title
        self.course_instance_id = course_instance_id
        self.questions = questions

    def render(self) -> str:
        rows = "".join(
            "<tr>"
            f"<td>{number}</td>"
            f'<td><a href="/pl/course_instance/{self.escape(self.course_instance_id)}'
            f'/instance_question/{self.escape(iq_id)}">{self.escape(title)}</a></td>'
            "</tr>"
            for iq_id, number, title in self.questions
        )
        return (
            f"<h1>{self.escape(self.title)}</h1>"
            '<table class="table assessment-questions">'
            "<thead><tr><th>#</th><th>Question</th></tr></thead>"
            f"<tbody>{rows}</tbody>"
            "</table>"
        )
