"""Error page body."""

from .base import Component


class ErrorPanel(Component):
    def __init__(self, *, status_code: int, message: str):
        self.status_code = status_code
        self.message = message

    def render(self) -> str:
        return (
            '<section class="error-page" role="alert">'
            f"<h1>Error {int(self.status_code)}</h1>"
            f"<p>{self.escape(self.message)}</p>"
            "</section>"
        )
