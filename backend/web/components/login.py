"""Login page: dev login form when enabled, otherwise a notice."""

from typing import Optional

from .base import Component


class LoginPage(Component):
    def __init__(self, *, dev_login: bool, next_url: str = "/", error: Optional[str] = None):
        self.dev_login = dev_login
        self.next_url = next_url
        self.error = error

    def render(self) -> str:
        error_html = f'<p class="form-error" role="alert">{self.escape(self.error)}</p>' if self.error else ""
        if not self.dev_login:
            return (
                '<section class="login">'
                "<h1>Log in</h1>"
                "<p>Sign-in is not configured on this server.</p>"
                "</section>"
            )
        return (
            '<section class="login">'
            "<h1>Log in (development)</h1>"
            f"{error_html}"
            '<form method="post" action="/auth/dev-login" class="login-form">'
            f"{self.hidden_input('next', self.next_url)}"
            '<label class="form-label" for="uid">UID (email)</label>'
            '<input class="form-input" id="uid" name="uid" type="email" required>'
            '<label class="form-label" for="name">Name</label>'
            '<input class="form-input" id="name" name="name" type="text">'
            '<label class="form-label" for="uin">UIN</label>'
            '<input class="form-input" id="uin" name="uin" type="text">'
            '<button type="submit" class="btn btn-primary">Log in</button>'
            "</form>"
            "</section>"
        )
