"""
Navigation Component for Tessera

Top bar with the signed-in user and a logout form. Anonymous visitors get a
login link only.
"""

from typing import Optional, Dict, Any
from .base import Component


class Navigation(Component):
    """Top navigation bar"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, csrf_token: Optional[str] = None):
        """
        Args:
            user: User dict with 'name'/'uid' keys (optional)
            csrf_token: Token for the logout form (required to render it)
        """
        self.user = user
        self.csrf_token = csrf_token

    def render(self) -> str:
        if not self.user:
            return (
                '<nav class="topbar" aria-label="Main navigation">'
                '<a class="brand" href="/">Tessera</a>'
                '<a class="nav-link" href="/auth/login">Log in</a>'
                "</nav>"
            )
        name = self.user.get("name") or self.user.get("uid") or ""
        logout = ""
        if self.csrf_token:
            logout = (
                '<form method="post" action="/auth/logout" class="logout-form">'
                f"{self.hidden_input('__csrf_token', self.csrf_token)}"
                '<button type="submit" class="btn btn-link">Log out</button>'
                "</form>"
            )
        return (
            '<nav class="topbar" aria-label="Main navigation">'
            '<a class="brand" href="/">Tessera</a>'
            f'<span class="nav-user" data-uid="{self.escape(self.user.get("uid"))}">{self.escape(name)}</span>'
            f"{logout}"
            "</nav>"
        )
