"""
Layout Component for Tessera

Main layout wrapper that combines all components into a complete HTML page.
"""

from typing import Optional, Dict, Any
from .base import Component
from .navigation import Navigation


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        show_nav: bool = True,
        csrf_token: Optional[str] = None,
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            user: Current user object (optional)
            show_nav: Whether to show navigation (default: True)
            csrf_token: Session CSRF token for the logout form
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.csrf_token = csrf_token

    def render(self) -> str:
        nav_html = Navigation(self.user, self.csrf_token).render() if self.show_nav else ""
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {nav_html}
    <main id="main-content" class="main-content" role="main">
        {self.content}
    </main>
</body>
</html>"""

    def _render_head(self) -> str:
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.escape(self.title)} - Tessera</title>
    <link rel="stylesheet" href="/static/css/tessera.css?v=1">
    <script src="/static/js/tessera.js?v=1" defer></script>
    """
