"""
Base Component Class for Tessera UI Components

This module provides the foundation for all UI components in Tessera.
Using pure Python for HTML generation keeps escaping explicit and testable
without a template engine.
"""

from typing import Optional, Any
import html


class Component:
    """Base class for all UI components in Tessera

    Benefits:
    - Type safety with IDE autocomplete
    - Easy testing with unit tests
    - Automatic HTML escaping for security
    """

    def render(self) -> str:
        """Render the component as an HTML string

        Returns:
            str: HTML representation of the component
        """
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities to prevent XSS attacks

        Args:
            text: Text to escape (can be None)

        Returns:
            str: Escaped text or empty string if None
        """
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Helper to build CSS class strings with conditional classes

        Example:
            >>> Component.classes("alert", "alert-danger", hidden=True, active=False)
            "alert alert-danger hidden"
        """
        classes = list(args)
        classes.extend(key for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments

        Example:
            >>> Component.attributes(id="test", data_variant_id="123", disabled=True)
            'id="test" data-variant-id="123" disabled'
        """
        result = []
        for key, value in attrs.items():
            # Special-case trailing underscore for reserved names: class_ -> class, for_ -> for
            if key.endswith("_"):
                key = key[:-1]
            else:
                # Convert inner underscores to hyphens (data_value -> data-value)
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)

    @classmethod
    def hidden_input(cls, name: str, value: Optional[str]) -> str:
        return f"<input {cls.attributes(type='hidden', name=name, value=value or '')}>"
