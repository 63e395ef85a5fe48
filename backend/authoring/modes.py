"""Map file names to Ace editor modes (fallback: plain text)."""
from __future__ import annotations

import posixpath

_MODES_BY_EXTENSION = {
    ".c": "c_cpp",
    ".cpp": "c_cpp",
    ".css": "css",
    ".csv": "text",
    ".h": "c_cpp",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".md": "markdown",
    ".mustache": "html",
    ".py": "python",
    ".r": "r",
    ".sh": "sh",
    ".sql": "sql",
    ".tex": "latex",
    ".ts": "typescript",
    ".txt": "text",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
}

_MODES_BY_FILENAME = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
}


def get_mode_for_path(path: str) -> str:
    name = posixpath.basename(path or "")
    mode = _MODES_BY_FILENAME.get(name)
    if mode is None:
        _, ext = posixpath.splitext(name)
        mode = _MODES_BY_EXTENSION.get(ext.lower(), "text")
    return f"ace/mode/{mode}"


__all__ = ["get_mode_for_path"]
