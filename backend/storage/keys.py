"""
Helpers to generate standardized storage keys for the on-disk file store.

Why:
    Keep path shapes consistent and provide simple, testable sanitization that
    avoids path traversal and exotic characters while remaining human-readable.

Conventions:
    - Stored files: {type}/{file_id[:2]}/{file_id}-{filename}

Security:
    - Sanitization removes characters outside [A-Za-z0-9._-] from segments.
    - Keys never start with "/" and never contain "..".
"""
from __future__ import annotations

import re
import unicodedata

_SEGMENT_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _sanitize_segment(value: str, *, fallback: str = "x") -> str:
    value = value or ""
    normalized = unicodedata.normalize("NFKD", value)
    ascii_value = normalized.encode("ascii", "ignore").decode("ascii")
    sanitized = _SEGMENT_RE.sub("-", ascii_value).strip("-_.")
    return sanitized or fallback


def make_file_key(*, file_type: str, file_id: str, display_filename: str) -> str:
    """Build a storage key for a stored file.

    Returns: {type}/{shard}/{file_id}-{filename}
    """
    t = _sanitize_segment(file_type, fallback="file")
    fid = _sanitize_segment(file_id, fallback="file")
    name = _sanitize_segment(display_filename, fallback="contents")
    return f"{t}/{fid[:2]}/{fid}-{name}"


__all__ = ["make_file_key"]
