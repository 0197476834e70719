"""Colon-path helpers."""

from __future__ import annotations

from .exceptions import InvalidKeyError

SEPARATOR = ":"


def split_path(path: str) -> tuple[str, str]:
    """Split a path into (head, rest).

    Examples:
        split_path("a:b:c") -> ("a", "b:c")
        split_path("a") -> ("a", "")
        split_path("") -> ("", "")
    """
    head, _, rest = path.partition(SEPARATOR)
    return head, rest


def path_segments(path: str) -> list[str]:
    """Return every segment of *path*; ``""`` yields ``[""]``."""
    return path.split(SEPARATOR)


def join_path(*segments: str) -> str:
    """Join segments with the separator, skipping empty ones."""
    return SEPARATOR.join(s for s in segments if s)


def validate_key(key: str) -> str:
    """Return *key* unchanged, or raise if it cannot be a literal key."""
    if not isinstance(key, str):
        raise InvalidKeyError(f"Key must be a string, got {type(key).__name__}")
    if SEPARATOR in key:
        raise InvalidKeyError(f"Key {key!r} contains the path separator {SEPARATOR!r}")
    return key
