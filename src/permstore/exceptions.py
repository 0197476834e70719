"""Custom exception hierarchy for the permstore container."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for all permstore errors."""


class AccessDeniedError(StoreError, PermissionError):
    """Raised when the resolved permission for a path lacks a capability.

    Attributes:
        path: The colon path the caller asked for.
        operation: ``"read"`` or ``"write"``.
    """

    def __init__(self, path: str, operation: str) -> None:
        super().__init__("Access denied")
        self.path = path
        self.operation = operation

    def __repr__(self) -> str:
        return f"AccessDeniedError(path={self.path!r}, operation={self.operation!r})"


class InvalidKeyError(StoreError, ValueError):
    """Raised when a literal key contains the reserved path separator."""


class CyclicStoreError(StoreError, ValueError):
    """Raised when a store would become its own descendant."""
