"""Permission enum and type-level permission tables."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, TypeVar

from .paths import validate_key

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

T = TypeVar("T", bound=type)


class Permission(str, Enum):
    """Access level for a single key."""

    NONE = "none"
    READ = "r"
    WRITE = "w"
    READ_WRITE = "rw"

    @property
    def can_read(self) -> bool:
        return self in (Permission.READ, Permission.READ_WRITE)

    @property
    def can_write(self) -> bool:
        return self in (Permission.WRITE, Permission.READ_WRITE)

    @classmethod
    def parse(cls, value: Permission | str) -> Permission:
        """Coerce a ``Permission`` or its string value.

        Raises ``ValueError`` for anything else.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(repr(p.value) for p in cls)
            raise ValueError(f"Invalid permission: {value!r}. Must be one of {valid}.") from None


def build_table(
    inherited: Iterable[Mapping[str, Permission]],
    declared: Mapping[str, Permission | str] | None = None,
) -> Mapping[str, Permission]:
    """Merge inherited tables with *declared* overrides into a frozen table.

    Tables later in *inherited* win over earlier ones; *declared* wins over all.
    """
    merged: dict[str, Permission] = {}
    for table in inherited:
        merged.update(table)
    for key, level in (declared or {}).items():
        merged[validate_key(key)] = Permission.parse(level)
    return MappingProxyType(merged)


def restrict(*keys: str, permission: Permission | str = Permission.NONE) -> Callable[[T], T]:
    """Class decorator declaring a type-level override for *keys*.

    Every instance of the decorated class (and of its subclasses) starts
    with these overrides unless it sets its own for the same key::

        @restrict("token")
        @restrict("version", permission="r")
        class Settings(Store): ...
    """
    level = Permission.parse(permission)
    for key in keys:
        validate_key(key)

    def decorator(cls: T) -> T:
        cls._type_permissions = build_table(  # type: ignore[attr-defined]
            [cls._type_permissions],  # type: ignore[attr-defined]
            dict.fromkeys(keys, level),
        )
        return cls

    return decorator
