"""JSON value aliases and entry classification."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .store import Store

Scalar = Union[str, int, float, bool, None]
JSONValue = Union[Scalar, list[Any], tuple[Any, ...], Mapping[str, Any]]
Producer = Callable[[], Any]
StoreValue = Union[JSONValue, "Store", Producer]


class EntryKind(Enum):
    """Tag for the value bound to one key."""

    SCALAR = "scalar"
    ARRAY = "array"
    STRUCTURED = "structured"
    STORE = "store"
    PRODUCER = "producer"
    UNSUPPORTED = "unsupported"


def classify(value: Any) -> EntryKind:
    """Return the :class:`EntryKind` for *value*.

    ``bool`` is checked through ``int``; ``str`` never counts as an array.
    """
    from .store import Store

    if value is None or isinstance(value, (str, int, float)):
        return EntryKind.SCALAR
    if isinstance(value, Store):
        return EntryKind.STORE
    if isinstance(value, Mapping):
        return EntryKind.STRUCTURED
    if isinstance(value, (list, tuple)):
        return EntryKind.ARRAY
    if callable(value):
        return EntryKind.PRODUCER
    return EntryKind.UNSUPPORTED


def is_scalar(value: Any) -> bool:
    return classify(value) is EntryKind.SCALAR
