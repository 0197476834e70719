"""Store — permissioned, colon-addressed hierarchical container."""

from __future__ import annotations

import logging
import threading
from collections import ChainMap
from collections.abc import Mapping
from contextlib import ExitStack, contextmanager
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from .exceptions import AccessDeniedError, CyclicStoreError
from .paths import SEPARATOR, path_segments, split_path, validate_key
from .permissions import Permission, build_table
from .types import EntryKind, classify, is_scalar

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .types import JSONValue, Producer, Scalar, StoreValue

logger = logging.getLogger(__name__)

_RESERVED_FIELDS = frozenset({"default_policy"})
_MISSING: Any = object()


class Store:
    """In-memory key-value tree where every key carries a :class:`Permission`.

    Keys are addressed with colon paths (``"db:host"``).  A store holds two
    kinds of keys:

    - *entries*, written through :meth:`write` / :meth:`write_entries`;
    - *declared fields*, the public instance attributes of a subclass, which
      may be nested stores, producers (zero-argument callables) or scalars.

    Permission for a key is resolved as instance override, then type-level
    override (``permissions`` class attribute or :func:`~permstore.restrict`),
    then :attr:`default_policy`.

    Usage::

        class Settings(Store):
            permissions = {"token": Permission.NONE}

            def __init__(self) -> None:
                super().__init__()
                self.db = Store()
                self.uptime = lambda: 42

        s = Settings()
        s.write("db:host", "localhost")
        s.read("db:host")  # "localhost"
        s.read("token")    # AccessDeniedError
    """

    default_policy: Permission = Permission.READ_WRITE
    permissions: ClassVar[Mapping[str, Permission | str]] = {}
    _type_permissions: ClassVar[Mapping[str, Permission]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        inherited = [
            base.__dict__["_type_permissions"]
            for base in reversed(cls.__mro__[1:])
            if "_type_permissions" in base.__dict__
        ]
        cls._type_permissions = build_table(inherited, cls.__dict__.get("permissions"))
        cls.default_policy = Permission.parse(cls.default_policy)

    def __init__(
        self,
        *,
        default_policy: Permission | str | None = None,
        permissions: Mapping[str, Permission | str] | None = None,
    ) -> None:
        self._data: dict[str, Any] = {}
        self._permissions: ChainMap[str, Permission] = ChainMap({}, type(self)._type_permissions)
        self._lock = threading.RLock()
        if default_policy is not None:
            self.default_policy = Permission.parse(default_policy)
        for key, level in (permissions or {}).items():
            self.set_permission(key, level)

    # ------------------------------------------------------------------
    # Permission overrides
    # ------------------------------------------------------------------

    def set_permission(self, key: str, permission: Permission | str) -> None:
        """Set an instance-level override for *key*."""
        level = Permission.parse(permission)
        with self._lock:
            self._permissions[validate_key(key)] = level

    def clear_permission(self, key: str) -> bool:
        """Drop the instance-level override for *key*. Return True if one existed.

        A type-level override for the same key becomes visible again.
        """
        with self._lock:
            return self._permissions.maps[0].pop(key, None) is not None

    @property
    def overrides(self) -> Mapping[str, Permission]:
        """Effective overrides (instance over type-level), read-only."""
        return MappingProxyType(dict(self._permissions))

    # ------------------------------------------------------------------
    # Permission resolution
    # ------------------------------------------------------------------

    def permission(self, path: str) -> Permission:
        """Resolve the permission for *path*.

        Only declared fields are followed: a nested store reached through
        a declared field (or produced by a declared producer) answers for the
        rest of the path.  Entries created by :meth:`write` are never
        descended into, so their keys resolve against this store's overrides.
        """
        if not path:
            return self.default_policy
        head, rest = split_path(path)
        target = self._field(head)
        if target is not _MISSING and classify(target) is EntryKind.PRODUCER:
            target = self._produce(head, target)
        if isinstance(target, Store):
            return target.permission(rest)
        return self._permissions.get(head, self.default_policy)

    def allowed_to_read(self, path: str) -> bool:
        return self.permission(path).can_read

    def allowed_to_write(self, path: str) -> bool:
        return self.permission(path).can_write

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read(self, path: str) -> Any:
        """Return the value at *path*.

        Never raises for a missing key: the walk stops at the nearest value
        it could resolve, and a path that resolves nothing returns the store
        itself.  Raises :class:`AccessDeniedError` if *path* is not readable.
        """
        with self._locked(path):
            if not self.allowed_to_read(path):
                logger.debug("Read denied on %s for %r", type(self).__name__, path)
                raise AccessDeniedError(path, "read")
            return self._resolve(path)

    def write(self, path: str, value: StoreValue) -> StoreValue:
        """Bind *value* at *path* and return it unchanged.

        Mappings are materialized as a new nested :class:`Store`.
        Raises :class:`AccessDeniedError` if *path* is not writable,
        :class:`CyclicStoreError` if *value* holds a store that already
        contains the target.
        """
        with self._locked(path):
            if not self.allowed_to_write(path):
                logger.debug("Write denied on %s for %r", type(self).__name__, path)
                raise AccessDeniedError(path, "write")
            self._assign(path, value)
            return value

    def write_entries(self, entries: Mapping[str, JSONValue]) -> None:
        """Write each top-level pair of *entries* in order.

        Not atomic: a denied write raises and leaves earlier writes applied.
        """
        with self._lock:
            for key, value in entries.items():
                self.write(key, value)

    def entries(self) -> dict[str, Scalar]:
        """Snapshot of readable keys whose values are scalars.

        Nested stores, producers, arrays and mappings are left out.
        ``None`` counts as a scalar and is kept.
        """
        with self._lock:
            return {
                key: value
                for key, value in self._merged().items()
                if self.allowed_to_read(key) and is_scalar(value)
            }

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._merged()

    def __iter__(self) -> Iterator[str]:
        return iter(self._merged())

    def __len__(self) -> int:
        return len(self._merged())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(default_policy={self.default_policy.value!r}, "
            f"keys={list(self._merged())!r})"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fields(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in vars(self).items()
            if not key.startswith("_") and key not in _RESERVED_FIELDS
        }

    def _field(self, key: str) -> Any:
        if key.startswith("_") or key in _RESERVED_FIELDS:
            return _MISSING
        return vars(self).get(key, _MISSING)

    def _merged(self) -> dict[str, Any]:
        # entries shadow declared fields
        return {**self._fields(), **self._data}

    def _produce(self, key: str, producer: Producer) -> Any:
        logger.debug("Invoking producer for %r on %s", key, type(self).__name__)
        return producer()

    def _lock_chain(self, path: str) -> list[Store]:
        """This store plus every nested store named along *path*.

        Producers are not invoked here, so stores they return are not locked.
        """
        chain = [self]
        node = self
        while path:
            head, path = split_path(path)
            target = node._field(head)
            if not isinstance(target, Store):
                target = node._data.get(head)
            if not isinstance(target, Store):
                break
            chain.append(target)
            node = target
        return chain

    @contextmanager
    def _locked(self, path: str) -> Iterator[None]:
        # locks are taken parent before child
        with ExitStack() as stack:
            for node in self._lock_chain(path):
                stack.enter_context(node._lock)
            yield

    def _resolve(self, path: str) -> Any:
        view = self._merged()
        head, rest = split_path(path)
        value = view.get(head, _MISSING)
        if value is not _MISSING and classify(value) is EntryKind.PRODUCER:
            value = self._produce(head, value)
        if isinstance(value, Store):
            return value._resolve(rest)
        if not head:
            return self

        current = view if value is _MISSING else value
        segments = path_segments(rest) if rest else []
        for index, segment in enumerate(segments):
            if isinstance(current, Store):
                # a store met inside an array or mapping answers for itself
                return current.read(SEPARATOR.join(segments[index:]))
            current = _descend(current, segment)
        return self if current is view else current

    def _assign(self, path: str, value: StoreValue) -> None:
        head, rest = split_path(path)
        target = self._field(head)
        if target is not _MISSING and classify(target) is EntryKind.PRODUCER:
            target = self._produce(head, target)
        if isinstance(target, Store):
            target._assign(rest, value)
            return

        kind = classify(value)
        if kind is EntryKind.UNSUPPORTED:
            raise TypeError(f"Cannot store value of type {type(value).__name__}")
        for nested in _stores_in(value):
            if nested._reaches(self):
                raise CyclicStoreError(f"Cannot write a store under itself at {head!r}")
        if kind is EntryKind.STRUCTURED:
            child = Store()
            for key, item in value.items():
                child._assign(validate_key(str(key)), item)
            logger.debug("Materialized nested store at %r with %d keys", head, len(child))
            value = child
        self._data[head] = value

    def _reaches(self, other: Store) -> bool:
        """True if *other* is this store or any store nested below it.

        Stores held inside arrays and mappings count as nested.
        """
        stack: list[Store] = [self]
        seen: set[int] = set()
        while stack:
            node = stack.pop()
            if node is other:
                return True
            if id(node) in seen:
                continue
            seen.add(id(node))
            for value in node._merged().values():
                stack.extend(_stores_in(value))
        return False


def _stores_in(value: Any) -> Iterator[Store]:
    """Yield *value* if it is a store, else every store inside arrays and mappings."""
    if isinstance(value, Store):
        yield value
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _stores_in(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _stores_in(item)


def _descend(current: Any, key: str) -> Any:
    """One step of the read walk; stays on *current* when *key* is absent."""
    if isinstance(current, Mapping):
        child = current.get(key, _MISSING)
    elif isinstance(current, (list, tuple)) and key.isdecimal() and int(key) < len(current):
        child = current[int(key)]
    else:
        child = _MISSING

    if child is _MISSING:
        return current
    if classify(child) is EntryKind.PRODUCER:
        return child()
    return child
