"""permstore: a permissioned, colon-addressed key-value tree.

Every key carries a read/write policy; values are scalars, arrays,
nested stores, or producers computed on access.
"""

__version__ = "0.1.0"

from permstore.exceptions import (
    AccessDeniedError,
    CyclicStoreError,
    InvalidKeyError,
    StoreError,
)
from permstore.paths import SEPARATOR, join_path, split_path
from permstore.permissions import Permission, restrict
from permstore.store import Store
from permstore.types import EntryKind, classify

__all__ = [
    "SEPARATOR",
    "AccessDeniedError",
    "CyclicStoreError",
    "EntryKind",
    "InvalidKeyError",
    "Permission",
    "Store",
    "StoreError",
    "__version__",
    "classify",
    "join_path",
    "restrict",
    "split_path",
]
