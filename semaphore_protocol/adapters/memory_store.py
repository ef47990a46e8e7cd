from __future__ import annotations

import copy
from typing import Any, Dict, Iterator

from ..interfaces import MembershipStore


class InMemoryStore(MembershipStore):
    """
    Non-persistent membership store.

    Notes:
    - Each instance owns its own map; nothing is shared between instances.
    - Records are copied on the way in and out, like a serializing backend.
    """

    _BACKEND_NAME = "mem"

    def __init__(self) -> None:
        self._pool: Dict[str, Dict[str, Any]] = {}

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def get(self, key: str) -> Dict[str, Any] | None:
        record = self._pool.get(key)
        return copy.deepcopy(record) if record is not None else None

    def put(self, key: str, record: Dict[str, Any]) -> None:
        if not isinstance(record, dict):
            raise TypeError("record must be a dict")
        self._pool[key] = copy.deepcopy(record)

    def has(self, key: str) -> bool:
        return key in self._pool

    def keys(self) -> Iterator[str]:
        return iter(list(self._pool))

    def __len__(self) -> int:
        return len(self._pool)
