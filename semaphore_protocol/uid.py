"""Random topic identifiers convertible to field elements."""

from __future__ import annotations

import uuid

from .security import to_field


class UID:
    @staticmethod
    def uuid4() -> str:
        """Random version 4 UUID without dashes, e.g. '8e141386c85b4f29b12bbd5edd0c0ae9'."""
        return uuid.uuid4().hex

    @staticmethod
    def to_field(uid: str) -> int:
        return to_field("0x" + uid, "uid")

    @staticmethod
    def from_field(value: int) -> str:
        return format(to_field(value, "uid"), "032x")

    @staticmethod
    def to_int(uid: str) -> int:
        return int(uid, 16)
