"""
Indexed sparse Merkle map used as the group membership accumulator.

Leaves form a linked list sorted by key: every leaf stores the next larger
key, so one leaf and its path prove membership and the predecessor leaf of
a missing key proves non-membership. Key 0 is the sentinel leaf at index 0.
Leaves are appended at index ``length`` and never removed; removal writes
value 0 so tree shape and paths stay stable.

Hashing uses the protocol field hash with domain separation:
    leaf = Hash_leaf([key, value, nextKey]), empty slot = 0
    node = Hash_node([left, right])
"""

from __future__ import annotations

import json
from bisect import bisect_left
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import FIELD_ORDER, HEIGHT_BIG, HEIGHT_MEDIUM, HEIGHT_SMALL
from .exceptions import ValidationError
from .security import field_from_base64, field_to_base64, hash_fields, to_field

SENTINEL_KEY = 0
MAX_NEXT_KEY = FIELD_ORDER - 1

_NODE_TAG = "n"


class MerkleHeight(IntEnum):
    SMALL = HEIGHT_SMALL
    MEDIUM = HEIGHT_MEDIUM
    BIG = HEIGHT_BIG


def resolve_height(height: Union[int, str, MerkleHeight]) -> int:
    """
    Resolve a height given as an int, a MerkleHeight or a size name.

    Raises:
        ValidationError: If the height is not a positive integer or known name
    """
    if isinstance(height, str):
        try:
            return int(MerkleHeight[height.strip().upper()])
        except KeyError as exc:
            raise ValidationError(
                f"unknown height {height!r}, expected small, medium or big"
            ) from exc
    if isinstance(height, bool) or not isinstance(height, int):
        raise ValidationError(f"height must be an int, got {type(height).__name__}")
    if height <= 0:
        raise ValidationError(f"height must be > 0, got {height}")
    return int(height)


@dataclass
class Leaf:
    key: int
    next_key: int
    value: int
    index: int


def hash_leaf(leaf: Leaf) -> int:
    return hash_fields([leaf.key, leaf.value, leaf.next_key], "merkle_leaf")


def hash_node(left: int, right: int) -> int:
    """
    Hash two child node hashes.

    Note:
        Uses fixed left||right ordering (no sorting).
    """
    return hash_fields([left, right], "merkle_node")


@lru_cache(maxsize=None)
def empty_hashes(height: int) -> Tuple[int, ...]:
    """Hash of an empty subtree at each level 0..height."""
    zeros = [0]
    for _ in range(height):
        zeros.append(hash_node(zeros[-1], zeros[-1]))
    return tuple(zeros)


def verify_path(leaf_hash: int, path: List[Tuple[int, bool]], root: int) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        leaf_hash: Hash of the leaf
        path: Authentication path [(sibling, is_left), ...], leaf level first
        root: Expected root

    Returns:
        True if path is valid, False otherwise
    """
    current = leaf_hash

    for sibling, is_left in path:
        if is_left:
            # Sibling is on left, current on right
            current = hash_node(sibling, current)
        else:
            current = hash_node(current, sibling)

    return current == root


@dataclass
class Witness:
    """A leaf together with its authentication path and the root it proves."""

    leaf: Leaf
    path: List[Tuple[int, bool]]
    root: int


def verify_membership(key: Any, value: Any, witness: Witness) -> bool:
    key = to_field(key, "key")
    value = to_field(value, "value")
    leaf = witness.leaf
    if leaf.key != key or leaf.value != value:
        return False
    return verify_path(hash_leaf(leaf), witness.path, witness.root)


def verify_non_membership(key: Any, witness: Witness) -> bool:
    """True if ``witness`` holds the predecessor leaf that skips over ``key``."""
    key = to_field(key, "key")
    low = witness.leaf
    if not (low.key < key < low.next_key):
        return False
    return verify_path(hash_leaf(low), witness.path, witness.root)


class MembershipAccumulator:
    """
    Fixed-height indexed Merkle map over field-element keys.

    Leaves are also kept in a key-sorted list for low-leaf lookup by
    bisection. A new key costs one O(height) path update per touched leaf
    plus an O(n) list insert; updates of existing keys skip the insert.

    Attributes:
        height: Tree height; capacity is ``2 ** height`` leaves
        root: Current root hash
        length: Count of leaves, sentinel included
    """

    def __init__(self, height: int) -> None:
        self.height = resolve_height(height)
        self.capacity = 2 ** self.height
        self._nodes: List[Dict[int, int]] = [{} for _ in range(self.height + 1)]
        self._leaves: List[Leaf] = []
        self._keys: List[int] = []
        self.length = 0
        self.root = empty_hashes(self.height)[self.height]

    @classmethod
    def create(cls, height: Union[int, str, MerkleHeight]) -> "MembershipAccumulator":
        """
        Create an empty accumulator holding only the sentinel leaf.

        Raises:
            ValidationError: If height is not > 0
        """
        acc = cls(height)
        sentinel = Leaf(key=SENTINEL_KEY, next_key=MAX_NEXT_KEY, value=0, index=0)
        acc._leaves.append(sentinel)
        acc._keys.append(SENTINEL_KEY)
        acc.length = 1
        acc._write_leaf(sentinel)
        return acc

    # ------------------------------------------------------------------
    # tree maintenance
    # ------------------------------------------------------------------

    def _node(self, level: int, index: int) -> int:
        return self._nodes[level].get(index, empty_hashes(self.height)[level])

    def _write_leaf(self, leaf: Leaf) -> None:
        index = leaf.index
        self._nodes[0][index] = hash_leaf(leaf)
        for level in range(self.height):
            parent = index // 2
            left = self._node(level, parent * 2)
            right = self._node(level, parent * 2 + 1)
            self._nodes[level + 1][parent] = hash_node(left, right)
            index = parent
        self.root = self._nodes[self.height][0]

    def _find(self, key: int) -> Tuple[int, bool]:
        pos = bisect_left(self._keys, key)
        return pos, pos < len(self._keys) and self._keys[pos] == key

    def _check_key(self, key: Any) -> int:
        key = to_field(key, "key")
        if key == SENTINEL_KEY:
            raise ValidationError("key 0 is reserved")
        if key == MAX_NEXT_KEY:
            raise ValidationError("key out of range")
        return key

    # ------------------------------------------------------------------
    # map operations
    # ------------------------------------------------------------------

    def set(self, key: Any, value: Any) -> None:
        """
        Insert or update a leaf and recompute the affected paths.

        Inserting shifts the sorted leaf list, O(n) in the leaf count.

        Raises:
            ValidationError: If key is the sentinel or out of range, or the
                accumulator is full
        """
        key = self._check_key(key)
        value = to_field(value, "value")

        pos, found = self._find(key)
        if found:
            leaf = self._leaves[pos]
            leaf.value = value
            self._write_leaf(leaf)
            return

        if self.length >= self.capacity:
            raise ValidationError(
                f"accumulator of height {self.height} is full ({self.capacity} leaves)"
            )

        low = self._leaves[pos - 1]
        leaf = Leaf(key=key, next_key=low.next_key, value=value, index=self.length)
        low.next_key = key
        self._write_leaf(low)

        self._leaves.insert(pos, leaf)
        self._keys.insert(pos, key)
        self.length += 1
        self._write_leaf(leaf)

    def get_option(self, key: Any) -> Tuple[bool, int]:
        """Return (present, value); the sentinel is never present."""
        key = to_field(key, "key")
        if key == SENTINEL_KEY:
            return False, 0
        pos, found = self._find(key)
        if not found:
            return False, 0
        return True, self._leaves[pos].value

    def get(self, key: Any) -> Optional[int]:
        present, value = self.get_option(key)
        return value if present else None

    def get_sorted_keys(self) -> List[int]:
        """All inserted keys in ascending order, sentinel excluded."""
        return [k for k in self._keys if k != SENTINEL_KEY]

    def sorted_leaves(self) -> List[Leaf]:
        return [Leaf(l.key, l.next_key, l.value, l.index) for l in self._leaves]

    # ------------------------------------------------------------------
    # witnesses
    # ------------------------------------------------------------------

    def get_path(self, index: int) -> List[Tuple[int, bool]]:
        if not (0 <= index < self.capacity):
            raise ValidationError(f"leaf index {index} out of range")
        path = []
        for level in range(self.height):
            if index % 2 == 0:
                path.append((self._node(level, index + 1), False))
            else:
                path.append((self._node(level, index - 1), True))
            index //= 2
        return path

    def get_witness(self, key: Any) -> Witness:
        """
        Membership witness for ``key``.

        Raises:
            ValidationError: If the key is not in the map
        """
        key = self._check_key(key)
        pos, found = self._find(key)
        if not found:
            raise ValidationError("key is not in the accumulator")
        leaf = self._leaves[pos]
        return Witness(
            leaf=Leaf(leaf.key, leaf.next_key, leaf.value, leaf.index),
            path=self.get_path(leaf.index),
            root=self.root,
        )

    def get_low_leaf_witness(self, key: Any) -> Witness:
        """
        Non-membership witness: the predecessor leaf of a missing ``key``.

        Raises:
            ValidationError: If the key is in the map
        """
        key = self._check_key(key)
        pos, found = self._find(key)
        if found:
            raise ValidationError("key is in the accumulator")
        low = self._leaves[pos - 1]
        return Witness(
            leaf=Leaf(low.key, low.next_key, low.value, low.index),
            path=self.get_path(low.index),
            root=self.root,
        )

    # ------------------------------------------------------------------
    # serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "height": self.height,
            "root": str(self.root),
            "length": str(self.length),
            "nodes": [
                [[index, _NODE_TAG + field_to_base64(value)]
                 for index, value in sorted(level.items())]
                for level in self._nodes
            ],
            "sortedLeaves": [
                [
                    field_to_base64(leaf.key),
                    field_to_base64(leaf.next_key),
                    field_to_base64(leaf.value),
                    field_to_base64(leaf.index),
                ]
                for leaf in self._leaves
            ],
        }

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def deserialize(
        cls, serialized: str, height: Optional[int] = None
    ) -> "MembershipAccumulator":
        """
        Restore an accumulator from ``serialize()`` output.

        Args:
            serialized: JSON text
            height: Expected height, checked against the stored one if given

        Raises:
            ValidationError: If the text is malformed or inconsistent
        """
        if not serialized:
            raise ValidationError("empty accumulator data")
        try:
            data = json.loads(serialized)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationError("accumulator data is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ValidationError("accumulator data must be an object")
        return cls.from_dict(data, height=height)

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], height: Optional[int] = None
    ) -> "MembershipAccumulator":
        for name in ("height", "root", "length", "nodes", "sortedLeaves"):
            if name not in data:
                raise ValidationError(f"accumulator data missing '{name}'")

        acc = cls(data["height"])
        if height is not None and resolve_height(height) != acc.height:
            raise ValidationError(
                f"height mismatch: expected {height}, stored {acc.height}"
            )

        nodes = data["nodes"]
        if not isinstance(nodes, list) or len(nodes) != acc.height + 1:
            raise ValidationError("accumulator nodes do not match height")
        for level, entries in enumerate(nodes):
            if not isinstance(entries, list):
                raise ValidationError(f"malformed nodes at level {level}")
            acc._nodes[level] = dict(
                _decode_node(entry, level, acc.capacity >> level) for entry in entries
            )

        if not isinstance(data["sortedLeaves"], list):
            raise ValidationError("accumulator sortedLeaves must be a list")
        leaves = [_decode_leaf(row) for row in data["sortedLeaves"]]
        keys = [leaf.key for leaf in leaves]
        if not keys or keys[0] != SENTINEL_KEY:
            raise ValidationError("accumulator leaves must start with the sentinel")
        if any(a >= b for a, b in zip(keys, keys[1:])):
            raise ValidationError("accumulator leaves are not sorted")
        if len({leaf.index for leaf in leaves}) != len(leaves):
            raise ValidationError("accumulator leaf indexes are not unique")
        acc._leaves = leaves
        acc._keys = keys

        acc.root = to_field(data["root"], "root")
        acc.length = int(to_field(data["length"], "length"))
        if acc.length != len(leaves):
            raise ValidationError("accumulator length does not match leaves")
        if acc._node(acc.height, 0) != acc.root:
            raise ValidationError("accumulator root does not match nodes")
        return acc


def _decode_node(entry: Any, level: int, width: int) -> Tuple[int, int]:
    if not isinstance(entry, list) or len(entry) != 2:
        raise ValidationError(f"malformed node at level {level}")
    index, tagged = entry
    if isinstance(index, bool) or not isinstance(index, int) or not (0 <= index < width):
        raise ValidationError(f"node index out of range at level {level}")
    if not isinstance(tagged, str) or not tagged.startswith(_NODE_TAG):
        raise ValidationError(f"node value at level {level} is not tagged")
    return index, field_from_base64(tagged[len(_NODE_TAG):])


def _decode_leaf(row: Any) -> Leaf:
    if not isinstance(row, list) or len(row) != 4:
        raise ValidationError("malformed sorted leaf")
    key, next_key, value, index = (field_from_base64(v) for v in row)
    return Leaf(key=key, next_key=next_key, value=value, index=index)
