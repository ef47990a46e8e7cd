"""
Groups of anonymous members.

A group is a MembershipAccumulator keyed by identity commitment, where value
1 flags an active member and 0 a removed one. Group names usually follow a
``category.{id}.group`` pattern, e.g. ``communities.0ac2379.electors``, but
any name that survives ``clean_label`` works.

Persisted record (one per guid, last write wins):

    {guid, owner, height, size, root, json, updatedUTC}
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .config import DEFAULT_GROUP_HEIGHT, MEMBER_ACTIVE, MEMBER_REMOVED
from .exceptions import (
    ConflictError,
    CryptoError,
    SignatureError,
    StorageError,
    ValidationError,
)
from .interfaces import MembershipStore
from .keys import Signature, verify_fields
from .merkle import MembershipAccumulator, MerkleHeight, resolve_height
from .private import clean_label
from .security import to_field

logger = logging.getLogger(__name__)

HeightLike = Union[int, str, MerkleHeight]


class OwnerAuthorization:
    """
    Capability that gates membership changes behind an owner signature.

    Args:
        owner: Owner public key (base64)
    """

    def __init__(self, owner: str) -> None:
        if not owner:
            raise ValidationError("Missing params: No owner public key")
        self.owner = owner

    def authorize(self, commitment: Any, signature: Union[Signature, str, None]) -> None:
        """
        Check that ``signature`` is the owner's signature over the commitment.

        Raises:
            ValidationError: If commitment or signature is missing
            SignatureError: If the signature is malformed or does not verify
            CryptoError: If the owner key cannot be decoded
        """
        if commitment is None or commitment == "":
            raise ValidationError("Missing params: No commitment")
        if not signature:
            raise ValidationError("Missing params: No owner signature")

        fields = [to_field(commitment, "commitment")]
        try:
            signature = Signature.coerce(signature)
        except (ValidationError, CryptoError) as exc:
            raise SignatureError(
                f"Malformed owner signature for commitment {commitment}"
            ) from exc
        if not verify_fields(self.owner, fields, signature):
            raise SignatureError(f"Invalid owner signature for commitment {commitment}")


class Group:
    """
    A named membership accumulator bound to an optional store.

    Attributes:
        guid: Cleaned group name, also the store key
        height: Accumulator height
        owner: Owner public key, None for open groups
        accumulator: The group's MembershipAccumulator
        store: Where ``save`` writes the group record
    """

    def __init__(
        self,
        guid: str,
        accumulator: MembershipAccumulator,
        owner: Optional[str] = None,
        store: Optional[MembershipStore] = None,
    ) -> None:
        self.guid = _clean_guid(guid)
        self.accumulator = accumulator
        self.height = accumulator.height
        self.owner = owner or None
        self.store = store
        self.authorization = OwnerAuthorization(owner) if owner else None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        guid: str,
        height: HeightLike = DEFAULT_GROUP_HEIGHT,
        owner: Optional[str] = None,
        store: Optional[MembershipStore] = None,
    ) -> "Group":
        """
        Create a new empty group.

        Args:
            guid: Unique group name
            height: Accumulator height or size name (small | medium | big)
            owner: Optional owner public key; when set every membership
                change needs the owner's signature
            store: Store the group will be saved to

        Raises:
            ValidationError: If guid is empty or height invalid
            ConflictError: If the store already holds this guid
        """
        guid = _clean_guid(guid)
        accumulator = MembershipAccumulator.create(resolve_height(height))
        if store is not None and store.has(guid):
            raise ConflictError(f"Group {guid!r} already exists")
        logger.debug("Created group %s height=%d", guid, accumulator.height)
        return cls(guid, accumulator, owner=owner, store=store)

    @classmethod
    def create_owned(
        cls,
        guid: str,
        owner: str,
        height: HeightLike = DEFAULT_GROUP_HEIGHT,
        store: Optional[MembershipStore] = None,
    ) -> "Group":
        if not owner:
            raise ValidationError("Missing params: No owner public key")
        return cls.create(guid, height=height, owner=owner, store=store)

    @staticmethod
    def exists(guid: str, store: MembershipStore) -> bool:
        return store.has(_clean_guid(guid))

    @classmethod
    def read(cls, guid: str, store: MembershipStore) -> Optional["Group"]:
        """
        Restore a group from ``store``.

        Returns:
            The group, or None if the store has no record for ``guid``

        Raises:
            ValidationError: If the stored record is malformed
        """
        guid = _clean_guid(guid)
        record = store.get(guid)
        if record is None:
            return None
        if not isinstance(record, dict) or "json" not in record:
            raise ValidationError(f"Group {guid!r} record is malformed")

        accumulator = MembershipAccumulator.deserialize(
            record["json"], height=record.get("height")
        )
        return cls(guid, accumulator, owner=record.get("owner") or None, store=store)

    def to_record(self) -> Dict[str, Any]:
        return {
            "guid": self.guid,
            "owner": self.owner,
            "height": self.height,
            "size": str(self.accumulator.length),
            "root": str(self.accumulator.root),
            "json": self.accumulator.serialize(),
            "updatedUTC": datetime.now(timezone.utc).isoformat(),
        }

    def save(self) -> None:
        """
        Upsert this group's record into its store.

        Raises:
            StorageError: If no store is bound or the write fails
        """
        if self.store is None:
            raise StorageError(f"No KV storage exists for Group: {self.guid}")
        self.store.put(self.guid, self.to_record())
        logger.debug(
            "Saved group %s size=%d root=%s",
            self.guid, self.accumulator.length, self.accumulator.root,
        )

    # ------------------------------------------------------------------
    # membership
    # ------------------------------------------------------------------

    @property
    def is_owned(self) -> bool:
        return self.authorization is not None

    def is_member(self, commitment: Any) -> bool:
        present, value = self.accumulator.get_option(commitment)
        return present and value == MEMBER_ACTIVE

    def add_member(
        self, commitment: Any, signature: Union[Signature, str, None] = None
    ) -> None:
        """
        Flag ``commitment`` as an active member.

        Raises:
            ValidationError: If the commitment is not a valid key
            SignatureError: If the group is owned and the owner signature
                does not verify
        """
        self._set(commitment, MEMBER_ACTIVE, signature)

    def remove_member(
        self, commitment: Any, signature: Union[Signature, str, None] = None
    ) -> None:
        """Flag ``commitment`` as removed. Leaves stay in the tree."""
        self._set(commitment, MEMBER_REMOVED, signature)

    def _set(self, commitment: Any, value: int, signature: Any) -> None:
        if self.authorization is not None:
            self.authorization.authorize(commitment, signature)
        self.accumulator.set(commitment, value)

    @property
    def size(self) -> int:
        return self.accumulator.length

    @property
    def root(self) -> int:
        return self.accumulator.root

    def members(self) -> List[str]:
        """Active member commitments in ascending order."""
        return [
            str(leaf.key)
            for leaf in self.accumulator.sorted_leaves()
            if leaf.key != 0 and leaf.value == MEMBER_ACTIVE
        ]

    def __repr__(self) -> str:
        return f"Group(guid={self.guid!r}, height={self.height}, size={self.size})"


def _clean_guid(guid: str) -> str:
    if not guid:
        raise ValidationError("A Group requires a guid")
    cleaned = clean_label(guid)
    if not cleaned:
        raise ValidationError(f"Invalid group guid: {guid!r}")
    return cleaned
