"""
⚠️ DRAFT — requires crypto review before production use

Field elements and hashing for the semaphore protocol.

Field elements are plain ints in [0, FIELD_ORDER). The protocol hash is
SHA3-256 over a domain separator and length-prefixed 32-byte encodings,
reduced modulo FIELD_ORDER.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Iterable, List, Optional, Union

from .config import (
    DOMAIN_SEPARATORS,
    FIELD_ORDER,
    HASH_FUNCTION,
    KEY_LIMB_BYTES,
)
from .exceptions import ValidationError

FieldLike = Union[int, str]

FIELD_BYTES = 32


# ============================================================================
# FIELD ELEMENTS
# ============================================================================


def to_field(value: FieldLike, name: str = "value") -> int:
    """
    Coerce an int, decimal string or ``0x`` hex string to a field element.

    Args:
        value: Value to coerce
        name: Field name used in error messages

    Returns:
        int in [0, FIELD_ORDER)

    Raises:
        ValidationError: If the value is empty, not numeric or out of range
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an int or numeric string")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(f"{name} cannot be empty")
        try:
            if text.lower().startswith("0x"):
                value = int(text, 16)
            else:
                value = int(text, 10)
        except ValueError as exc:
            raise ValidationError(f"{name} is not a valid field element: {text!r}") from exc

    if not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an int or numeric string, got {type(value).__name__}"
        )

    if not (0 <= value < FIELD_ORDER):
        raise ValidationError(f"{name} out of field range")

    return value


def field_to_bytes(value: int) -> bytes:
    return value.to_bytes(FIELD_BYTES, "big")


def bytes_to_fields(data: bytes) -> List[int]:
    """Split bytes into big-endian limbs of KEY_LIMB_BYTES each."""
    if len(data) % KEY_LIMB_BYTES != 0:
        raise ValidationError(
            f"data length must be a multiple of {KEY_LIMB_BYTES}, got {len(data)}"
        )
    return [
        int.from_bytes(data[i:i + KEY_LIMB_BYTES], "big")
        for i in range(0, len(data), KEY_LIMB_BYTES)
    ]


def field_to_base64(value: int) -> str:
    """Encode a non-negative integer as minimal big-endian base64."""
    length = max(1, (value.bit_length() + 7) // 8)
    return base64.b64encode(value.to_bytes(length, "big")).decode("ascii")


def field_from_base64(text: str) -> int:
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError) as exc:
        raise ValidationError(f"invalid base64 field element: {text!r}") from exc
    return int.from_bytes(raw, "big")


# ============================================================================
# HASH FUNCTIONS
# ============================================================================


def _new_hash():
    return hashlib.sha3_256() if HASH_FUNCTION == "SHA3-256" else hashlib.sha256()


def hash_fields(
    fields: Iterable[int], domain: str = "hash"
) -> int:
    """
    Hash a sequence of field elements to a field element.

    Uses length-prefixed encoding (len || data) for the domain separator and
    every element, so distinct inputs never share a preimage encoding.

    Args:
        fields: Field elements to hash
        domain: Key into DOMAIN_SEPARATORS

    Returns:
        Field element in [0, FIELD_ORDER)

    Raises:
        ValidationError: If an element is outside the field

    Example:
        >>> h = hash_fields([1, 2, 3])
        >>> assert h == hash_fields([1, 2, 3])
    """
    domain_sep = DOMAIN_SEPARATORS[domain]
    h = _new_hash()
    h.update(len(domain_sep).to_bytes(4, "big"))
    h.update(domain_sep)

    count = 0
    for element in fields:
        if not isinstance(element, int) or not (0 <= element < FIELD_ORDER):
            raise ValidationError("hash input out of field range")
        encoded = field_to_bytes(element)
        h.update(len(encoded).to_bytes(4, "big"))
        h.update(encoded)
        count += 1

    h.update(count.to_bytes(4, "big"))
    return int.from_bytes(h.digest(), "big") % FIELD_ORDER


def encode_fields(fields: Iterable[int], domain: str) -> bytes:
    """Canonical byte encoding of a field list, used as a signing message."""
    domain_sep = DOMAIN_SEPARATORS[domain]
    parts = [len(domain_sep).to_bytes(4, "big"), domain_sep]
    for element in fields:
        if not isinstance(element, int) or not (0 <= element < FIELD_ORDER):
            raise ValidationError("message element out of field range")
        parts.append(field_to_bytes(element))
    return b"".join(parts)


def hash_bytes(data: bytes, domain: Optional[str] = None) -> int:
    """Hash raw bytes to a field element."""
    h = _new_hash()
    if domain is not None:
        domain_sep = DOMAIN_SEPARATORS[domain]
        h.update(len(domain_sep).to_bytes(4, "big"))
        h.update(domain_sep)
    h.update(data)
    return int.from_bytes(h.digest(), "big") % FIELD_ORDER


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Args:
        a: First byte string
        b: Second byte string

    Returns:
        True if a == b, False otherwise
    """
    return hmac.compare_digest(a, b)
