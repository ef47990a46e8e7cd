"""
⚠️ DRAFT — requires crypto review before production use

Identity commitments.

An identity is a fresh Ed25519 keypair bound to a 6-digit user pin:

    commitment    = Hash(publicKey.fields ++ [pin])
    secretKeyHash = Hash(secretKey.fields)
    pinHash       = Hash([pin])

The keypair is not tied to any wallet or account, so signals signed with it
cannot be traced back to one. A user keeps a single committed identity, which
may be a member of many groups.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from .config import PIN_DIGITS
from .exceptions import NotFoundError, ValidationError
from .keys import (
    Signature,
    generate_keypair,
    public_key_fields,
    secret_key_fields,
    sign_fields,
)
from .private import PrivateFolder, clean_label
from .security import constant_time_compare, field_to_bytes, hash_fields, to_field

# Identity-decode format (camelCase keys), in persisted order
_FILE_KEYS = {
    "label": "label",
    "commitment": "commitment",
    "sk": "sk",
    "pk": "pk",
    "pin": "pin",
    "sk_hash": "skHash",
    "pin_hash": "pinHash",
    "encryption_key": "encryptionKey",
    "ownership_proof": "ownershipProof",
}


def normalize_pin(pin: Any) -> str:
    """
    Coerce a pin to a zero-padded decimal string of PIN_DIGITS digits.

    Raises:
        ValidationError: If the pin is not made of at most PIN_DIGITS digits
    """
    if isinstance(pin, bool):
        raise ValidationError("pin must be digits")
    if isinstance(pin, int):
        pin = str(pin)
    if not isinstance(pin, str):
        raise ValidationError(f"pin must be str or int, got {type(pin).__name__}")
    pin = pin.strip()
    if not pin or not pin.isascii() or not pin.isdigit():
        raise ValidationError(f"pin must be digits, got {pin!r}")
    if len(pin) > PIN_DIGITS:
        raise ValidationError(f"pin must have at most {PIN_DIGITS} digits")
    return pin.zfill(PIN_DIGITS)


def compute_commitment(public_key: str, pin: Any) -> str:
    """Hash(publicKey.fields ++ Field(pin)) as a decimal string."""
    pin_field = to_field(normalize_pin(pin), "pin")
    return str(hash_fields(public_key_fields(public_key) + [pin_field]))


@dataclass
class Identity:
    """
    A pseudonymous identity.

    Attributes:
        label: Cleaned user label, also the private file name
        commitment: Public identity commitment (decimal string)
        sk: Secret key (base64)
        pk: Public key (base64)
        pin: Zero-padded 6-digit pin
        sk_hash: Hash of the secret key fields
        pin_hash: Hash of the pin
        encryption_key: Key returned by a service on registration, if any
        ownership_proof: Serialized ownership proof, if any
    """

    label: str
    commitment: str
    sk: str
    pk: str
    pin: str
    sk_hash: str
    pin_hash: str
    encryption_key: str = ""
    ownership_proof: str = ""

    @classmethod
    def create(cls, label: str, pin: Any) -> "Identity":
        """
        Create a new identity with a fresh random keypair.

        Args:
            label: A user assigned name for this identity
            pin: A user assigned pin of up to six digits

        Raises:
            ValidationError: If the pin is not digits or the label is empty
        """
        cleaned = clean_label(label)
        if not cleaned:
            raise ValidationError(f"invalid identity label: {label!r}")
        pin = normalize_pin(pin)

        sk, pk = generate_keypair()
        return cls(
            label=cleaned,
            commitment=compute_commitment(pk, pin),
            sk=sk,
            pk=pk,
            pin=pin,
            sk_hash=str(hash_fields(secret_key_fields(sk))),
            pin_hash=str(hash_fields([int(pin)])),
        )

    # ------------------------------------------------------------------
    # signing and checks
    # ------------------------------------------------------------------

    def sign(self, fields: Iterable[Any]) -> Signature:
        """
        Sign field elements with this identity's secret key.

        Raises:
            CryptoError: If the stored secret key is malformed
            ValidationError: If an element is not a field element
        """
        return sign_fields(self.sk, [to_field(f, "field") for f in fields])

    def sign_commitment(self) -> Signature:
        return self.sign([self.commitment])

    def public_key_fields(self) -> list[int]:
        return public_key_fields(self.pk)

    def check_pin(self, pin: Any) -> bool:
        """True if ``pin`` matches the stored pin hash."""
        try:
            candidate = hash_fields([int(normalize_pin(pin))])
        except ValidationError:
            return False
        return constant_time_compare(
            field_to_bytes(candidate), field_to_bytes(int(self.pin_hash))
        )

    def check_secret_key(self, sk: str) -> bool:
        """True if ``sk`` matches the stored secret key hash."""
        candidate = hash_fields(secret_key_fields(sk))
        return constant_time_compare(
            field_to_bytes(candidate), field_to_bytes(int(self.sk_hash))
        )

    def verify_commitment(self) -> bool:
        """Re-derive the commitment from pk and pin and compare."""
        return compute_commitment(self.pk, self.pin) == self.commitment

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, str]:
        values = asdict(self)
        return {file_key: values[attr] for attr, file_key in _FILE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identity":
        """
        Decode an identity record.

        Raises:
            ValidationError: If a required key is missing or the commitment
                does not re-derive from pk and pin
        """
        missing = [
            key for attr, key in _FILE_KEYS.items()
            if key not in data and attr not in ("encryption_key", "ownership_proof")
        ]
        if missing:
            raise ValidationError(f"identity record missing fields: {', '.join(missing)}")
        identity = cls(**{
            attr: str(data.get(key) or "") for attr, key in _FILE_KEYS.items()
        })
        if not identity.verify_commitment():
            raise ValidationError(
                f"identity {identity.label!r} commitment does not match pk and pin"
            )
        return identity

    def save(self, folder: PrivateFolder | None = None) -> None:
        (folder or PrivateFolder()).save(self.label, self.to_dict())

    @classmethod
    def read(cls, name: str, folder: PrivateFolder | None = None) -> "Identity":
        """
        Read an identity from the private folder.

        Raises:
            NotFoundError: If no identity file exists for ``name``
        """
        data = (folder or PrivateFolder()).read(name)
        if data is None:
            raise NotFoundError(f"identity {clean_label(name)!r} not found")
        return cls.from_dict(data)
