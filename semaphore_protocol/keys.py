"""
⚠️ DRAFT — requires crypto review before production use

Ed25519 keys and signatures over field-element payloads.

Signing:
    Signature = Ed25519.Sign(sk, Encode("SIGNATURE", fields))
    where Encode is the length-prefixed canonical encoding of the field list.

Key encoding:
    secret key = 32-byte seed, public key = 32-byte verify key, both as
    base64 text. ``fields`` of a key are the two 128-bit big-endian limbs.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .config import KEY_SIZE_BYTES, SIGNATURE_SIZE_BYTES
from .exceptions import CryptoError, ValidationError, crypto_errors
from .security import bytes_to_fields, encode_fields

_HALF = SIGNATURE_SIZE_BYTES // 2


# ============================================================================
# KEY ENCODING
# ============================================================================


def _decode_key(encoded: str, label: str) -> bytes:
    if not isinstance(encoded, str) or not encoded:
        raise CryptoError(f"{label} must be a non-empty base64 string")
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise CryptoError(f"{label} is not valid base64") from exc
    if len(raw) != KEY_SIZE_BYTES:
        raise CryptoError(
            f"{label} must decode to {KEY_SIZE_BYTES} bytes, got {len(raw)}"
        )
    return raw


def generate_keypair() -> Tuple[str, str]:
    """
    Generate a fresh random keypair.

    Returns:
        (secret_key, public_key) as base64 strings
    """
    signing_key = SigningKey.generate()
    secret_key = base64.b64encode(bytes(signing_key)).decode("ascii")
    public_key = base64.b64encode(bytes(signing_key.verify_key)).decode("ascii")
    return secret_key, public_key


def load_signing_key(secret_key: str) -> SigningKey:
    seed = _decode_key(secret_key, "secret key")
    with crypto_errors("load secret key"):
        return SigningKey(seed)


def load_verify_key(public_key: str) -> VerifyKey:
    raw = _decode_key(public_key, "public key")
    with crypto_errors("load public key"):
        return VerifyKey(raw)


def public_key_of(secret_key: str) -> str:
    signing_key = load_signing_key(secret_key)
    return base64.b64encode(bytes(signing_key.verify_key)).decode("ascii")


def secret_key_fields(secret_key: str) -> List[int]:
    return bytes_to_fields(_decode_key(secret_key, "secret key"))


def public_key_fields(public_key: str) -> List[int]:
    return bytes_to_fields(_decode_key(public_key, "public key"))


# ============================================================================
# SIGNATURES
# ============================================================================


@dataclass(frozen=True)
class Signature:
    """
    Ed25519 signature split into its R and S halves.

    Serialized as ``{"r": b64, "s": b64}``.
    """

    r: bytes
    s: bytes

    def to_bytes(self) -> bytes:
        return self.r + self.s

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        if len(data) != SIGNATURE_SIZE_BYTES:
            raise CryptoError(
                f"signature must be {SIGNATURE_SIZE_BYTES} bytes, got {len(data)}"
            )
        return cls(r=data[:_HALF], s=data[_HALF:])

    def to_json(self) -> str:
        return json.dumps({
            "r": base64.b64encode(self.r).decode("ascii"),
            "s": base64.b64encode(self.s).decode("ascii"),
        })

    @classmethod
    def from_json(cls, text: str) -> "Signature":
        """
        Parse a serialized signature.

        Raises:
            ValidationError: If the text is not a JSON object with r and s
            CryptoError: If r or s do not decode to a 64-byte signature
        """
        try:
            obj = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationError("signature is not valid JSON") from exc
        if not isinstance(obj, dict) or "r" not in obj or "s" not in obj:
            raise ValidationError("signature must be an object with 'r' and 's'")
        with crypto_errors("decode signature"):
            r = base64.b64decode(obj["r"], validate=True)
            s = base64.b64decode(obj["s"], validate=True)
        return cls.from_bytes(r + s)

    @classmethod
    def coerce(cls, value: Union["Signature", str]) -> "Signature":
        if isinstance(value, Signature):
            return value
        return cls.from_json(value)


def sign_fields(secret_key: str, fields: Iterable[int]) -> Signature:
    """
    Sign a field-element payload.

    Args:
        secret_key: base64 secret key
        fields: Field elements to sign

    Returns:
        Signature

    Raises:
        CryptoError: If the secret key is malformed
        ValidationError: If a payload element is outside the field
    """
    signing_key = load_signing_key(secret_key)
    message = encode_fields(list(fields), "signature")
    signed = signing_key.sign(message)
    return Signature.from_bytes(signed.signature)


def verify_fields(
    public_key: str,
    fields: Iterable[int],
    signature: Union[Signature, str],
) -> bool:
    """
    Verify a signature over a field-element payload.

    Returns:
        True if valid, False if the signature does not match

    Raises:
        CryptoError: If the public key or signature cannot be decoded
    """
    verify_key = load_verify_key(public_key)
    sig = Signature.coerce(signature)
    message = encode_fields(list(fields), "signature")
    try:
        verify_key.verify(message, sig.to_bytes())
    except BadSignatureError:
        return False
    return True
