"""
⚠️ DRAFT — requires crypto review before production use

Anonymous signals.

A signal carries a message on a topic together with three derived values:

    hash      = Hash(utf16units(message) ++ [topic] ++ [commitment])
    nullifier = Hash(secretKey.fields ++ [topic])
    signature = Sign(secretKey, [hash])

The nullifier is the same for every signal an identity sends on one topic,
so a consumer holding a nullifier registry can reject repeats without
learning who sent them. Uniqueness is not enforced here.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .encryption import CipheredText
from .exceptions import ValidationError
from .identity import Identity
from .interfaces import Encrypter
from .keys import Signature, secret_key_fields, sign_fields, verify_fields
from .security import hash_fields, to_field

logger = logging.getLogger(__name__)

_SIGNAL_FIELDS = (
    "commitment", "topic", "message", "encrypted", "hash", "nullifier", "signature",
)


def message_fields(message: str) -> list[int]:
    """UTF-16 code units of ``message``; astral characters give a surrogate pair."""
    data = message.encode("utf-16-be", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "big") for i in range(0, len(data), 2)]


def signal_hash(message: str, topic: int, commitment: int) -> int:
    return hash_fields(message_fields(message) + [topic, commitment])


@dataclass
class Signal:
    """
    A broadcastable signal.

    Attributes:
        commitment: Sender identity commitment
        topic: Topic field element (decimal string)
        message: Message, ciphertext when ``encrypted``
        encrypted: True if ``message`` was encrypted
        hash: Hash of message, topic and commitment
        nullifier: Hash of the sender secret key and topic
        signature: Serialized signature over ``[hash]``
    """

    commitment: str
    topic: str
    message: str
    encrypted: bool = False
    hash: str = ""
    nullifier: str = ""
    signature: str = ""

    @classmethod
    def create(
        cls,
        identity: Identity,
        topic: Any,
        message: str,
        encryption_key: Optional[str] = None,
        encrypter: Optional[Encrypter] = None,
    ) -> "Signal":
        """
        Build and sign a signal.

        Args:
            identity: Sender identity
            topic: Topic field element, must not be 0
            message: Message text
            encryption_key: Recipient public key; encrypts the message if set
            encrypter: Encryption collaborator, defaults to CipheredText

        Raises:
            ValidationError: If identity, commitment, secret key, topic or
                message is missing, or the topic is 0
            CryptoError: If the secret key or encryption key is malformed
        """
        if identity is None:
            raise ValidationError("Missing params: No identity provided")
        if not identity.commitment:
            raise ValidationError("Missing params: No identity commitment")
        if not identity.sk:
            raise ValidationError("Missing params: No identity secret key")
        if topic is None or topic == "":
            raise ValidationError("Missing params: No topic provided")
        topic_field = to_field(topic, "topic")
        if topic_field == 0:
            raise ValidationError("Missing params: Invalid Field(0) topic")
        if not message:
            raise ValidationError("Missing params: No message provided")

        encrypted = False
        if encryption_key:
            message = (encrypter or CipheredText()).encrypt(message, encryption_key)
            encrypted = True

        commitment_field = to_field(identity.commitment, "commitment")
        hashed = signal_hash(message, topic_field, commitment_field)
        nullifier = hash_fields(secret_key_fields(identity.sk) + [topic_field])
        signature = sign_fields(identity.sk, [hashed])

        return cls(
            commitment=str(commitment_field),
            topic=str(topic_field),
            message=message,
            encrypted=encrypted,
            hash=str(hashed),
            nullifier=str(nullifier),
            signature=signature.to_json(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def serialize(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def deserialize(cls, serialized: str) -> "Signal":
        """
        Rebuild a signal from ``serialize()`` output.

        Raises:
            ValidationError: If the input is empty, not JSON or misses fields
        """
        if not serialized:
            raise ValidationError("Empty input stream")
        try:
            data = json.loads(serialized)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationError("signal is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ValidationError("signal must be a JSON object")

        missing = [name for name in _SIGNAL_FIELDS if name not in data]
        if missing:
            raise ValidationError(f"signal missing fields: {', '.join(missing)}")
        if not isinstance(data["encrypted"], bool):
            raise ValidationError("signal 'encrypted' must be a bool")
        return cls(
            **{name: data[name] if name == "encrypted" else str(data[name])
               for name in _SIGNAL_FIELDS}
        )

    def check_hash(self) -> bool:
        """True if ``hash`` matches message, topic and commitment."""
        try:
            expected = signal_hash(
                self.message,
                to_field(self.topic, "topic"),
                to_field(self.commitment, "commitment"),
            )
        except ValidationError:
            return False
        return str(expected) == self.hash

    def verify(self, public_key: str) -> bool:
        """
        True if the signature over ``[hash]`` verifies under ``public_key``.

        Raises:
            CryptoError: If the public key or signature cannot be decoded
            ValidationError: If the signature is not valid JSON
        """
        hashed = to_field(self.hash, "hash")
        valid = verify_fields(public_key, [hashed], Signature.from_json(self.signature))
        if not valid:
            logger.info("Invalid signal signature for topic %s", self.topic)
        return valid

    def decrypt(self, secret_key: str, encrypter: Optional[Encrypter] = None) -> str:
        """Plain message text, decrypting with ``secret_key`` when encrypted."""
        if not self.encrypted:
            return self.message
        return (encrypter or CipheredText()).decrypt(self.message, secret_key)
