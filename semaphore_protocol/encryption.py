"""
⚠️ DRAFT — requires crypto review before production use

Message encryption for signals.

Messages are sealed to the recipient's identity key: the Ed25519 public key
is mapped to its Curve25519 form and used with a NaCl sealed box. Only the
holder of the matching secret key can open it.
"""

from __future__ import annotations

import base64

from nacl.public import SealedBox

from .exceptions import crypto_errors
from .interfaces import Encrypter
from .keys import load_signing_key, load_verify_key


class CipheredText(Encrypter):
    """Sealed-box encrypter keyed by base64 Ed25519 identity keys."""

    def encrypt(self, message: str, key: str) -> str:
        """
        Encrypt ``message`` for the holder of public key ``key``.

        Returns:
            base64 ciphertext

        Raises:
            CryptoError: If the key is malformed
        """
        verify_key = load_verify_key(key)
        with crypto_errors("encrypt message"):
            box = SealedBox(verify_key.to_curve25519_public_key())
            sealed = box.encrypt(message.encode("utf-8"))
        return base64.b64encode(sealed).decode("ascii")

    def decrypt(self, ciphertext: str, key: str) -> str:
        """
        Open a ciphertext with secret key ``key``.

        Raises:
            CryptoError: If the key or ciphertext is malformed, or the
                ciphertext was sealed to another key
        """
        signing_key = load_signing_key(key)
        with crypto_errors("decrypt message"):
            box = SealedBox(signing_key.to_curve25519_private_key())
            raw = base64.b64decode(ciphertext.encode("ascii"), validate=True)
            return box.decrypt(raw).decode("utf-8")
