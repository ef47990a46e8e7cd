"""
⚠️ DRAFT — requires crypto review before production use

Async helpers around the identity ownership circuit.

Compilation, proving and verification are CPU bound and run in a worker
thread via ``trio.to_thread.run_sync``. They have no internal cancellation;
callers that need a timeout wrap the call in ``trio.move_on_after``.

The verification key is computed at most once per ``IdentityProver`` and
shared by every later prove or verify call.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Union

import trio

from .circuit import IdentityOwnershipCircuit
from .config import VERIFICATION_KEY_FILE
from .exceptions import ValidationError
from .factory import get_proof_system
from .identity import Identity, normalize_pin
from .interfaces import ProofSystem
from .keys import Signature, verify_fields
from .private import PrivateFolder
from .security import to_field
from .types import Proof, VerificationKey

logger = logging.getLogger(__name__)


class VerificationKeyCache:
    """
    Once-barrier for a verification key.

    The first caller runs the factory under the lock; concurrent first-time
    callers wait and then see the same key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._key: Optional[VerificationKey] = None

    @property
    def value(self) -> Optional[VerificationKey]:
        return self._key

    def get_or_create(self, factory: Callable[[], VerificationKey]) -> VerificationKey:
        # Fast path: no lock once initialized
        if self._key is not None:
            return self._key

        with self._lock:
            if self._key is None:
                self._key = factory()
        return self._key

    def clear(self) -> None:
        with self._lock:
            self._key = None


class IdentityProver:
    """
    Prove and verify identity ownership.

    Args:
        proof_system: Proving backend, defaults to the feature-flag selection
        folder: Private folder for the cached verification key. None disables
            the on-disk cache.
        circuit: Circuit to compile, defaults to IdentityOwnershipCircuit
    """

    def __init__(
        self,
        proof_system: Optional[ProofSystem] = None,
        folder: Optional[PrivateFolder] = None,
        circuit: Optional[IdentityOwnershipCircuit] = None,
    ) -> None:
        self.proof_system = proof_system or get_proof_system()
        self.folder = folder
        self.circuit = circuit or IdentityOwnershipCircuit()
        self._cache = VerificationKeyCache()

    # ------------------------------------------------------------------
    # verification key
    # ------------------------------------------------------------------

    def _compile_and_save(self) -> VerificationKey:
        logger.debug("Compiling circuit %s", self.circuit.name)
        verification_key = self.proof_system.compile(self.circuit)
        if self.folder is not None:
            self.folder.save(VERIFICATION_KEY_FILE, verification_key.to_dict())
        return verification_key

    def restore_verification_key(self) -> Optional[VerificationKey]:
        """
        Read the verification key saved by a previous compile.

        Returns:
            The key, or None if there is no folder, no file, or the file
            is inconsistent
        """
        if self.folder is None:
            return None
        data = self.folder.read(VERIFICATION_KEY_FILE)
        if data is None:
            return None
        try:
            verification_key = VerificationKey.from_dict(data)
        except ValidationError:
            logger.warning("Ignoring malformed verification key file")
            return None
        if not verification_key.is_consistent():
            logger.warning("Ignoring verification key file with a bad hash")
            return None
        logger.debug("Restored verification key hash=%s", verification_key.hash)
        return verification_key

    def _restore_or_compile(self) -> VerificationKey:
        return self.restore_verification_key() or self._compile_and_save()

    async def compile(self) -> VerificationKey:
        """Compile the circuit once and return its verification key."""
        return await trio.to_thread.run_sync(
            self._cache.get_or_create, self._compile_and_save
        )

    async def verification_key(self) -> VerificationKey:
        """Memoized key, else the saved key, else a fresh compile."""
        return await trio.to_thread.run_sync(
            self._cache.get_or_create, self._restore_or_compile
        )

    # ------------------------------------------------------------------
    # proving
    # ------------------------------------------------------------------

    async def _prove(self, method: str, public_input: int, *private_inputs: Any) -> Proof:
        verification_key = await self.verification_key()
        return await trio.to_thread.run_sync(
            self.proof_system.prove,
            self.circuit,
            verification_key,
            method,
            public_input,
            *private_inputs,
        )

    async def prove_ownership(self, identity: Identity, pin: Union[str, int]) -> str:
        """
        Prove that the caller knows the pin and secret key behind a commitment.

        Args:
            identity: Identity holding commitment, pk and sk
            pin: The identity's pin

        Returns:
            Serialized proof JSON

        Raises:
            ValidationError: If identity fields or the pin are missing
            ProofError: If a circuit constraint fails
        """
        if identity is None or not identity.commitment or not identity.pk:
            raise ValidationError("prove_ownership requires an identity")
        if pin is None or pin == "":
            raise ValidationError("prove_ownership requires a pin")

        commitment = to_field(identity.commitment, "commitment")
        pin_field = to_field(normalize_pin(pin), "pin")
        signature = identity.sign([commitment])

        proof = await self._prove(
            "prove_ownership", commitment, identity.pk, pin_field, signature
        )
        logger.debug("Proved ownership of commitment %s", identity.commitment)
        return proof.serialize()

    async def reattest(
        self,
        commitment: str,
        serialized_proof: str,
        public_key: str,
        signature: Union[Signature, str],
    ) -> str:
        """
        Produce a new proof that composes over an existing ownership proof.

        Raises:
            ValidationError: If a parameter is missing or malformed
            ProofError: If the prior proof or the signature does not hold
        """
        if not commitment or not serialized_proof or not public_key or not signature:
            raise ValidationError("reattest requires commitment, proof, public key and signature")

        prior = Proof.deserialize(serialized_proof)
        proof = await self._prove(
            "verify_identity",
            to_field(commitment, "commitment"),
            prior,
            public_key,
            Signature.coerce(signature),
        )
        return proof.serialize()

    # ------------------------------------------------------------------
    # verification
    # ------------------------------------------------------------------

    async def verify_identity(
        self,
        commitment: str,
        serialized_proof: str,
        public_key: str,
        serialized_signature: str,
    ) -> bool:
        """
        Verify a serialized ownership proof and signature for a commitment.

        Returns:
            False on commitment mismatch, invalid proof or invalid signature

        Raises:
            ValidationError: If a parameter is missing or not valid JSON
            CryptoError: If the public key cannot be decoded
        """
        if not commitment or not serialized_proof or not public_key or not serialized_signature:
            raise ValidationError(
                "verify_identity requires commitment, proof, public key and signature"
            )

        commitment_field = to_field(commitment, "commitment")
        proof = Proof.deserialize(serialized_proof)
        signature = Signature.from_json(serialized_signature)

        if proof.public_input != commitment_field:
            logger.info("Proof does not belong to commitment %s", commitment)
            return False

        verification_key = await self.verification_key()
        valid = await trio.to_thread.run_sync(
            self.proof_system.verify, proof, verification_key
        )
        if not valid:
            logger.info("Invalid ownership proof for commitment %s", commitment)
            return False

        if not verify_fields(public_key, [commitment_field], signature):
            logger.info("Invalid signature for commitment %s", commitment)
            return False

        return True


__all__ = ["IdentityProver", "VerificationKeyCache"]
