"""
⚠️ DRAFT — requires crypto review before production use

Identity ownership circuit.

Public input: the identity commitment. Public output: the same commitment.

    prove_ownership(commitment; publicKey, pin, signature)
        Hash(publicKey.fields ++ [pin]) == commitment
        signature verifies over [commitment] under publicKey

    verify_identity(commitment; priorProof, publicKey, signature)
        priorProof is a valid proof of this circuit
        priorProof.publicInput == commitment
        signature verifies over [commitment] under publicKey

The first method binds a proof to knowledge of the pin/publicKey pair and
possession of the matching secret key. The second lets a holder re-attest
ownership to a new verifier without exposing the pin again, by composing
over an already valid proof.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Protocol, Tuple

from .config import CIRCUIT_NAME, CURVE_NAME, HASH_FUNCTION
from .exceptions import CryptoError, ProofError, ValidationError
from .keys import Signature, public_key_fields, verify_fields
from .security import hash_fields
from .types import Proof


class ProofVerifier(Protocol):
    def verify_self_proof(self, proof: Proof) -> None:
        """Raise ProofError unless ``proof`` is a valid proof of this circuit."""


@dataclass(frozen=True)
class MethodSpec:
    name: str
    private_inputs: Tuple[str, ...]
    proofs_verified: int = 0


def assert_equals(actual: int, expected: int, message: str) -> None:
    if actual != expected:
        raise ProofError(message)


def assert_signature(public_key: str, fields: list, signature: Signature) -> None:
    try:
        valid = verify_fields(public_key, fields, signature)
    except (CryptoError, ValidationError) as exc:
        raise ProofError(f"signature check failed: {exc}") from exc
    if not valid:
        raise ProofError("signature does not verify over the commitment")


@dataclass
class IdentityOwnershipCircuit:
    """Constraint specification for proving and re-attesting identity ownership."""

    name: str = CIRCUIT_NAME
    methods: Dict[str, MethodSpec] = field(default_factory=lambda: {
        "prove_ownership": MethodSpec(
            name="prove_ownership",
            private_inputs=("PublicKey", "Field", "Signature"),
        ),
        "verify_identity": MethodSpec(
            name="verify_identity",
            private_inputs=("SelfProof", "PublicKey", "Signature"),
            proofs_verified=1,
        ),
    })

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "publicInput": "Field",
            "publicOutput": "Field",
            "curve": CURVE_NAME,
            "hash": HASH_FUNCTION,
            "methods": [
                {
                    "name": spec.name,
                    "privateInputs": list(spec.private_inputs),
                    "proofsVerified": spec.proofs_verified,
                }
                for spec in self.methods.values()
            ],
        }

    def method(self, name: str) -> Callable[..., int]:
        if name not in self.methods:
            raise ProofError(f"unknown circuit method {name!r}")
        return getattr(self, name)

    def prove_ownership(
        self,
        verifier: ProofVerifier,
        commitment: int,
        public_key: str,
        pin: int,
        signature: Signature,
    ) -> int:
        try:
            candidate = hash_fields(public_key_fields(public_key) + [pin])
        except (CryptoError, ValidationError) as exc:
            raise ProofError(f"cannot rebuild commitment: {exc}") from exc
        assert_equals(commitment, candidate, "commitment does not match public key and pin")
        assert_signature(public_key, [commitment], signature)
        return commitment

    def verify_identity(
        self,
        verifier: ProofVerifier,
        commitment: int,
        ownership_proof: Proof,
        public_key: str,
        signature: Signature,
    ) -> int:
        verifier.verify_self_proof(ownership_proof)
        assert_equals(
            commitment,
            ownership_proof.public_input,
            "ownership proof and commitment come from different identities",
        )
        assert_signature(public_key, [commitment], signature)
        return commitment
