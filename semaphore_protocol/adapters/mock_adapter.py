from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional

from ..circuit import IdentityOwnershipCircuit
from ..exceptions import ProofError, ValidationError
from ..interfaces import ProofSystem
from ..security import (
    constant_time_compare,
    field_to_bytes,
    hash_bytes,
    hash_fields,
    to_field,
)
from ..types import Proof, VerificationKey

logger = logging.getLogger(__name__)


class _SelfProofVerifier:
    def __init__(self, system: "MockProofSystem", verification_key: VerificationKey) -> None:
        self._system = system
        self._verification_key = verification_key

    def verify_self_proof(self, proof: Proof) -> None:
        if not isinstance(proof, Proof):
            raise ProofError("self proof must be a Proof")
        if not self._system.verify(proof, self._verification_key):
            raise ProofError("self proof does not verify")


class MockProofSystem(ProofSystem):
    """
    Proof system that runs circuit constraints and seals the transcript.

    Notes:
    - This adapter is for testability and wiring of the prover helpers.
    - It does NOT provide zero-knowledge or soundness: anyone can compute a
      seal. Constraint failures are still raised at prove time.
    """

    _BACKEND_NAME = "mock"
    _BACKEND_VERSION = 1

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def compile(self, circuit: IdentityOwnershipCircuit) -> VerificationKey:
        description = dict(circuit.describe())
        description["backend"] = self._BACKEND_NAME
        description["v"] = self._BACKEND_VERSION
        return VerificationKey.from_description(description)

    def prove(
        self,
        circuit: IdentityOwnershipCircuit,
        verification_key: Optional[VerificationKey],
        method: str,
        public_input: int,
        *private_inputs: Any,
    ) -> Proof:
        if verification_key is None:
            verification_key = self.compile(circuit)
        spec = circuit.methods.get(method)
        if spec is None:
            raise ProofError(f"unknown circuit method {method!r}")
        run = circuit.method(method)
        public_output = run(
            _SelfProofVerifier(self, verification_key),
            public_input,
            *private_inputs,
        )
        seal = self._seal(
            verification_key, method, public_input, public_output, spec.proofs_verified
        )
        return Proof(
            method=method,
            public_input=public_input,
            public_output=public_output,
            proof=base64.b64encode(field_to_bytes(seal)).decode("ascii"),
            max_proofs_verified=spec.proofs_verified,
        )

    def verify(self, proof: Proof, verification_key: VerificationKey) -> bool:
        try:
            if not isinstance(proof, Proof):
                return False
            if not verification_key.is_consistent():
                return False
            description = verification_key.description()
            if description.get("backend") != self._BACKEND_NAME:
                return False
            methods = {m.get("name"): m for m in description.get("methods", [])}
            spec = methods.get(proof.method)
            if spec is None:
                return False
            if spec.get("proofsVerified", 0) != proof.max_proofs_verified:
                return False

            expected = self._seal(
                verification_key,
                proof.method,
                proof.public_input,
                proof.public_output,
                proof.max_proofs_verified,
            )
            received = base64.b64decode(proof.proof.encode("ascii"), validate=True)
            return constant_time_compare(received, field_to_bytes(expected))
        except (ValidationError, binascii.Error, UnicodeEncodeError, AttributeError):
            logger.debug("Malformed proof rejected", exc_info=True)
            return False

    @staticmethod
    def _seal(
        verification_key: VerificationKey,
        method: str,
        public_input: int,
        public_output: int,
        proofs_verified: int,
    ) -> int:
        return hash_fields(
            [
                to_field(verification_key.hash, "verification key hash"),
                hash_bytes(method.encode("utf-8"), "proof"),
                public_input,
                public_output,
                proofs_verified,
            ],
            "proof",
        )
