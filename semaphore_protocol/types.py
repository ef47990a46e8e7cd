"""
⚠️ DRAFT — requires crypto review before production use

Proof and verification key types.

Proofs are exchanged as JSON text so they can travel next to signals and
identity files. Verification keys carry their circuit description as
base64 CBOR together with a field hash of it.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict

import cbor2

from .config import PROOF_VERSION
from .exceptions import ValidationError
from .security import hash_bytes, to_field

# ============================================================================
# VERIFICATION KEY
# ============================================================================


@dataclass(frozen=True)
class VerificationKey:
    """
    Public artifact of circuit compilation.

    Attributes:
        data: base64 CBOR description of the compiled circuit
        hash: Field hash of ``data`` (decimal string)
    """

    data: str
    hash: str

    @classmethod
    def from_description(cls, description: Dict[str, Any]) -> "VerificationKey":
        raw = cbor2.dumps(description, canonical=True)
        return cls(
            data=base64.b64encode(raw).decode("ascii"),
            hash=str(hash_bytes(raw, "proof")),
        )

    def description(self) -> Dict[str, Any]:
        """
        Decode the circuit description.

        Raises:
            ValidationError: If ``data`` is not base64 CBOR
        """
        try:
            raw = base64.b64decode(self.data.encode("ascii"), validate=True)
            obj = cbor2.loads(raw)
        except (binascii.Error, UnicodeEncodeError, cbor2.CBORDecodeError) as exc:
            raise ValidationError("verification key data is malformed") from exc
        if not isinstance(obj, dict):
            raise ValidationError("verification key data must decode to a map")
        return obj

    def is_consistent(self) -> bool:
        """True if ``hash`` matches ``data``."""
        try:
            raw = base64.b64decode(self.data.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            return False
        return str(hash_bytes(raw, "proof")) == self.hash

    def to_dict(self) -> Dict[str, str]:
        return {"data": self.data, "hash": self.hash}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "VerificationKey":
        if not isinstance(obj, dict) or not obj.get("data") or not obj.get("hash"):
            raise ValidationError("verification key requires 'data' and 'hash'")
        return cls(data=str(obj["data"]), hash=str(obj["hash"]))


# ============================================================================
# PROOF
# ============================================================================


@dataclass(frozen=True)
class Proof:
    """
    Proof of a circuit method execution.

    Attributes:
        method: Circuit method name
        public_input: Public input field element
        public_output: Public output field element
        proof: Backend specific proof payload (base64)
        max_proofs_verified: Count of recursively verified proofs
    """

    method: str
    public_input: int
    public_output: int
    proof: str
    max_proofs_verified: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "v": PROOF_VERSION,
            "method": self.method,
            "publicInput": [str(self.public_input)],
            "publicOutput": [str(self.public_output)],
            "maxProofsVerified": self.max_proofs_verified,
            "proof": self.proof,
        }

    def serialize(self) -> str:
        return json.dumps(self.to_json())

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "Proof":
        """
        Build a proof from its JSON object form.

        Raises:
            ValidationError: If fields are missing, malformed or the version
                is unsupported
        """
        if not isinstance(obj, dict):
            raise ValidationError("proof must be a JSON object")
        version = obj.get("v", PROOF_VERSION)
        if version != PROOF_VERSION:
            raise ValidationError(
                f"Unsupported proof version: {version} (expected {PROOF_VERSION})"
            )
        for name in ("method", "publicInput", "publicOutput", "proof"):
            if name not in obj:
                raise ValidationError(f"Invalid proof format: missing '{name}'")

        public_input = obj["publicInput"]
        public_output = obj["publicOutput"]
        if not isinstance(public_input, list) or len(public_input) != 1:
            raise ValidationError("publicInput must hold one field element")
        if not isinstance(public_output, list) or len(public_output) != 1:
            raise ValidationError("publicOutput must hold one field element")
        if not isinstance(obj["proof"], str) or not isinstance(obj["method"], str):
            raise ValidationError("proof and method must be strings")
        max_proofs_verified = obj.get("maxProofsVerified", 0)
        if isinstance(max_proofs_verified, bool) or not isinstance(max_proofs_verified, int):
            raise ValidationError("maxProofsVerified must be an int")

        return cls(
            method=obj["method"],
            public_input=to_field(public_input[0], "publicInput"),
            public_output=to_field(public_output[0], "publicOutput"),
            proof=obj["proof"],
            max_proofs_verified=max_proofs_verified,
        )

    @classmethod
    def deserialize(cls, text: str) -> "Proof":
        if not text:
            raise ValidationError("empty proof")
        try:
            obj = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationError("proof is not valid JSON") from exc
        return cls.from_json(obj)
