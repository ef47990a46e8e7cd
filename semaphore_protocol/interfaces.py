"""
Interfaces for the collaborators the protocol consumes.

WARNING: Implementations decide the security of proofs and the durability of
groups. Nothing here validates cryptographic correctness.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator

from .types import Proof, VerificationKey


class MembershipStore(ABC):
    """Key-value persistence for group records."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Registry name of the backend."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the record stored under ``key``, or None."""

    @abstractmethod
    def put(self, key: str, record: dict[str, Any]) -> None:
        """Upsert ``record`` under ``key`` (last write wins)."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """True if a record exists under ``key``."""

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate stored keys."""

    def find(self, query: str) -> list[tuple[str, dict[str, Any]]]:
        """Records whose key contains ``query``."""
        if not query:
            raise ValueError("find requires a search word")
        found = []
        for key in self.keys():
            if query in key:
                record = self.get(key)
                if record is not None:
                    found.append((key, record))
        return found

    def close(self) -> None:
        """Release backend resources."""


class ProofSystem(ABC):
    """
    Compile, prove and verify for a circuit.

    Methods are synchronous and CPU bound; async callers run them in a
    worker thread.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Registry name of the backend."""

    @abstractmethod
    def compile(self, circuit: Any) -> VerificationKey:
        """Compile ``circuit`` and return its verification key."""

    @abstractmethod
    def prove(
        self,
        circuit: Any,
        verification_key: VerificationKey | None,
        method: str,
        public_input: int,
        *private_inputs: Any,
    ) -> Proof:
        """
        Run ``circuit.<method>`` and return a proof of its execution.

        The proof is bound to ``verification_key``, or to a fresh compile of
        ``circuit`` when it is None.

        Raises:
            ProofError: If a circuit constraint fails
        """

    @abstractmethod
    def verify(self, proof: Proof, verification_key: VerificationKey) -> bool:
        """True if ``proof`` is valid for ``verification_key``."""


class Encrypter(ABC):
    """Opaque message encryption."""

    @abstractmethod
    def encrypt(self, message: str, key: str) -> str:
        """Encrypt ``message`` for the holder of ``key``."""

    @abstractmethod
    def decrypt(self, ciphertext: str, key: str) -> str:
        """Decrypt ``ciphertext`` with ``key``."""
