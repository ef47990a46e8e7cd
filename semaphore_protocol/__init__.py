"""Public API for semaphore_protocol.

Anonymous group membership and signaling: identities commit to a keypair
and pin, groups hold commitments in an indexed Merkle accumulator, and
signals carry a per-topic nullifier so repeats can be detected without
revealing the sender.
"""
from __future__ import annotations

from importlib import import_module

from .exceptions import (
    ConfigurationError,
    ConflictError,
    CryptoError,
    NotFoundError,
    ProofError,
    SemaphoreError,
    SignatureError,
    StorageError,
    ValidationError,
)
from .factory import get_proof_system, open_store
from .feature_flags import (
    get_proof_backend,
    get_store_type,
    set_proof_backend,
    set_store_type,
)
from .groups import Group, OwnerAuthorization
from .identity import Identity
from .interfaces import Encrypter, MembershipStore, ProofSystem
from .keys import Signature
from .merkle import MembershipAccumulator, MerkleHeight
from .private import PrivateFolder
from .prover import IdentityProver
from .signal import Signal
from .types import Proof, VerificationKey
from .uid import UID

__version__ = "0.1.0"

__all__ = [
    "Identity",
    "Group",
    "OwnerAuthorization",
    "MembershipAccumulator",
    "MerkleHeight",
    "Signal",
    "Signature",
    "IdentityProver",
    "Proof",
    "VerificationKey",
    "PrivateFolder",
    "UID",
    "MembershipStore",
    "ProofSystem",
    "Encrypter",
    "open_store",
    "get_proof_system",
    "get_store_type",
    "set_store_type",
    "get_proof_backend",
    "set_proof_backend",
    "SemaphoreError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "SignatureError",
    "ProofError",
    "StorageError",
    "CryptoError",
    "ConfigurationError",
    "CipheredText",
    "InMemoryStore",
    "PersistentStore",
    "MockProofSystem",
]

_LAZY_EXPORTS = {
    "CipheredText": "encryption",
    "InMemoryStore": "adapters.memory_store",
    "PersistentStore": "adapters.sqlite_store",
    "MockProofSystem": "adapters.mock_adapter",
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module = import_module(f"{__name__}.{_LAZY_EXPORTS[name]}")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
