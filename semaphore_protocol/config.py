"""
⚠️ DRAFT — requires crypto review before production use

Cryptographic and storage configuration for the semaphore protocol.

Field elements live in the Ed25519 prime-order scalar field so that
identity keys, commitments and signatures share one modulus.
"""

import os
from pathlib import Path

# ============================================================================
# CURVE SELECTION
# ============================================================================

# Ed25519 via PyNaCl
# - Prime order subgroup (cofactor handled by libsodium)
# - Deterministic signatures, no nonce reuse risk
# - Sealed boxes available through the Curve25519 birational map

CURVE_NAME = "Ed25519"
CURVE_LIBRARY = "PyNaCl"

# ============================================================================
# FIELD PARAMETERS
# ============================================================================

if CURVE_NAME == "Ed25519":
    FIELD_ORDER = 2**252 + 27742317777372353535851937790883648493
    FIELD_ORDER_BITS = 253
    KEY_SIZE_BYTES = 32
    SIGNATURE_SIZE_BYTES = 64

# Keys are split into 128-bit limbs so each limb is a valid field element
KEY_LIMB_BYTES = 16

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

HASH_FUNCTION = "SHA3-256"
HASH_OUTPUT_BITS = 256

DOMAIN_SEPARATOR_PREFIX = b"SEMAPHORE_V1_"

DOMAIN_SEPARATORS = {
    "hash": DOMAIN_SEPARATOR_PREFIX + b"HASH",
    "merkle_leaf": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_LEAF",
    "merkle_node": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_NODE",
    "signature": DOMAIN_SEPARATOR_PREFIX + b"SIGNATURE",
    "proof": DOMAIN_SEPARATOR_PREFIX + b"PROOF",
}

# ============================================================================
# IDENTITY PARAMETERS
# ============================================================================

PIN_DIGITS = 6

# ============================================================================
# GROUP PARAMETERS
# ============================================================================

HEIGHT_SMALL = 12  # max 4096 leaves
HEIGHT_MEDIUM = 16  # max 65536 leaves
HEIGHT_BIG = 24  # max 16777216 leaves

DEFAULT_GROUP_HEIGHT = HEIGHT_SMALL

# Leaf value flags
MEMBER_ACTIVE = 1
MEMBER_REMOVED = 0

# ============================================================================
# PRIVATE STORAGE
# ============================================================================

PRIVATE_DIR_ENV_VAR = "SEMAPHORE_PRIVATE_DIR"
PRIVATE_FILE_SUFFIX = ".identity.json"
VERIFICATION_KEY_FILE = "identity-prover-vk"


def default_private_dir() -> Path:
    """Private folder from the environment, else ``~/.private``."""
    env_value = os.getenv(PRIVATE_DIR_ENV_VAR)
    if env_value:
        return Path(env_value)
    return Path.home() / ".private"


# ============================================================================
# PROOF SERIALIZATION
# ============================================================================

PROOF_VERSION = 1
CIRCUIT_NAME = "prove-commited-identity"

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert CURVE_NAME == "Ed25519", "Invalid curve"
    assert CURVE_LIBRARY == "PyNaCl", "Ed25519 requires PyNaCl"
    assert HASH_FUNCTION in ["SHA3-256", "SHA256"], "Invalid hash function"
    assert FIELD_ORDER > 2**252, "Field order too small"
    assert KEY_LIMB_BYTES * 8 < FIELD_ORDER_BITS, "Key limbs must fit the field"
    assert KEY_SIZE_BYTES % KEY_LIMB_BYTES == 0, "Key size must split into limbs"
    assert 0 < HEIGHT_SMALL < HEIGHT_MEDIUM < HEIGHT_BIG, "Invalid heights"
    assert len(set(DOMAIN_SEPARATORS.values())) == len(DOMAIN_SEPARATORS), (
        "Domain separators must be distinct"
    )
    return True


# Auto-validate on import
validate_config()
