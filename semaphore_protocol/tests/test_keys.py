import json

import pytest

from .. import keys
from ..exceptions import CryptoError, ValidationError


def test_generate_keypair_and_public_key_of() -> None:
    sk, pk = keys.generate_keypair()
    assert keys.public_key_of(sk) == pk
    assert len(keys.public_key_fields(pk)) == 2
    assert len(keys.secret_key_fields(sk)) == 2


def test_sign_and_verify_fields() -> None:
    sk, pk = keys.generate_keypair()
    signature = keys.sign_fields(sk, [1, 2, 3])

    assert keys.verify_fields(pk, [1, 2, 3], signature) is True
    assert keys.verify_fields(pk, [1, 2, 4], signature) is False

    _, other_pk = keys.generate_keypair()
    assert keys.verify_fields(other_pk, [1, 2, 3], signature) is False


def test_signature_json_format() -> None:
    sk, pk = keys.generate_keypair()
    signature = keys.sign_fields(sk, [7])
    encoded = signature.to_json()

    obj = json.loads(encoded)
    assert set(obj) == {"r", "s"}
    assert keys.Signature.from_json(encoded) == signature
    assert keys.verify_fields(pk, [7], encoded) is True


def test_signature_from_json_errors() -> None:
    with pytest.raises(ValidationError):
        keys.Signature.from_json("{not json")
    with pytest.raises(ValidationError):
        keys.Signature.from_json('{"r": "AA=="}')
    with pytest.raises(CryptoError):
        keys.Signature.from_json('{"r": "AA==", "s": "AA=="}')


@pytest.mark.parametrize("bad_key", ["", "not-base64!", "AAAA"])
def test_malformed_keys_raise_crypto_error(bad_key: str) -> None:
    with pytest.raises(CryptoError):
        keys.load_verify_key(bad_key)
    with pytest.raises(CryptoError):
        keys.sign_fields(bad_key, [1])
