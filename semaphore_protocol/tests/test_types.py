import json

import pytest

from ..exceptions import ValidationError
from ..types import Proof, VerificationKey


def _proof() -> Proof:
    return Proof(
        method="prove_ownership",
        public_input=123,
        public_output=123,
        proof="AAAA",
    )


def test_proof_json_format() -> None:
    obj = json.loads(_proof().serialize())
    assert obj == {
        "v": 1,
        "method": "prove_ownership",
        "publicInput": ["123"],
        "publicOutput": ["123"],
        "maxProofsVerified": 0,
        "proof": "AAAA",
    }
    assert Proof.deserialize(json.dumps(obj)) == _proof()


@pytest.mark.parametrize(
    "mutate",
    [
        lambda o: o.pop("method"),
        lambda o: o.update(v=2),
        lambda o: o.update(publicInput=[]),
        lambda o: o.update(publicOutput="123"),
        lambda o: o.update(publicInput=["x"]),
        lambda o: o.update(maxProofsVerified=True),
        lambda o: o.update(proof=5),
    ],
)
def test_proof_from_json_rejects(mutate) -> None:
    obj = _proof().to_json()
    mutate(obj)
    with pytest.raises(ValidationError):
        Proof.from_json(obj)


def test_proof_deserialize_rejects_bad_text() -> None:
    with pytest.raises(ValidationError):
        Proof.deserialize("")
    with pytest.raises(ValidationError):
        Proof.deserialize("nope")
    with pytest.raises(ValidationError):
        Proof.deserialize("[1]")


def test_verification_key_description() -> None:
    vk = VerificationKey.from_description({"name": "c", "methods": []})
    assert vk.is_consistent()
    assert vk.description() == {"name": "c", "methods": []}
    assert VerificationKey.from_dict(vk.to_dict()) == vk

    assert VerificationKey(data=vk.data, hash="0").is_consistent() is False
    with pytest.raises(ValidationError):
        VerificationKey(data="%%", hash="0").description()
    with pytest.raises(ValidationError):
        VerificationKey.from_dict({"data": vk.data})
