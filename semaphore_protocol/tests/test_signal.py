import json

import pytest

from ..exceptions import ValidationError
from ..identity import Identity
from ..keys import secret_key_fields
from ..security import hash_fields, to_field
from ..signal import Signal, message_fields
from ..uid import UID


@pytest.fixture
def identity() -> Identity:
    return Identity.create("signaler", "010203")


@pytest.fixture
def topic() -> int:
    return UID.to_field(UID.uuid4())


def test_create_signal_invariants(identity: Identity, topic: int) -> None:
    signal = Signal.create(identity, topic, "hello")
    commitment = to_field(identity.commitment)

    assert signal.commitment == identity.commitment
    assert signal.topic == str(topic)
    assert signal.message == "hello"
    assert signal.encrypted is False
    assert signal.hash == str(
        hash_fields([ord(c) for c in "hello"] + [topic, commitment])
    )
    assert signal.nullifier == str(
        hash_fields(secret_key_fields(identity.sk) + [topic])
    )
    assert signal.check_hash() is True
    assert signal.verify(identity.pk) is True


def test_nullifier_is_stable_per_topic(identity: Identity, topic: int) -> None:
    first = Signal.create(identity, topic, "one")
    second = Signal.create(identity, topic, "two")
    assert first.nullifier == second.nullifier
    assert first.hash != second.hash


def test_changing_topic_changes_hash_and_nullifier(identity: Identity) -> None:
    a = Signal.create(identity, 1, "msg")
    b = Signal.create(identity, 2, "msg")
    assert a.commitment == b.commitment
    assert a.hash != b.hash
    assert a.nullifier != b.nullifier


def test_serialize_round_trip(identity: Identity, topic: int) -> None:
    signal = Signal.create(identity, topic, "round trip")
    text = signal.serialize()

    assert set(json.loads(text)) == {
        "commitment", "topic", "message", "encrypted", "hash", "nullifier", "signature",
    }
    assert Signal.deserialize(text) == signal


def test_deserialize_errors() -> None:
    with pytest.raises(ValidationError):
        Signal.deserialize("")
    with pytest.raises(ValidationError):
        Signal.deserialize("{bad")
    with pytest.raises(ValidationError):
        Signal.deserialize('{"commitment": "1"}')


@pytest.mark.parametrize(
    "topic, message",
    [(0, "hi"), ("0", "hi"), (None, "hi"), ("", "hi"), (5, ""), (5, None)],
)
def test_create_rejects_missing_params(identity: Identity, topic, message) -> None:
    with pytest.raises(ValidationError):
        Signal.create(identity, topic, message)


def test_create_rejects_incomplete_identity(identity: Identity) -> None:
    with pytest.raises(ValidationError):
        Signal.create(None, 5, "hi")
    identity.sk = ""
    with pytest.raises(ValidationError, match="secret key"):
        Signal.create(identity, 5, "hi")


def test_verify_rejects_other_key_and_tampering(identity: Identity, topic: int) -> None:
    signal = Signal.create(identity, topic, "hello")
    other = Identity.create("other", "1")
    assert signal.verify(other.pk) is False

    signal.message = "hellO"
    assert signal.check_hash() is False


def test_encrypted_signal(identity: Identity, topic: int) -> None:
    recipient = Identity.create("service", "9")
    signal = Signal.create(identity, topic, "secret ballot", encryption_key=recipient.pk)

    assert signal.encrypted is True
    assert signal.message != "secret ballot"
    assert signal.check_hash() is True
    assert signal.decrypt(recipient.sk) == "secret ballot"

    restored = Signal.deserialize(signal.serialize())
    assert restored.decrypt(recipient.sk) == "secret ballot"


def test_message_fields_are_utf16_code_units() -> None:
    assert message_fields("ab") == [97, 98]
    assert message_fields("é") == [233]
    assert message_fields("\U0001F600") == [0xD83D, 0xDE00]
    assert message_fields("\ud83d") == [0xD83D]


def test_signal_over_astral_message_round_trips(identity: Identity) -> None:
    signal = Signal.create(identity, 7, "vote \U0001F600")
    restored = Signal.deserialize(signal.serialize())
    assert restored.check_hash()
    assert restored.verify(identity.pk)
