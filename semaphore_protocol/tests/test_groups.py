import base64
import json

import pytest

from ..adapters.memory_store import InMemoryStore
from ..exceptions import ConflictError, SignatureError, StorageError, ValidationError
from ..groups import Group, OwnerAuthorization
from ..identity import Identity
from ..keys import generate_keypair, sign_fields
from ..merkle import MerkleHeight
from ..security import to_field


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


def test_create_group(store: InMemoryStore) -> None:
    group = Group.create("communities.0ac2379.electors", store=store)
    assert group.guid == "communities.0ac2379.electors"
    assert group.height == MerkleHeight.SMALL
    assert group.size == 1
    assert group.owner is None
    assert group.is_owned is False


def test_create_with_named_height() -> None:
    assert Group.create("g", height="medium").height == 16
    assert Group.create("g", height=MerkleHeight.BIG).height == 24


@pytest.mark.parametrize("guid", ["", None, "ñ"])
def test_create_rejects_empty_guid(guid) -> None:
    with pytest.raises(ValidationError):
        Group.create(guid)


def test_create_rejects_bad_height() -> None:
    with pytest.raises(ValidationError):
        Group.create("g", height=0)


def test_create_conflict(store: InMemoryStore) -> None:
    Group.create("g1", store=store).save()
    with pytest.raises(ConflictError):
        Group.create("g1", store=store)


def test_membership_flags() -> None:
    group = Group.create("g")
    a = Identity.create("a", "1").commitment
    b = Identity.create("b", "2").commitment

    group.add_member(a)
    group.add_member(b)
    assert group.is_member(a) and group.is_member(b)

    group.remove_member(a)
    assert group.is_member(a) is False
    assert group.size == 3
    assert group.members() == [b]


def test_is_member_unknown_commitment() -> None:
    group = Group.create("g")
    assert group.is_member("12345") is False


def test_save_without_store() -> None:
    with pytest.raises(StorageError):
        Group.create("g").save()


def test_save_record_and_read(store: InMemoryStore) -> None:
    group = Group.create("g2", height=8, store=store)
    commitment = Identity.create("a", "1").commitment
    group.add_member(commitment)
    group.save()

    record = store.get("g2")
    assert set(record) == {"guid", "owner", "height", "size", "root", "json", "updatedUTC"}
    assert record["owner"] is None
    assert record["size"] == "2"
    assert record["root"] == str(group.root)
    assert json.loads(record["json"])["height"] == 8

    assert Group.exists("g2", store) is True
    restored = Group.read("g2", store)
    assert restored.root == group.root
    assert restored.height == 8
    assert restored.owner is None
    assert restored.is_member(commitment)


def test_read_absent_returns_none(store: InMemoryStore) -> None:
    assert Group.read("nope", store) is None
    assert Group.exists("nope", store) is False


def test_save_is_last_write_wins(store: InMemoryStore) -> None:
    group = Group.create("g", store=store)
    group.save()
    first = Group.read("g", store)
    first.add_member(5)
    second = Group.read("g", store)
    second.add_member(6)

    first.save()
    second.save()
    final = Group.read("g", store)
    assert final.is_member(6)
    assert not final.is_member(5)


def test_owner_authorization() -> None:
    owner_sk, owner_pk = generate_keypair()
    auth = OwnerAuthorization(owner_pk)
    signature = sign_fields(owner_sk, [to_field("77")])

    auth.authorize("77", signature)
    auth.authorize("77", signature.to_json())
    with pytest.raises(SignatureError):
        auth.authorize("78", signature)
    with pytest.raises(ValidationError):
        auth.authorize("", signature)
    with pytest.raises(ValidationError):
        auth.authorize("77", None)
    with pytest.raises(ValidationError):
        OwnerAuthorization("")


def test_owned_group_requires_owner_signature(store: InMemoryStore) -> None:
    owner_sk, owner_pk = generate_keypair()
    intruder_sk, _ = generate_keypair()
    group = Group.create_owned("owned", owner_pk, store=store)
    commitment = Identity.create("m", "1").commitment
    root = group.root

    with pytest.raises(ValidationError):
        group.add_member(commitment)
    with pytest.raises(SignatureError):
        group.add_member(commitment, sign_fields(intruder_sk, [to_field(commitment)]))
    assert group.root == root
    assert group.size == 1

    signature = sign_fields(owner_sk, [to_field(commitment)])
    group.add_member(commitment, signature)
    assert group.is_member(commitment)

    group.save()
    restored = Group.read("owned", store)
    assert restored.is_owned and restored.owner == owner_pk
    with pytest.raises(ValidationError):
        restored.remove_member(commitment)
    restored.remove_member(commitment, signature)
    assert restored.is_member(commitment) is False


_B64_SHORT = base64.b64encode(b"short").decode("ascii")


@pytest.mark.parametrize(
    "signature",
    [
        "not-a-signature",
        json.dumps({"r": _B64_SHORT, "s": _B64_SHORT}),
        json.dumps({"r": "%%%", "s": "%%%"}),
        json.dumps(["r", "s"]),
    ],
)
def test_owned_group_rejects_malformed_signature(store: InMemoryStore, signature: str) -> None:
    _, owner_pk = generate_keypair()
    group = Group.create_owned("owned", owner_pk, store=store)
    commitment = Identity.create("m", "1").commitment
    before = (group.root, group.size)

    with pytest.raises(SignatureError):
        group.add_member(commitment, signature)
    with pytest.raises(SignatureError):
        group.remove_member(commitment, signature)
    assert (group.root, group.size) == before
    assert group.is_member(commitment) is False

def test_create_owned_requires_owner() -> None:
    with pytest.raises(ValidationError):
        Group.create_owned("g", "")
