import pytest

from ..exceptions import StorageError, ValidationError
from ..private import PrivateFolder, clean_label


def test_clean_label() -> None:
    assert clean_label("Alice  Smith") == "Alice_Smith"
    assert clean_label("café/../etc") == "caf..etc"
    assert clean_label("communities.0ac2379.electors") == "communities.0ac2379.electors"
    assert clean_label("a-b_c") == "a-b_c"


def test_clean_label_rejects_non_str() -> None:
    with pytest.raises(ValidationError):
        clean_label(None)


def test_save_and_read(tmp_path) -> None:
    folder = PrivateFolder(tmp_path / "nested" / "private")
    path = folder.save("my key", {"a": 1})

    assert path.name == "my_key.identity.json"
    assert folder.exists("my key")
    assert folder.read("my key") == {"a": 1}
    assert folder.read("other") is None


def test_file_path_rejects_empty_name(tmp_path) -> None:
    with pytest.raises(ValidationError):
        PrivateFolder(tmp_path).file_path("///")


def test_corrupt_file_raises_storage_error(tmp_path) -> None:
    folder = PrivateFolder(tmp_path)
    folder.file_path("bad").write_text("{not json")
    with pytest.raises(StorageError):
        folder.read("bad")


def test_non_object_file_rejected(tmp_path) -> None:
    folder = PrivateFolder(tmp_path)
    folder.file_path("list").write_text("[1, 2]")
    with pytest.raises(ValidationError):
        folder.read("list")
