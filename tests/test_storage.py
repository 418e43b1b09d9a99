import pytest

from portal.core.exceptions import StorageError
from portal.services.storage import (
    LocalObjectStore,
    build_storage_key,
    sign_storage_path,
    verify_download_token,
)


def test_storage_key_layout():
    key = build_storage_key(7, "Tax", "Annual Return 2024.pdf")
    company, category, name = key.split("/")
    assert (company, category) == ("7", "Tax")
    assert name.endswith("-Annual_Return_2024.pdf")


def test_storage_key_strips_directories():
    key = build_storage_key(7, "Tax", "../../etc/passwd")
    assert ".." not in key
    assert key.startswith("7/Tax/")


def test_keys_are_unique_for_same_name():
    assert build_storage_key(1, "Tax", "a.pdf") != build_storage_key(1, "Tax", "a.pdf")


def test_save_read_delete(tmp_path):
    store = LocalObjectStore(str(tmp_path))
    key = store.save("1/Tax/abc-a.pdf", b"bytes")
    assert store.exists(key)
    assert store.path_for(key).read_bytes() == b"bytes"
    assert store.delete(key) is True
    assert store.delete(key) is False
    with pytest.raises(StorageError):
        store.path_for(key)


def test_rejects_path_traversal(tmp_path):
    store = LocalObjectStore(str(tmp_path / "root"))
    with pytest.raises(StorageError):
        store.save("../escape.txt", b"x")
    assert not (tmp_path / "escape.txt").exists()


def test_download_token_round_trip():
    token = sign_storage_path("1/Tax/abc-a.pdf", "a.pdf", expires_in=60)
    assert verify_download_token(token) == {"path": "1/Tax/abc-a.pdf", "name": "a.pdf"}


def test_expired_download_token():
    token = sign_storage_path("1/Tax/abc-a.pdf", "a.pdf", expires_in=-5)
    assert verify_download_token(token) is None
