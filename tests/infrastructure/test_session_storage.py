"""Session Storage — in-memory and JSON-file key-value backends."""

import json

from savings_client.infrastructure.session_storage import InMemoryStorage, JsonFileStorage


def test_in_memory_roundtrip_and_remove():
    storage = InMemoryStorage()
    storage.set_item("currentUser", "{}")
    assert storage.get_item("currentUser") == "{}"
    storage.remove_item("currentUser")
    storage.remove_item("currentUser")
    assert storage.get_item("currentUser") is None


def test_json_file_persists_across_instances(tmp_path):
    path = tmp_path / "session" / "store.json"
    JsonFileStorage(path).set_item("currentUser", '{"id": 1}')

    assert JsonFileStorage(path).get_item("currentUser") == '{"id": 1}'
    assert json.loads(path.read_text(encoding="utf-8")) == {"currentUser": '{"id": 1}'}
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_missing_reads_empty(tmp_path):
    assert JsonFileStorage(tmp_path / "none.json").get_item("currentUser") is None


def test_json_file_corrupt_reads_empty(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileStorage(path).get_item("currentUser") is None
    assert "Unreadable session storage" in caplog.text


def test_json_file_remove_keeps_other_keys(tmp_path):
    storage = JsonFileStorage(tmp_path / "store.json")
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")
    assert storage.get_item("a") is None
    assert storage.get_item("b") == "2"
