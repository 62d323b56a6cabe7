import json
import os
import threading

import pytest

from models import Agent, Logo
from storage import FlatFileStore


def test_creates_data_directory(tmp_path):
    data_dir = tmp_path / "nested" / "Data"
    FlatFileStore(str(data_dir))
    assert data_dir.is_dir()


def test_missing_collection_loads_empty(file_store):
    assert file_store.load("users") == []
    assert file_store.load_single("withdraw_config") is None


def test_malformed_collection_loads_empty(file_store):
    with open(file_store.path_for("users"), "w", encoding="utf-8") as fh:
        fh.write("{not json")
    assert file_store.load("users") == []


def test_non_list_document_loads_empty(file_store):
    file_store.save_single("users", {"id": "1"})
    assert file_store.load("users") == []


def test_save_writes_indented_utf8(file_store):
    file_store.save("fonts", [{"name": "SimSun", "displayName": "宋体"}])
    with open(file_store.path_for("fonts"), encoding="utf-8") as fh:
        raw = fh.read()
    assert "宋体" in raw
    assert "\n  " in raw
    assert json.loads(raw) == [{"name": "SimSun", "displayName": "宋体"}]


def test_save_and_load_models(file_store):
    file_store.save("logos", [Logo(id=3, text="Brand")])
    logos = file_store.load("logos", Logo)
    assert len(logos) == 1
    assert logos[0].id == 3
    assert logos[0].text == "Brand"


def test_save_leaves_no_temp_files(file_store):
    file_store.save("users", [{"id": "1"}])
    assert os.listdir(file_store.data_dir) == ["users.json"]


def test_write_failure_is_raised_and_keeps_previous_document(file_store):
    file_store.save("users", [{"id": "1"}])
    with pytest.raises(TypeError):
        file_store.save("users", [{"id": object()}])
    assert file_store.load("users") == [{"id": "1"}]
    assert os.listdir(file_store.data_dir) == ["users.json"]


def test_next_id(file_store):
    assert file_store.next_id("logos") == 1
    file_store.save("logos", [{"id": 4}, {"id": 9}, {"id": 2}])
    assert file_store.next_id("logos") == 10


def test_lock_serialises_read_modify_write(file_store):
    file_store.save("counter", [{"id": 0}])

    def bump():
        for _ in range(20):
            with file_store.lock("counter"):
                value = file_store.load("counter")[0]["id"]
                file_store.save("counter", [{"id": value + 1}])

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert file_store.load("counter") == [{"id": 80}]


def test_string_flags_load_as_booleans(file_store):
    file_store.save("agents", [
        {"id": "A1", "isActive": "false"},
        {"id": "A2", "isActive": "True"},
        {"id": "A3", "isActive": "0"},
        {"id": "A4", "isActive": 1},
    ])
    agents = {a.id: a.is_active for a in file_store.load("agents", Agent)}
    assert agents == {"A1": False, "A2": True, "A3": False, "A4": True}
