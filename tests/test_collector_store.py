import json
import threading

import pytest

from contentpacks.core.errors import DuplicateKeyError
from contentpacks.core.sidecar.models import Collector
from contentpacks.core.sidecar.store import InMemoryCollectorStore, JsonFileCollectorStore


def _collector(name="filebeat", **kw):
    fields = dict(
        name=name,
        service_type="exec",
        node_operating_system="linux",
        executable_path=f"/usr/bin/{name}",
        configuration_path=f"/etc/{name}.yml",
    )
    fields.update(kw)
    return Collector(**fields)


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "file":
        return JsonFileCollectorStore(tmp_path / "collectors.json")
    return InMemoryCollectorStore()


def test_save_assigns_id(any_store):
    saved = any_store.save(_collector())

    assert saved.id
    assert len(saved.id) == 24
    assert any_store.find(saved.id) == saved
    assert any_store.find_by_name("filebeat") == saved
    assert any_store.count() == 1


def test_save_keeps_given_id(any_store):
    saved = any_store.save(_collector(id="5b4c920b4b900a0024af0001"))
    assert saved.id == "5b4c920b4b900a0024af0001"


def test_name_is_unique(any_store):
    any_store.save(_collector())

    with pytest.raises(DuplicateKeyError) as ei:
        any_store.save(_collector(executable_path="/opt/filebeat"))

    assert ei.value.key == "name"
    assert any_store.count() == 1


def test_update_same_id_keeps_provenance(any_store):
    saved = any_store.save(_collector(), actor="alice")
    any_store.save(saved.model_copy(update={"execute_parameters": "-e"}), actor="bob")

    assert any_store.count() == 1
    assert any_store.find(saved.id).execute_parameters == "-e"
    assert any_store.provenance(saved.id).created_by == "alice"


def test_delete(any_store):
    saved = any_store.save(_collector())

    assert any_store.delete(saved) == 1
    assert any_store.delete(saved) == 0
    assert any_store.find(saved.id) is None
    assert any_store.provenance(saved.id) is None


def test_missing_lookups_return_none(any_store):
    assert any_store.find("nope") is None
    assert any_store.find_by_name("nope") is None
    assert any_store.all() == []


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "state" / "collectors.json"
    saved = JsonFileCollectorStore(path).save(_collector(), actor="admin")

    reopened = JsonFileCollectorStore(path)
    assert reopened.find(saved.id) == saved
    assert reopened.provenance(saved.id).created_by == "admin"

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["collectors"][0]["_meta"]["created_by"] == "admin"


def test_concurrent_inserts_of_same_name():
    store = InMemoryCollectorStore()
    errors = []

    def insert():
        try:
            store.save(_collector())
        except DuplicateKeyError as e:
            errors.append(e)

    threads = [threading.Thread(target=insert) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.count() == 1
    assert len(errors) == 7


def test_collector_validation():
    with pytest.raises(ValueError):
        _collector(name="bad name")
    with pytest.raises(ValueError):
        _collector(service_type="cron")
    with pytest.raises(ValueError):
        _collector(executable_path=" ")
