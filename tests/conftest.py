import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from contentpacks.api.main import create_app
from contentpacks.core.facades import CollectorFacade, FacadeRegistry
from contentpacks.core.model import CollectorEntity, EntityV1, ModelId, ModelTypes, ValueReference
from contentpacks.core.model.mapping import encode_payload
from contentpacks.core.observability.metrics import reset_metrics
from contentpacks.core.service import ContentPackService
from contentpacks.core.sidecar.models import Collector
from contentpacks.core.sidecar.store import InMemoryCollectorStore

FIXTURES = Path(__file__).parent / "fixtures"

FILEBEAT_ID = "5b4c920b4b900a0024af0001"


def load_collectors():
    obj = json.loads((FIXTURES / "sidecar_collectors.json").read_text(encoding="utf-8"))
    return [Collector(**c) for c in obj["collectors"]]


def filebeat_entity(entity_id: str = "0", **overrides) -> EntityV1:
    """Portable filebeat collector as produced by an export."""
    fields = {
        "name": ValueReference.of("filebeat"),
        "service_type": ValueReference.of("exec"),
        "node_operating_system": ValueReference.of("linux"),
        "executable_path": ValueReference.of("/usr/bin/filebeat"),
        "configuration_path": ValueReference.of("/etc/graylog/collector-sidecar/generated/filebeat.yml"),
        "execute_parameters": ValueReference.of("-c %s"),
        "validation_command": ValueReference.of("test config -c %s"),
        "default_template": ValueReference.of(""),
    }
    fields.update(overrides)
    return EntityV1(
        id=ModelId.of(entity_id),
        type=ModelTypes.COLLECTOR,
        data=encode_payload(CollectorEntity(**fields)),
    )


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()


@pytest.fixture()
def store():
    return InMemoryCollectorStore()


@pytest.fixture()
def seeded_store():
    s = InMemoryCollectorStore()
    for c in load_collectors():
        s.save(c)
    return s


@pytest.fixture()
def facade(store):
    return CollectorFacade(store)


@pytest.fixture()
def seeded_facade(seeded_store):
    return CollectorFacade(seeded_store)


@pytest.fixture()
def service(seeded_store):
    return ContentPackService(FacadeRegistry([CollectorFacade(seeded_store)]))


@pytest.fixture()
def client(service):
    return TestClient(create_app(service))


@pytest.fixture()
def make_filebeat_entity():
    return filebeat_entity
