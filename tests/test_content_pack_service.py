import pytest

from contentpacks.core.errors import (
    DuplicateKeyError,
    MissingParameterError,
    SerializationError,
    UnresolvedReferenceError,
)
from contentpacks.core.facades import CollectorFacade, FacadeRegistry
from contentpacks.core.model import (
    ContentPack,
    EntityDescriptor,
    ModelTypes,
    Parameter,
    ServerVersionConstraint,
    ValueReference,
    ValueType,
)
from contentpacks.core.observability.metrics import snapshot_named
from contentpacks.core.service import OUTCOME_CREATED, OUTCOME_REUSED, ContentPackService
from contentpacks.core.sidecar.models import Collector

FILEBEAT_ID = "5b4c920b4b900a0024af0001"


@pytest.fixture()
def empty_service(store):
    return ContentPackService(FacadeRegistry([CollectorFacade(store)]))


def test_list_entity_excerpts_across_facades(service):
    titles = sorted(e.title for e in service.list_entity_excerpts())
    assert titles == ["filebeat", "nxlog", "winlogbeat"]


def test_export_builds_content_pack(service, make_filebeat_entity):
    pack = service.export(
        [EntityDescriptor.create(FILEBEAT_ID, ModelTypes.COLLECTOR)],
        name="Filebeat on Linux",
        summary="collector only",
    )

    assert pack.name == "Filebeat on Linux"
    assert pack.entities == [make_filebeat_entity(FILEBEAT_ID)]
    assert pack.constraints == frozenset()


def test_export_unknown_descriptor_fails(service):
    with pytest.raises(UnresolvedReferenceError):
        service.export([EntityDescriptor.create("missing", ModelTypes.COLLECTOR)], name="x")


def test_install_into_empty_store(store, empty_service, make_filebeat_entity):
    pack = ContentPack(name="p", entities=[make_filebeat_entity("0")])
    assert store.count() == 0

    installation = empty_service.install(pack, username="admin")

    assert store.count() == 1
    [installed] = installation.entities
    assert installed.outcome == OUTCOME_CREATED
    assert installed.descriptor.content_pack_entity_id.value == "0"
    assert installed.descriptor.id.value == store.find_by_name("filebeat").id
    assert snapshot_named().get("installed_collector|created") == 1


def test_install_twice_is_idempotent(store, empty_service, make_filebeat_entity):
    pack = ContentPack(name="p", entities=[make_filebeat_entity("0")])

    first = empty_service.install(pack, username="admin")
    second = empty_service.install(pack, username="admin")

    assert store.count() == 1
    assert second.entities[0].outcome == OUTCOME_REUSED
    assert second.entities[0].descriptor == first.entities[0].descriptor


def test_install_retries_lookup_after_lost_race(store, empty_service, make_filebeat_entity, monkeypatch):
    facade = empty_service.registry.require(ModelTypes.COLLECTOR)
    real_find = facade.find_existing
    calls = []

    def racing_find(entity, parameters):
        calls.append(entity.id)
        if len(calls) == 1:
            # another installer creates the collector between lookup and insert
            CollectorFacade(store).create_native_entity(entity, parameters, {}, "other")
            return None
        return real_find(entity, parameters)

    monkeypatch.setattr(facade, "find_existing", racing_find)

    installation = empty_service.install(ContentPack(name="p", entities=[make_filebeat_entity()]), username="admin")

    assert store.count() == 1
    assert installation.entities[0].outcome == OUTCOME_REUSED
    assert len(calls) == 2


def test_install_duplicate_without_match_propagates(store, empty_service, make_filebeat_entity, monkeypatch):
    facade = empty_service.registry.require(ModelTypes.COLLECTOR)
    monkeypatch.setattr(facade, "find_existing", lambda entity, parameters: None)
    store.save(
        Collector(
            name="filebeat",
            service_type="exec",
            node_operating_system="linux",
            executable_path="/usr/bin/filebeat",
            configuration_path="/etc/filebeat.yml",
        )
    )

    with pytest.raises(DuplicateKeyError):
        empty_service.install(ContentPack(name="p", entities=[make_filebeat_entity()]), username="admin")


def test_install_uses_parameters_and_defaults(store, empty_service, make_filebeat_entity):
    entity = make_filebeat_entity(
        executable_path=ValueReference.parameter("BIN"),
        configuration_path=ValueReference.parameter("CONF"),
    )
    pack = ContentPack(
        name="p",
        parameters=[
            Parameter(name="BIN", title="Binary"),
            Parameter(name="CONF", default_value="/etc/filebeat/filebeat.yml"),
        ],
        entities=[entity],
    )

    empty_service.install(pack, {"BIN": "/opt/filebeat"}, username="admin")

    collector = store.find_by_name("filebeat")
    assert collector.executable_path == "/opt/filebeat"
    assert collector.configuration_path == "/etc/filebeat/filebeat.yml"


def test_install_missing_required_parameter(store, empty_service, make_filebeat_entity):
    pack = ContentPack(
        name="p",
        parameters=[Parameter(name="BIN")],
        entities=[make_filebeat_entity(executable_path=ValueReference.parameter("BIN"))],
    )

    with pytest.raises(MissingParameterError) as ei:
        empty_service.install(pack, {}, username="admin")

    assert ei.value.parameter == "BIN"
    assert store.count() == 0


def test_install_rejects_mistyped_parameter(empty_service, make_filebeat_entity):
    pack = ContentPack(
        name="p",
        parameters=[Parameter(name="PORT", value_type=ValueType.INTEGER, default_value=5044)],
        entities=[make_filebeat_entity()],
    )

    with pytest.raises(SerializationError):
        empty_service.install(pack, {"PORT": "5044"}, username="admin")


def test_uninstall_removes_only_created(seeded_store, service, make_filebeat_entity):
    new_entity = make_filebeat_entity("1", name=ValueReference.of("auditbeat"))
    pack = ContentPack(name="p", entities=[make_filebeat_entity("0"), new_entity])

    installation = service.install(pack, username="admin")
    assert seeded_store.count() == 4
    assert len(installation.reused()) == 1

    removed = service.uninstall(installation)

    assert [d.content_pack_entity_id.value for d in removed] == ["1"]
    assert seeded_store.count() == 3
    assert seeded_store.find(FILEBEAT_ID) is not None


def test_export_then_install_round_trip(service, empty_service, store):
    pack = service.export(
        [EntityDescriptor.create(FILEBEAT_ID, ModelTypes.COLLECTOR)],
        name="round trip",
    )
    wire = pack.to_wire()

    installation = empty_service.install(ContentPack.from_wire(wire), username="admin")

    assert store.count() == 1
    assert installation.entities[0].descriptor.content_pack_entity_id.value == FILEBEAT_ID
    assert store.find_by_name("filebeat").executable_path == "/usr/bin/filebeat"


def test_content_pack_wire_keeps_constraints(make_filebeat_entity):
    pack = ContentPack(
        name="p",
        entities=[make_filebeat_entity()],
        constraints=frozenset({ServerVersionConstraint(">=3.0.0")}),
    )

    again = ContentPack.from_wire(pack.to_wire())

    assert again.constraints == pack.constraints
    assert again.id == pack.id
    assert again.entities == pack.entities


def test_install_rolls_back_created_entities_on_failure(store, empty_service, make_filebeat_entity):
    broken = make_filebeat_entity("1", name=ValueReference.of("nxlog"), service_type=ValueReference.of("cron"))
    pack = ContentPack(name="p", entities=[make_filebeat_entity("0"), broken])

    with pytest.raises(SerializationError):
        empty_service.install(pack, username="admin")

    assert store.count() == 0


def test_install_failure_keeps_reused_objects(seeded_store, service, make_filebeat_entity):
    broken = make_filebeat_entity("1", name=ValueReference.of("newbeat"), service_type=ValueReference.of("cron"))
    pack = ContentPack(name="p", entities=[make_filebeat_entity("0"), broken])

    with pytest.raises(SerializationError):
        service.install(pack, username="admin")

    assert seeded_store.count() == 3
    assert seeded_store.find_by_name("filebeat") is not None


def test_content_pack_rejects_duplicate_entities(make_filebeat_entity):
    first = make_filebeat_entity("0")
    second = make_filebeat_entity("0", name=ValueReference.of("newbeat"))

    with pytest.raises(SerializationError):
        ContentPack(name="p", entities=[first, second])
    with pytest.raises(SerializationError):
        ContentPack.from_wire({"name": "p", "entities": [first.to_wire(), second.to_wire()]})
