import json

import pytest
import yaml

from contentpacks.core.errors import SerializationError
from contentpacks.core.model import ContentPack, Parameter, ValueType, load_content_pack


def _pack_dict(make_filebeat_entity):
    return {
        "v": 1,
        "id": "8f3c6a52-3c4b-4f0f-9a57-1b3c2f1e0d11",
        "rev": 2,
        "name": "Sidecar defaults",
        "summary": "Filebeat collector",
        "parameters": [{"name": "BIN", "type": "string", "default_value": "/usr/bin/filebeat"}],
        "entities": [make_filebeat_entity("0").to_wire()],
        "constraints": [{"type": "plugin-version", "plugin": "sidecar", "version": ">=1.0.0"}],
    }


def test_load_json(tmp_path, make_filebeat_entity):
    p = tmp_path / "pack.json"
    p.write_text(json.dumps(_pack_dict(make_filebeat_entity)), encoding="utf-8")

    pack = load_content_pack(p)

    assert pack.rev == 2
    assert pack.entities == [make_filebeat_entity("0")]
    assert pack.parameters == [Parameter(name="BIN", default_value="/usr/bin/filebeat")]


def test_load_yaml(tmp_path, make_filebeat_entity):
    p = tmp_path / "pack.yaml"
    p.write_text(yaml.safe_dump(_pack_dict(make_filebeat_entity)), encoding="utf-8")

    pack = load_content_pack(p)

    assert pack.name == "Sidecar defaults"
    assert pack == ContentPack.from_wire(_pack_dict(make_filebeat_entity))


def test_unknown_content_pack_version(make_filebeat_entity):
    with pytest.raises(SerializationError):
        ContentPack.from_wire({**_pack_dict(make_filebeat_entity), "v": 2})


def test_unknown_constraint_type(make_filebeat_entity):
    obj = {**_pack_dict(make_filebeat_entity), "constraints": [{"type": "moon-phase"}]}
    with pytest.raises(SerializationError):
        ContentPack.from_wire(obj)


def test_parameter_default_must_match_type():
    with pytest.raises(SerializationError):
        Parameter(name="PORT", value_type=ValueType.INTEGER, default_value="5044")


@pytest.mark.parametrize(
    "overrides",
    [
        {"rev": "abc"},
        {"rev": 1.7},
        {"rev": True},
        {"rev": 0},
        {"parameters": ["x"]},
        {"parameters": {"name": "BIN"}},
        {"constraints": ["x"]},
        {"entities": "nope"},
    ],
)
def test_malformed_content_pack_fields(make_filebeat_entity, overrides):
    with pytest.raises(SerializationError):
        ContentPack.from_wire({**_pack_dict(make_filebeat_entity), **overrides})
