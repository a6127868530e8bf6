from __future__ import annotations

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Generic, Mapping, TypeVar, Union

from contentpacks.core.errors import SerializationError
from contentpacks.core.model.constraints import Constraint
from contentpacks.core.model.identifiers import EntityDescriptor, ModelId, ModelType

T = TypeVar("T")


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True, eq=True)
class EntityV1:
    """Portable, storage independent representation of a native object.

    ``type.version`` fixes the shape of ``data``; it is written as ``v`` on the
    wire. ``data`` is deep-copied and frozen on construction: nested mappings
    become read-only proxies and lists become tuples. ``to_wire`` thaws it.
    """

    id: ModelId
    type: ModelType
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _freeze(copy.deepcopy(_thaw(self.data))))

    def __hash__(self) -> int:
        return hash((self.id, self.type))

    @classmethod
    def create(cls, model_id: Union[str, ModelId], model_type: ModelType, data: Mapping[str, Any]) -> "EntityV1":
        return cls(id=ModelId.of(model_id), type=model_type, data=dict(data))

    @property
    def version(self) -> str:
        return self.type.version

    def descriptor(self) -> EntityDescriptor:
        return EntityDescriptor(id=self.id, type=self.type)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "type": self.type.name,
            "v": int(self.type.version),
            "data": _thaw(self.data),
        }

    @classmethod
    def from_wire(cls, obj: Any) -> "EntityV1":
        if not isinstance(obj, Mapping):
            raise SerializationError(f"Entity must be an object, got {type(obj).__name__}")

        missing = [k for k in ("id", "type", "v", "data") if k not in obj]
        if missing:
            raise SerializationError(f"Entity is missing fields: {', '.join(missing)}")

        v = obj["v"]
        if isinstance(v, bool) or not isinstance(v, int):
            raise SerializationError(f"Entity version must be an integer, got {v!r}", model_type=str(obj["type"]))
        if not isinstance(obj["type"], str) or not obj["type"]:
            raise SerializationError(f"Entity type must be a non-empty string, got {obj['type']!r}")
        if not isinstance(obj["data"], Mapping):
            raise SerializationError("Entity data must be an object", model_type=obj["type"])

        try:
            model_id = ModelId.of(obj["id"])
        except ValueError as e:
            raise SerializationError(str(e), model_type=obj["type"])

        return cls(id=model_id, type=ModelType.of(obj["type"], str(v)), data=dict(obj["data"]))


# The only entity format so far.
Entity = EntityV1


@dataclass(frozen=True)
class EntityExcerpt:
    id: ModelId
    type: ModelType
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id.value, "type": self.type.name, "title": self.title}


@dataclass(frozen=True)
class EntityWithConstraints:
    entity: EntityV1
    constraints: FrozenSet[Constraint] = frozenset()


@dataclass(frozen=True)
class NativeEntityDescriptor:
    content_pack_entity_id: ModelId
    id: ModelId
    type: ModelType

    @classmethod
    def create(
        cls,
        content_pack_entity_id: Union[str, ModelId],
        native_id: Union[str, ModelId],
        model_type: ModelType,
    ) -> "NativeEntityDescriptor":
        return cls(
            content_pack_entity_id=ModelId.of(content_pack_entity_id),
            id=ModelId.of(native_id),
            type=model_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_pack_entity_id": self.content_pack_entity_id.value,
            "id": self.id.value,
            "type": self.type.name,
        }


@dataclass(frozen=True)
class NativeEntity(Generic[T]):
    descriptor: NativeEntityDescriptor
    entity: T
