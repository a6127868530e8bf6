"""Object mapping between typed entity payloads and the opaque ``data`` dict.

Payload classes are pydantic models whose fields are all value references.
They are registered per model type and version; facades only ever go through
``encode_payload`` / ``decode_payload``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from contentpacks.core.errors import SerializationError
from contentpacks.core.model.identifiers import ModelType
from contentpacks.core.model.references import ValueReference

P = TypeVar("P", bound="EntityPayload")

_PAYLOADS: Dict[Tuple[str, str], Type["EntityPayload"]] = {}


class EntityPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    @field_validator("*", mode="before")
    @classmethod
    def _as_reference(cls, v: Any, info) -> ValueReference:
        if isinstance(v, ValueReference):
            return v
        return ValueReference.from_wire(v, field=info.field_name)

    def to_data(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_wire() for name in type(self).model_fields}


def register_payload(model_type: ModelType) -> Callable[[Type[P]], Type[P]]:
    def deco(cls: Type[P]) -> Type[P]:
        key = (model_type.name, model_type.version)
        if key in _PAYLOADS:
            raise ValueError(f"Duplicate payload registration: {model_type.name} v{model_type.version}")
        _PAYLOADS[key] = cls
        return cls

    return deco


def supported_versions(model_type_name: str) -> list[str]:
    return sorted(v for (name, v) in _PAYLOADS if name == model_type_name)


def payload_class(model_type: ModelType) -> Type[EntityPayload]:
    cls = _PAYLOADS.get((model_type.name, model_type.version))
    if cls is None:
        raise SerializationError(
            f"Unsupported entity version {model_type.version} for type '{model_type.name}'",
            model_type=model_type.name,
        )
    return cls


def decode_payload(model_type: ModelType, data: Mapping[str, Any]) -> EntityPayload:
    cls = payload_class(model_type)
    try:
        return cls.model_validate(dict(data))
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(x) for x in first.get("loc", ()))
        raise SerializationError(
            f"Invalid '{model_type.name}' payload: {first.get('msg', str(e))}",
            model_type=model_type.name,
            field=loc or None,
        )


def encode_payload(payload: EntityPayload) -> Dict[str, Any]:
    return payload.to_data()
