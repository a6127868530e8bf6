from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional
from uuid import uuid4

import yaml

from contentpacks.core.errors import MissingParameterError, SerializationError
from contentpacks.core.model.constraints import Constraint, constraint_from_dict
from contentpacks.core.model.entities import EntityV1
from contentpacks.core.model.references import LiteralReference, ValueReference, ValueType

CONTENT_PACK_VERSION = 1


@dataclass(frozen=True)
class Parameter:
    name: str
    title: str = ""
    description: str = ""
    value_type: ValueType = ValueType.STRING
    default_value: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.value_type is ValueType.PARAMETER:
            raise SerializationError(f"Parameter '{self.name}' cannot have type 'parameter'")
        if self.default_value is not None and not self.value_type.accepts(self.default_value):
            raise SerializationError(
                f"Default for parameter '{self.name}' does not match type '{self.value_type.value}'"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "type": self.value_type.value,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> "Parameter":
        if not isinstance(obj, Mapping):
            raise SerializationError(f"Parameter must be an object, got {type(obj).__name__}")
        if not obj.get("name"):
            raise SerializationError("Parameter needs a name")
        try:
            value_type = ValueType(obj.get("type", ValueType.STRING.value))
        except ValueError:
            raise SerializationError(f"Unknown parameter type: {obj.get('type')!r}")
        return cls(
            name=str(obj["name"]),
            title=str(obj.get("title") or ""),
            description=str(obj.get("description") or ""),
            value_type=value_type,
            default_value=obj.get("default_value"),
        )


@dataclass(frozen=True)
class ContentPack:
    """A bundle of portable entities, their parameters and constraints."""

    name: str
    id: str = field(default_factory=lambda: str(uuid4()))
    rev: int = 1
    summary: str = ""
    description: str = ""
    vendor: str = ""
    url: str = ""
    parameters: List[Parameter] = field(default_factory=list)
    entities: List[EntityV1] = field(default_factory=list)
    constraints: FrozenSet[Constraint] = frozenset()

    def __post_init__(self) -> None:
        seen = set()
        for e in self.entities:
            desc = e.descriptor()
            if desc in seen:
                raise SerializationError(f"Duplicate entity in content pack: {desc}", model_type=desc.type.name)
            seen.add(desc)

    def bind_parameters(self, provided: Optional[Mapping[str, Any]] = None) -> Dict[str, LiteralReference]:
        """Defaults merged with caller values; unknown names are ignored."""
        provided = provided or {}
        out: Dict[str, LiteralReference] = {}
        for p in self.parameters:
            if p.name in provided and provided[p.name] is not None:
                raw = provided[p.name]
                value = raw.value if isinstance(raw, LiteralReference) else raw
                if p.value_type is ValueType.DOUBLE and isinstance(value, int) and not isinstance(value, bool):
                    value = float(value)
                if not p.value_type.accepts(value):
                    raise SerializationError(
                        f"Value {value!r} for parameter '{p.name}' does not match type '{p.value_type.value}'"
                    )
                out[p.name] = LiteralReference(value_type=p.value_type, value=value)
            elif p.default_value is not None:
                out[p.name] = ValueReference.of(p.default_value)
            else:
                raise MissingParameterError(p.name)
        return out

    def to_wire(self) -> Dict[str, Any]:
        return {
            "v": CONTENT_PACK_VERSION,
            "id": self.id,
            "rev": self.rev,
            "name": self.name,
            "summary": self.summary,
            "description": self.description,
            "vendor": self.vendor,
            "url": self.url,
            "parameters": [p.to_dict() for p in self.parameters],
            "entities": [e.to_wire() for e in self.entities],
            "constraints": sorted((c.to_dict() for c in self.constraints), key=lambda d: json.dumps(d, sort_keys=True)),
        }

    @classmethod
    def from_wire(cls, obj: Any) -> "ContentPack":
        if not isinstance(obj, Mapping):
            raise SerializationError("Content pack must be an object")
        v = obj.get("v", CONTENT_PACK_VERSION)
        if v != CONTENT_PACK_VERSION:
            raise SerializationError(f"Unsupported content pack version: {v!r}")
        if not obj.get("name"):
            raise SerializationError("Content pack needs a name")

        kwargs: Dict[str, Any] = {
            "name": str(obj["name"]),
            "rev": _rev(obj.get("rev", 1)),
            "summary": str(obj.get("summary") or ""),
            "description": str(obj.get("description") or ""),
            "vendor": str(obj.get("vendor") or ""),
            "url": str(obj.get("url") or ""),
            "parameters": [Parameter.from_dict(p) for p in _list(obj, "parameters")],
            "entities": [EntityV1.from_wire(e) for e in _list(obj, "entities")],
            "constraints": frozenset(constraint_from_dict(c) for c in _list(obj, "constraints")),
        }
        if obj.get("id"):
            kwargs["id"] = str(obj["id"])
        return cls(**kwargs)


def _rev(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SerializationError(f"Content pack revision must be a positive integer, got {value!r}")
    return value


def _list(obj: Mapping[str, Any], key: str) -> list:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SerializationError(f"Content pack '{key}' must be a list, got {type(value).__name__}")
    return value

def load_content_pack(path: Path) -> ContentPack:
    """Read a content pack from a ``.json`` or ``.yaml``/``.yml`` file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        obj = yaml.safe_load(text)
    else:
        obj = json.loads(text)
    return ContentPack.from_wire(obj)
