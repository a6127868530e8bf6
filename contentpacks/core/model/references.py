"""Value references: literal values or deferred parameter lookups.

A field of a portable entity is never a bare scalar. It is either a
``LiteralReference`` carrying a typed value, or a ``ParameterReference``
naming a content pack parameter that is bound at install time.

Wire form::

    {"@type": "string", "@value": "filebeat"}
    {"@type": "parameter", "@value": "COLLECTOR_PATH"}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from contentpacks.core.errors import MissingParameterError, SerializationError


class ValueType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    PARAMETER = "parameter"

    @classmethod
    def for_value(cls, value: Any) -> "ValueType":
        # bool is a subclass of int, check it first
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, float):
            return cls.DOUBLE
        if isinstance(value, str):
            return cls.STRING
        raise SerializationError(f"Unsupported literal value type: {type(value).__name__}")

    def accepts(self, value: Any) -> bool:
        if self is ValueType.PARAMETER:
            return False
        try:
            return ValueType.for_value(value) is self
        except SerializationError:
            return False


class ValueReference:
    """Common base of the two reference variants."""

    @staticmethod
    def of(value: Any) -> "LiteralReference":
        if isinstance(value, ValueReference):
            raise SerializationError("Cannot wrap a ValueReference in another ValueReference")
        if value is None:
            raise SerializationError("Cannot wrap None as a value reference")
        return LiteralReference(value_type=ValueType.for_value(value), value=value)

    @staticmethod
    def parameter(name: str) -> "ParameterReference":
        return ParameterReference(name=name)

    @staticmethod
    def from_wire(obj: Any, *, field: Optional[str] = None) -> "ValueReference":
        if not isinstance(obj, Mapping) or "@type" not in obj or "@value" not in obj:
            raise SerializationError(f"Malformed value reference: {obj!r}", field=field)

        raw_type = obj["@type"]
        raw_value = obj["@value"]
        try:
            value_type = ValueType(raw_type)
        except ValueError:
            raise SerializationError(f"Unknown value reference type: {raw_type!r}", field=field)

        if value_type is ValueType.PARAMETER:
            if not isinstance(raw_value, str) or not raw_value:
                raise SerializationError("Parameter reference needs a non-empty name", field=field)
            return ParameterReference(name=raw_value)

        # JSON has no int/float split for whole numbers in some producers
        if value_type is ValueType.DOUBLE and isinstance(raw_value, int) and not isinstance(raw_value, bool):
            raw_value = float(raw_value)
        if not value_type.accepts(raw_value):
            raise SerializationError(
                f"Value {raw_value!r} does not match declared type '{value_type.value}'",
                field=field,
            )
        return LiteralReference(value_type=value_type, value=raw_value)

    def to_wire(self) -> Dict[str, Any]:
        raise NotImplementedError

    def resolve(self, parameters: Optional[Mapping[str, Any]] = None, *, field: Optional[str] = None) -> Any:
        return resolve_value(self, parameters, field=field)


@dataclass(frozen=True)
class LiteralReference(ValueReference):
    value_type: ValueType
    value: Any

    def to_wire(self) -> Dict[str, Any]:
        return {"@type": self.value_type.value, "@value": self.value}


@dataclass(frozen=True)
class ParameterReference(ValueReference):
    name: str

    def to_wire(self) -> Dict[str, Any]:
        return {"@type": ValueType.PARAMETER.value, "@value": self.name}


def resolve_value(
    ref: ValueReference,
    parameters: Optional[Mapping[str, Any]] = None,
    *,
    field: Optional[str] = None,
) -> Any:
    """Resolve a reference against parameter bindings.

    Bindings may hold plain values or literal references. A parameter bound to
    another parameter reference is not followed.
    """
    if isinstance(ref, LiteralReference):
        return ref.value
    if isinstance(ref, ParameterReference):
        bindings = parameters or {}
        if ref.name not in bindings:
            raise MissingParameterError(ref.name, field=field)
        bound = bindings[ref.name]
        if isinstance(bound, LiteralReference):
            return bound.value
        if isinstance(bound, ValueReference) or bound is None:
            raise MissingParameterError(ref.name, field=field)
        return bound
    raise SerializationError(f"Not a value reference: {ref!r}", field=field)
