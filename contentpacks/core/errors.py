from __future__ import annotations

from typing import Any, Dict, List, Optional


class ContentPackError(Exception):
    """Base class for every failure surfaced by facades, resolver and installer."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class NotFoundError(ContentPackError):
    def __init__(self, model_type: str, model_id: str):
        super().__init__(f"{model_type} not found: {model_id}")
        self.model_type = model_type
        self.model_id = model_id

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "type": self.model_type, "id": self.model_id}


class MissingParameterError(ContentPackError):
    def __init__(self, parameter: str, *, field: Optional[str] = None):
        where = f" for field '{field}'" if field else ""
        super().__init__(f"Missing value for parameter '{parameter}'{where}")
        self.parameter = parameter
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "parameter": self.parameter, "field": self.field}


class DuplicateKeyError(ContentPackError):
    def __init__(self, model_type: str, key: str, value: Any):
        super().__init__(f"{model_type} with {key}={value!r} already exists")
        self.model_type = model_type
        self.key = key
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "type": self.model_type, "key": self.key, "value": self.value}


class SerializationError(ContentPackError):
    def __init__(self, message: str, *, model_type: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.model_type = model_type
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "type": self.model_type, "field": self.field}


class UnsupportedModelTypeError(ContentPackError):
    def __init__(self, model_type: str):
        super().__init__(f"No entity facade registered for type '{model_type}'")
        self.model_type = model_type


class CircularDependencyError(ContentPackError):
    pass


class UnresolvedReferenceError(ContentPackError):
    def __init__(self, unresolved: List[Any]):
        names = ", ".join(f"{u.descriptor.type.name}:{u.descriptor.id}" for u in unresolved)
        super().__init__(f"Unresolved entity references: {names}")
        self.unresolved = list(unresolved)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "unresolved": [u.to_dict() for u in self.unresolved]}
