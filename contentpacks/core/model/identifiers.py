from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class ModelId:
    value: str

    @classmethod
    def of(cls, value: Union[str, "ModelId"]) -> "ModelId":
        if isinstance(value, ModelId):
            return value
        if not isinstance(value, str) or not value:
            raise ValueError(f"ModelId must be a non-empty string, got {value!r}")
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ModelType:
    name: str
    version: str = "1"

    @classmethod
    def of(cls, name: str, version: str = "1") -> "ModelType":
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return self.name


class ModelTypes:
    COLLECTOR = ModelType.of("collector", "1")


@dataclass(frozen=True)
class EntityDescriptor:
    id: ModelId
    type: ModelType

    @classmethod
    def create(cls, model_id: Union[str, ModelId], model_type: ModelType) -> "EntityDescriptor":
        return cls(id=ModelId.of(model_id), type=model_type)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id.value, "type": self.type.name}

    def __str__(self) -> str:
        return f"{self.type.name}:{self.id.value}"
