from .collector_entity import CollectorEntity
from .constraints import Constraint, PluginVersionConstraint, ServerVersionConstraint
from .content_pack import ContentPack, Parameter, load_content_pack
from .entities import (
    Entity,
    EntityExcerpt,
    EntityV1,
    EntityWithConstraints,
    NativeEntity,
    NativeEntityDescriptor,
)
from .identifiers import EntityDescriptor, ModelId, ModelType, ModelTypes
from .references import LiteralReference, ParameterReference, ValueReference, ValueType, resolve_value

__all__ = [
    "CollectorEntity",
    "Constraint",
    "PluginVersionConstraint",
    "ServerVersionConstraint",
    "ContentPack",
    "Parameter",
    "load_content_pack",
    "Entity",
    "EntityExcerpt",
    "EntityV1",
    "EntityWithConstraints",
    "NativeEntity",
    "NativeEntityDescriptor",
    "EntityDescriptor",
    "ModelId",
    "ModelType",
    "ModelTypes",
    "LiteralReference",
    "ParameterReference",
    "ValueReference",
    "ValueType",
    "resolve_value",
]
