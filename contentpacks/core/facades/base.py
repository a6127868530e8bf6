from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Mapping, Optional, Set, TypeVar

from contentpacks.core.errors import SerializationError
from contentpacks.core.graph import EntityGraph
from contentpacks.core.model.entities import (
    Entity,
    EntityExcerpt,
    EntityWithConstraints,
    NativeEntity,
)
from contentpacks.core.model.identifiers import EntityDescriptor, ModelType

T = TypeVar("T")


class EntityFacade(ABC, Generic[T]):
    """Converts between one native object type and its portable entity.

    One implementation per model type; dispatch happens through
    ``FacadeRegistry``. Only ``create_native_entity`` and ``delete`` write.
    """

    model_type: ModelType

    @abstractmethod
    def export_native_entity(self, native: T) -> EntityWithConstraints:
        ...

    @abstractmethod
    def load_native(self, descriptor: EntityDescriptor) -> Optional[T]:
        ...

    def export_entity(self, descriptor: EntityDescriptor) -> Optional[EntityWithConstraints]:
        native = self.load_native(descriptor)
        if native is None:
            return None
        return self.export_native_entity(native)

    @abstractmethod
    def create_native_entity(
        self,
        entity: Entity,
        parameters: Mapping[str, Any],
        native_entities: Mapping[EntityDescriptor, Any],
        username: str,
    ) -> NativeEntity[T]:
        ...

    @abstractmethod
    def find_existing(self, entity: Entity, parameters: Mapping[str, Any]) -> Optional[NativeEntity[T]]:
        ...

    @abstractmethod
    def delete(self, native: T) -> None:
        ...

    @abstractmethod
    def create_excerpt(self, native: T) -> EntityExcerpt:
        ...

    @abstractmethod
    def list_entity_excerpts(self) -> Set[EntityExcerpt]:
        ...

    # dependency hooks; leaf types keep the defaults

    def native_dependencies(self, native: T) -> Iterable[EntityDescriptor]:
        return ()

    def entity_dependencies(self, entity: Entity, parameters: Mapping[str, Any]) -> Iterable[EntityDescriptor]:
        return ()

    def resolve_native_entity(self, descriptor: EntityDescriptor) -> EntityGraph[EntityDescriptor]:
        """One-level graph rooted at ``descriptor``.

        A missing native object yields the lone root node. Callers that need
        to know about the miss go through ``DependencyResolver``, which reports
        it as an unresolved reference.
        """
        graph: EntityGraph[EntityDescriptor] = EntityGraph([descriptor])
        native = self.load_native(descriptor)
        if native is None:
            return graph
        for dep in self.native_dependencies(native):
            graph.put_edge(descriptor, dep)
        return graph

    def resolve_for_installation(
        self,
        entity: Entity,
        parameters: Mapping[str, Any],
        entities: Mapping[EntityDescriptor, Entity],
    ) -> EntityGraph[Entity]:
        graph: EntityGraph[Entity] = EntityGraph([entity])
        for dep in self.entity_dependencies(entity, parameters):
            dep_entity = entities.get(dep)
            if dep_entity is not None:
                graph.put_edge(entity, dep_entity)
        return graph

    def ensure_supported(self, entity: Entity) -> None:
        if entity.type.name != self.model_type.name:
            raise SerializationError(
                f"{type(self).__name__} cannot handle entities of type '{entity.type.name}'",
                model_type=entity.type.name,
            )
        if entity.type.version != self.model_type.version:
            raise SerializationError(
                f"Unsupported entity version {entity.type.version} for type '{entity.type.name}'",
                model_type=entity.type.name,
            )
