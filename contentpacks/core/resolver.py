"""Dependency resolution across facades.

Both passes are breadth-first and read-only. A descriptor is expanded at most
once, so cycles terminate; whether a cyclic graph is acceptable is decided by
whoever asks for a topological order. Anything that cannot be expanded ends up
in ``ResolutionResult.unresolved`` instead of silently shrinking the graph.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from contentpacks.core.errors import UnresolvedReferenceError
from contentpacks.core.facades.registry import FacadeRegistry
from contentpacks.core.graph import EntityGraph
from contentpacks.core.model.entities import Entity
from contentpacks.core.model.identifiers import EntityDescriptor

log = logging.getLogger("contentpacks.resolver")

N = TypeVar("N")

REASON_UNSUPPORTED_TYPE = "unsupported_type"
REASON_NOT_FOUND = "not_found"
REASON_NOT_IN_CONTENT_PACK = "not_in_content_pack"


@dataclass(frozen=True)
class UnresolvedReference:
    descriptor: EntityDescriptor
    reason: str
    referenced_by: Optional[EntityDescriptor] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.descriptor.to_dict(),
            "reason": self.reason,
            "referenced_by": self.referenced_by.to_dict() if self.referenced_by else None,
        }


@dataclass
class ResolutionResult(Generic[N]):
    graph: EntityGraph
    unresolved: List[UnresolvedReference] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def raise_for_unresolved(self) -> "ResolutionResult[N]":
        if self.unresolved:
            raise UnresolvedReferenceError(self.unresolved)
        return self


class DependencyResolver:
    def __init__(self, registry: FacadeRegistry):
        self.registry = registry

    def resolve_native_entities(self, descriptors: Iterable[EntityDescriptor]) -> ResolutionResult[EntityDescriptor]:
        graph: EntityGraph[EntityDescriptor] = EntityGraph()
        unresolved: List[UnresolvedReference] = []
        visited = set()
        queue: Deque[Tuple[EntityDescriptor, Optional[EntityDescriptor]]] = deque((d, None) for d in descriptors)

        while queue:
            desc, parent = queue.popleft()
            if desc in visited:
                if parent is not None and desc in graph:
                    graph.put_edge(parent, desc)
                continue
            visited.add(desc)

            facade = self.registry.get(desc.type)
            if facade is None:
                unresolved.append(UnresolvedReference(desc, REASON_UNSUPPORTED_TYPE, parent))
                continue
            if facade.load_native(desc) is None:
                unresolved.append(UnresolvedReference(desc, REASON_NOT_FOUND, parent))
                continue

            sub = facade.resolve_native_entity(desc)
            graph.add_node(desc)
            if parent is not None:
                graph.put_edge(parent, desc)
            for dep in sub.dependencies_of(desc):
                queue.append((dep, desc))

        log.debug("resolved native graph nodes=%s unresolved=%s", len(graph), len(unresolved))
        return ResolutionResult(graph=graph, unresolved=unresolved)

    def resolve_for_installation(
        self,
        entities: Iterable[Entity],
        parameters: Mapping[str, Any],
        roots: Optional[Iterable[Entity]] = None,
    ) -> ResolutionResult[Entity]:
        index: Dict[EntityDescriptor, Entity] = {}
        for e in entities:
            index[e.descriptor()] = e

        graph: EntityGraph[Entity] = EntityGraph()
        unresolved: List[UnresolvedReference] = []
        visited = set()
        start = list(roots) if roots is not None else list(index.values())
        queue: Deque[Entity] = deque(start)

        while queue:
            entity = queue.popleft()
            desc = entity.descriptor()
            if desc in visited:
                continue
            visited.add(desc)

            facade = self.registry.get(entity.type)
            if facade is None:
                unresolved.append(UnresolvedReference(desc, REASON_UNSUPPORTED_TYPE))
                continue

            graph.merge(facade.resolve_for_installation(entity, parameters, index))
            for dep in facade.entity_dependencies(entity, parameters):
                dep_entity = index.get(dep)
                if dep_entity is None:
                    unresolved.append(UnresolvedReference(dep, REASON_NOT_IN_CONTENT_PACK, desc))
                    continue
                queue.append(dep_entity)

        log.debug("resolved install graph nodes=%s unresolved=%s", len(graph), len(unresolved))
        return ResolutionResult(graph=graph, unresolved=unresolved)
