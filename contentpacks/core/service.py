from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from contentpacks.core.errors import DuplicateKeyError, NotFoundError
from contentpacks.core.facades.registry import FacadeRegistry
from contentpacks.core.model.constraints import merge_constraints
from contentpacks.core.model.content_pack import ContentPack
from contentpacks.core.model.entities import Entity, EntityExcerpt, NativeEntity, NativeEntityDescriptor
from contentpacks.core.model.identifiers import EntityDescriptor
from contentpacks.core.observability.metrics import inc_installed
from contentpacks.core.resolver import DependencyResolver, ResolutionResult

log = logging.getLogger("contentpacks.install")

OUTCOME_CREATED = "created"
OUTCOME_REUSED = "reused"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class InstalledEntity:
    descriptor: NativeEntityDescriptor
    outcome: str  # "created" | "reused"

    def to_dict(self) -> Dict[str, Any]:
        return {**self.descriptor.to_dict(), "outcome": self.outcome}


@dataclass
class ContentPackInstallation:
    content_pack_id: str
    content_pack_rev: int
    created_by: str
    created_at: str
    entities: List[InstalledEntity] = field(default_factory=list)

    def created(self) -> List[NativeEntityDescriptor]:
        return [e.descriptor for e in self.entities if e.outcome == OUTCOME_CREATED]

    def reused(self) -> List[NativeEntityDescriptor]:
        return [e.descriptor for e in self.entities if e.outcome == OUTCOME_REUSED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_pack_id": self.content_pack_id,
            "content_pack_rev": self.content_pack_rev,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "entities": [e.to_dict() for e in self.entities],
        }


class ContentPackService:
    """Export and install content packs through the registered facades."""

    def __init__(self, registry: FacadeRegistry, resolver: Optional[DependencyResolver] = None):
        self.registry = registry
        self.resolver = resolver or DependencyResolver(registry)

    def list_entity_excerpts(self) -> Set[EntityExcerpt]:
        out: Set[EntityExcerpt] = set()
        for facade in self.registry.facades():
            out |= facade.list_entity_excerpts()
        return out

    def resolve_entities(self, descriptors: Iterable[EntityDescriptor]) -> ResolutionResult[EntityDescriptor]:
        return self.resolver.resolve_native_entities(descriptors)

    def export(
        self,
        descriptors: Iterable[EntityDescriptor],
        *,
        name: str,
        summary: str = "",
        description: str = "",
        vendor: str = "",
        url: str = "",
    ) -> ContentPack:
        resolution = self.resolver.resolve_native_entities(descriptors).raise_for_unresolved()

        entities: List[Entity] = []
        constraints = []
        for desc in resolution.graph.topological_order():
            facade = self.registry.require(desc.type)
            exported = facade.export_entity(desc)
            if exported is None:
                # removed between resolution and export
                raise NotFoundError(desc.type.name, desc.id.value)
            entities.append(exported.entity)
            constraints.append(exported.constraints)

        log.info("exported content pack name=%s entities=%s", name, len(entities))
        return ContentPack(
            name=name,
            summary=summary,
            description=description,
            vendor=vendor,
            url=url,
            entities=entities,
            constraints=merge_constraints(*constraints),
        )

    def install(
        self,
        content_pack: ContentPack,
        parameters: Optional[Mapping[str, Any]] = None,
        *,
        username: str,
    ) -> ContentPackInstallation:
        bindings = content_pack.bind_parameters(parameters)
        resolution = self.resolver.resolve_for_installation(content_pack.entities, bindings).raise_for_unresolved()
        order = resolution.graph.topological_order()

        installation = ContentPackInstallation(
            content_pack_id=content_pack.id,
            content_pack_rev=content_pack.rev,
            created_by=username,
            created_at=_utc_now_iso(),
        )
        native_entities: Dict[EntityDescriptor, Any] = {}

        try:
            for entity in order:
                native, outcome = self._install_entity(entity, bindings, native_entities, username)
                native_entities[entity.descriptor()] = native.entity
                installation.entities.append(InstalledEntity(descriptor=native.descriptor, outcome=outcome))
                inc_installed(entity.type.name, outcome)
        except Exception:
            log.warning(
                "install of content pack id=%s failed after %s entities, rolling back",
                content_pack.id,
                len(installation.entities),
            )
            self.uninstall(installation)
            raise

        log.info(
            "installed content pack id=%s rev=%s created=%s reused=%s by=%s",
            content_pack.id,
            content_pack.rev,
            len(installation.created()),
            len(installation.reused()),
            username,
        )
        return installation

    def _install_entity(
        self,
        entity: Entity,
        bindings: Mapping[str, Any],
        native_entities: Mapping[EntityDescriptor, Any],
        username: str,
    ) -> tuple[NativeEntity, str]:
        facade = self.registry.require(entity.type)

        existing = facade.find_existing(entity, bindings)
        if existing is not None:
            log.debug("reusing %s for entity=%s", existing.descriptor.id.value, entity.id.value)
            return existing, OUTCOME_REUSED

        try:
            return facade.create_native_entity(entity, bindings, native_entities, username), OUTCOME_CREATED
        except DuplicateKeyError:
            # a concurrent install won the race for the natural key
            existing = facade.find_existing(entity, bindings)
            if existing is None:
                raise
            log.info("entity=%s created concurrently, reusing %s", entity.id.value, existing.descriptor.id.value)
            return existing, OUTCOME_REUSED

    def uninstall(self, installation: ContentPackInstallation) -> List[NativeEntityDescriptor]:
        """Delete what this installation created, dependents first. Reused
        objects are left alone."""
        removed: List[NativeEntityDescriptor] = []
        for d in reversed(installation.created()):
            facade = self.registry.require(d.type)
            native = facade.load_native(EntityDescriptor(id=d.id, type=d.type))
            if native is None:
                log.warning("uninstall: %s %s already gone", d.type.name, d.id.value)
                continue
            facade.delete(native)
            removed.append(d)

        log.info("uninstalled content pack id=%s removed=%s", installation.content_pack_id, len(removed))
        return removed
