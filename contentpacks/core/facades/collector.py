from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Set

from pydantic import ValidationError

from contentpacks.core.errors import SerializationError
from contentpacks.core.facades.base import EntityFacade
from contentpacks.core.model.collector_entity import CollectorEntity
from contentpacks.core.model.entities import (
    Entity,
    EntityExcerpt,
    EntityV1,
    EntityWithConstraints,
    NativeEntity,
    NativeEntityDescriptor,
)
from contentpacks.core.model.identifiers import EntityDescriptor, ModelId, ModelTypes
from contentpacks.core.model.mapping import decode_payload, encode_payload
from contentpacks.core.model.references import ValueReference
from contentpacks.core.observability.metrics import inc_deleted, inc_exported
from contentpacks.core.sidecar.models import Collector
from contentpacks.core.sidecar.store import CollectorStore

log = logging.getLogger("contentpacks.facades")


class CollectorFacade(EntityFacade[Collector]):
    model_type = ModelTypes.COLLECTOR

    def __init__(self, store: CollectorStore):
        self.store = store

    def export_native_entity(self, collector: Collector) -> EntityWithConstraints:
        if not collector.id:
            raise SerializationError("Cannot export a collector without an id", model_type=self.model_type.name)

        payload = CollectorEntity.create(
            ValueReference.of(collector.name),
            ValueReference.of(collector.service_type),
            ValueReference.of(collector.node_operating_system),
            ValueReference.of(collector.executable_path),
            ValueReference.of(collector.configuration_path),
            ValueReference.of(collector.execute_parameters),
            ValueReference.of(collector.validation_command),
            ValueReference.of(collector.default_template),
        )
        entity = EntityV1.create(collector.id, self.model_type, encode_payload(payload))

        inc_exported(self.model_type.name)
        log.debug("exported collector id=%s name=%s", collector.id, collector.name)
        return EntityWithConstraints(entity=entity)

    def load_native(self, descriptor: EntityDescriptor) -> Optional[Collector]:
        return self.store.find(descriptor.id.value)

    def _decode(self, entity: Entity) -> CollectorEntity:
        self.ensure_supported(entity)
        return decode_payload(entity.type, entity.data)  # type: ignore[return-value]

    def create_native_entity(
        self,
        entity: Entity,
        parameters: Mapping[str, Any],
        native_entities: Mapping[EntityDescriptor, Any],
        username: str,
    ) -> NativeEntity[Collector]:
        payload = self._decode(entity)

        fields: Dict[str, Any] = {
            name: getattr(payload, name).resolve(parameters, field=name)
            for name in type(payload).model_fields
        }
        try:
            candidate = Collector(**fields)
        except ValidationError as e:
            first = e.errors()[0]
            raise SerializationError(
                f"Invalid collector: {first.get('msg')}",
                model_type=self.model_type.name,
                field=".".join(str(x) for x in first.get("loc", ())) or None,
            )

        saved = self.store.save(candidate, actor=username)
        log.info(
            "created collector id=%s name=%s from entity=%s by=%s",
            saved.id,
            saved.name,
            entity.id.value,
            username,
        )
        return NativeEntity(
            descriptor=NativeEntityDescriptor.create(entity.id, saved.id, self.model_type),
            entity=saved,
        )

    def find_existing(self, entity: Entity, parameters: Mapping[str, Any]) -> Optional[NativeEntity[Collector]]:
        payload = self._decode(entity)
        name = payload.name.resolve(parameters, field="name")

        existing = self.store.find_by_name(name)
        if existing is None:
            return None
        return NativeEntity(
            descriptor=NativeEntityDescriptor.create(entity.id, existing.id, self.model_type),
            entity=existing,
        )

    def delete(self, collector: Collector) -> None:
        removed = self.store.delete(collector)
        if removed:
            inc_deleted(self.model_type.name)
        log.info("deleted collector id=%s name=%s removed=%s", collector.id, collector.name, removed)

    def create_excerpt(self, collector: Collector) -> EntityExcerpt:
        return EntityExcerpt(id=ModelId.of(collector.id), type=self.model_type, title=collector.name)

    def list_entity_excerpts(self) -> Set[EntityExcerpt]:
        return {self.create_excerpt(c) for c in self.store.all()}
