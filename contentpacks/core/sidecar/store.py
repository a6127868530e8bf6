from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from contentpacks.core.errors import DuplicateKeyError
from contentpacks.core.sidecar.models import Collector, CollectorProvenance

log = logging.getLogger("contentpacks.store")

_Doc = Tuple[Collector, CollectorProvenance]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_object_id() -> str:
    return uuid4().hex[:24]


class CollectorStore(ABC):
    """Storage contract the collector facade depends on."""

    @abstractmethod
    def find(self, collector_id: str) -> Optional[Collector]:
        ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Collector]:
        ...

    @abstractmethod
    def all(self) -> List[Collector]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def save(self, collector: Collector, *, actor: Optional[str] = None) -> Collector:
        """Insert or replace by id. Raises DuplicateKeyError when another
        collector already uses the same name."""

    @abstractmethod
    def delete(self, collector: Collector) -> int:
        """Remove by id; returns the number of removed documents."""

    @abstractmethod
    def provenance(self, collector_id: str) -> Optional[CollectorProvenance]:
        ...


class InMemoryCollectorStore(CollectorStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: Dict[str, _Doc] = {}

    # storage hooks; the JSON file store overrides these
    def _read(self) -> Dict[str, _Doc]:
        return dict(self._docs)

    def _write(self, docs: Dict[str, _Doc]) -> None:
        self._docs = docs

    def find(self, collector_id: str) -> Optional[Collector]:
        with self._lock:
            doc = self._read().get(collector_id)
        return doc[0] if doc else None

    def find_by_name(self, name: str) -> Optional[Collector]:
        with self._lock:
            for collector, _ in self._read().values():
                if collector.name == name:
                    return collector
        return None

    def all(self) -> List[Collector]:
        with self._lock:
            return [c for c, _ in self._read().values()]

    def count(self) -> int:
        with self._lock:
            return len(self._read())

    def save(self, collector: Collector, *, actor: Optional[str] = None) -> Collector:
        with self._lock:
            docs = self._read()
            for other, _ in docs.values():
                if other.name == collector.name and other.id != collector.id:
                    raise DuplicateKeyError("collector", "name", collector.name)

            saved = collector if collector.id else collector.with_id(new_object_id())
            previous = docs.get(saved.id)
            meta = previous[1] if previous else CollectorProvenance(created_by=actor, created_at=_utc_now_iso())
            docs[saved.id] = (saved, meta)
            self._write(docs)

        log.debug("collector saved id=%s name=%s actor=%s", saved.id, saved.name, actor)
        return saved

    def delete(self, collector: Collector) -> int:
        with self._lock:
            docs = self._read()
            if collector.id not in docs:
                return 0
            del docs[collector.id]
            self._write(docs)

        log.debug("collector deleted id=%s name=%s", collector.id, collector.name)
        return 1

    def provenance(self, collector_id: str) -> Optional[CollectorProvenance]:
        with self._lock:
            doc = self._read().get(collector_id)
        return doc[1] if doc else None


class JsonFileCollectorStore(InMemoryCollectorStore):
    """File-backed store.

    Path layout: a single JSON document ``{"collectors": [...]}``; each entry
    carries the collector fields plus a ``_meta`` provenance object.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def _read(self) -> Dict[str, _Doc]:
        if not self.path.exists():
            return {}
        obj = json.loads(self.path.read_text(encoding="utf-8"))
        docs: Dict[str, _Doc] = {}
        for raw in obj.get("collectors", []):
            raw = dict(raw)
            meta = CollectorProvenance(**(raw.pop("_meta", None) or {}))
            c = Collector(**raw)
            docs[c.id] = (c, meta)
        return docs

    def _write(self, docs: Dict[str, _Doc]) -> None:
        rows = []
        for c, meta in docs.values():
            rows.append({**c.model_dump(), "_meta": meta.model_dump()})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"collectors": rows}, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)
