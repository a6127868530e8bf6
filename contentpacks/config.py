from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from contentpacks.core.sidecar.store import CollectorStore, InMemoryCollectorStore, JsonFileCollectorStore

_DEFAULT_STORE_PATH = "/tmp/contentpacks_collectors.json"


class Settings(BaseModel):
    env: str = "dev"
    store: Literal["memory", "file"] = "memory"
    store_path: str = _DEFAULT_STORE_PATH
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001


def load_settings() -> Settings:
    return Settings(
        env=(os.getenv("CONTENTPACKS_ENV") or "dev").strip().lower(),
        store=(os.getenv("CONTENTPACKS_STORE") or "memory").strip().lower(),
        store_path=(os.getenv("CONTENTPACKS_STORE_PATH") or _DEFAULT_STORE_PATH).strip(),
        log_level=(os.getenv("CONTENTPACKS_LOG_LEVEL") or "INFO").strip().upper(),
        host=os.getenv("CONTENTPACKS_HOST", "0.0.0.0"),
        port=int(os.getenv("CONTENTPACKS_PORT", "8001")),
    )


def build_collector_store(settings: Settings) -> CollectorStore:
    if settings.store == "file":
        return JsonFileCollectorStore(Path(settings.store_path))
    return InMemoryCollectorStore()
