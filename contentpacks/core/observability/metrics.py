from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (in-process, used by tests and the status endpoint)
_NAMED = Counter()

_PROM_EXPORTED = PromCounter(
    "contentpacks_entities_exported_total",
    "Entities exported into portable form",
    ["type"],
)

_PROM_INSTALLED = PromCounter(
    "contentpacks_entities_installed_total",
    "Entities installed from content packs",
    ["type", "outcome"],
)

_PROM_DELETED = PromCounter(
    "contentpacks_entities_deleted_total",
    "Native entities deleted through a facade",
    ["type"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the named counters to avoid cross-test leakage.
    Prometheus counters are monotonic and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_exported(model_type: str) -> None:
    _NAMED[f"exported_{model_type}"] += 1
    _PROM_EXPORTED.labels(type=model_type).inc()


def inc_installed(model_type: str, outcome: str) -> None:
    """outcome: "created" | "reused" """
    _NAMED[f"installed_{model_type}|{outcome}"] += 1
    _PROM_INSTALLED.labels(type=model_type, outcome=outcome).inc()


def inc_deleted(model_type: str) -> None:
    _NAMED[f"deleted_{model_type}"] += 1
    _PROM_DELETED.labels(type=model_type).inc()


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
