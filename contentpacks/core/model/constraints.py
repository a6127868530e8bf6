from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping

from contentpacks.core.errors import SerializationError


@dataclass(frozen=True)
class Constraint:
    """Opaque precondition attached to an export. Collected, never evaluated here."""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ServerVersionConstraint(Constraint):
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "server-version", "version": self.version}


@dataclass(frozen=True)
class PluginVersionConstraint(Constraint):
    plugin: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "plugin-version", "plugin": self.plugin, "version": self.version}


def constraint_from_dict(obj: Any) -> Constraint:
    if not isinstance(obj, Mapping):
        raise SerializationError(f"Constraint must be an object, got {type(obj).__name__}")
    kind = obj.get("type")
    try:
        if kind == "server-version":
            return ServerVersionConstraint(version=str(obj["version"]))
        if kind == "plugin-version":
            return PluginVersionConstraint(plugin=str(obj["plugin"]), version=str(obj["version"]))
    except KeyError as e:
        raise SerializationError(f"Constraint '{kind}' is missing field {e}")
    raise SerializationError(f"Unknown constraint type: {kind!r}")


def merge_constraints(*groups: Iterable[Constraint]) -> FrozenSet[Constraint]:
    out: set = set()
    for g in groups:
        out.update(g)
    return frozenset(out)
