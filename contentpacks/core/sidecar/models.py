from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

ServiceType = Literal["exec", "svc"]
OperatingSystem = Literal["linux", "windows", "darwin", "freebsd"]

_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


class Collector(BaseModel):
    """A log collector definition as stored for the sidecar.

    ``name`` is the natural key; ``id`` is assigned by the store on save.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = None
    name: str
    service_type: ServiceType
    node_operating_system: OperatingSystem
    executable_path: str
    configuration_path: str
    execute_parameters: str = ""
    validation_command: str = ""
    default_template: str = ""

    @field_validator("name")
    @classmethod
    def _valid_name(cls, v: str) -> str:
        if not _NAME_RE.match(v or ""):
            raise ValueError("name may only contain letters, digits, '_', '.' and '-'")
        return v

    @field_validator("executable_path", "configuration_path")
    @classmethod
    def _non_empty_path(cls, v: str) -> str:
        if not (v or "").strip():
            raise ValueError("path must not be empty")
        return v

    def with_id(self, collector_id: str) -> "Collector":
        return self.model_copy(update={"id": collector_id})


class CollectorProvenance(BaseModel):
    created_by: Optional[str] = None
    created_at: Optional[str] = None
