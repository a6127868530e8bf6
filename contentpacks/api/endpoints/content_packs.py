from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from contentpacks.core.model.content_pack import ContentPack
from contentpacks.core.model.identifiers import EntityDescriptor, ModelType
from contentpacks.core.service import ContentPackService

router = APIRouter(prefix="/api/v1/content-packs", tags=["content_packs"])


def get_service(request: Request) -> ContentPackService:
    return request.app.state.content_pack_service


class DescriptorIn(BaseModel):
    id: str = Field(min_length=1)
    type: str = Field(min_length=1)

    def to_descriptor(self) -> EntityDescriptor:
        return EntityDescriptor.create(self.id, ModelType.of(self.type))


class ResolveRequest(BaseModel):
    entities: List[DescriptorIn]


class ExportRequest(BaseModel):
    name: str = Field(min_length=1)
    summary: str = ""
    description: str = ""
    vendor: str = ""
    url: str = ""
    entities: List[DescriptorIn]


class InstallRequest(BaseModel):
    content_pack: Dict[str, Any]
    parameters: Dict[str, Any] = Field(default_factory=dict)
    username: str = "admin"


@router.get("/entities")
def list_entities(service: ContentPackService = Depends(get_service)):
    excerpts = sorted(service.list_entity_excerpts(), key=lambda e: (e.type.name, e.title, e.id.value))
    return {"entities": [e.to_dict() for e in excerpts]}


@router.post("/entities/resolve")
def resolve_entities(req: ResolveRequest, service: ContentPackService = Depends(get_service)):
    res = service.resolve_entities([d.to_descriptor() for d in req.entities])
    return {
        "graph": res.graph.to_dict(),
        "unresolved": [u.to_dict() for u in res.unresolved],
    }


@router.post("/export")
def export_content_pack(req: ExportRequest, service: ContentPackService = Depends(get_service)):
    pack = service.export(
        [d.to_descriptor() for d in req.entities],
        name=req.name,
        summary=req.summary,
        description=req.description,
        vendor=req.vendor,
        url=req.url,
    )
    return pack.to_wire()


@router.post("/install")
def install_content_pack(req: InstallRequest, service: ContentPackService = Depends(get_service)):
    pack = ContentPack.from_wire(req.content_pack)
    installation = service.install(pack, req.parameters, username=req.username)
    return installation.to_dict()
