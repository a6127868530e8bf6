from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from contentpacks.api.endpoints import content_packs, health
from contentpacks.api.middleware.error_shaping import SafeErrorMiddleware, content_pack_error_handler
from contentpacks.api.middleware.request_id import RequestIdMiddleware
from contentpacks.config import Settings, build_collector_store, load_settings
from contentpacks.core.errors import ContentPackError
from contentpacks.core.facades import CollectorFacade, FacadeRegistry
from contentpacks.core.service import ContentPackService


def build_service(settings: Settings) -> ContentPackService:
    registry = FacadeRegistry([CollectorFacade(build_collector_store(settings))])
    return ContentPackService(registry)


def create_app(service: Optional[ContentPackService] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Content Packs API",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.content_pack_service = service or build_service(settings)

    app.add_exception_handler(ContentPackError, content_pack_error_handler)

    # Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SafeErrorMiddleware)

    app.include_router(health.router)
    app.include_router(content_packs.router)
    return app


app = create_app()
