"""FastAPI application factory for the splice service."""

from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router as api_router
from .config import Settings, get_settings, settings_dependency
from .errors import SpliceError, splice_error_handler
from .logging import configure_logging
from .media import MediaProbe, SegmentExtractor
from .monitoring import ensure_metrics_server
from .orchestrator import SpliceOrchestrator
from .render_client import RenderClient
from .storage import ObjectStore


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    explicit_settings = settings is not None
    settings = settings or get_settings()
    configure_logging(settings.logging)

    metrics_disabled = os.getenv("SPLICE_DISABLE_METRICS", "false").lower() in {"1", "true", "yes"}
    if not metrics_disabled:
        ensure_metrics_server(settings.monitoring.prometheus_port)

    app = FastAPI(
        title="Video Splice Service",
        version=settings.api_version,
        docs_url=f"{settings.base_url}/docs",
        redoc_url=f"{settings.base_url}/redoc",
        openapi_url=f"{settings.base_url}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    store = ObjectStore(settings.storage)
    render_client = RenderClient(settings.renderer)
    app.state.object_store = store
    app.state.render_client = render_client
    app.state.orchestrator = SpliceOrchestrator(
        probe=MediaProbe(settings.processing),
        extractor=SegmentExtractor(settings.processing),
        store=store,
        render_client=render_client,
        settings=settings.processing,
    )

    app.add_exception_handler(SpliceError, splice_error_handler)
    app.include_router(api_router, prefix=settings.base_url)
    if explicit_settings:
        app.dependency_overrides[settings_dependency] = lambda: settings

    @app.get("/healthz")
    async def root_health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
