"""HTTP surface for the package search index.

Architecture:
    Starlette App
    ├── /health               -> readiness of the published snapshot
    ├── /api/search           -> ranked query (wire JSON)
    ├── /api/refresh          -> trigger a rebuild (POST)
    ├── /api/refresh/status   -> scheduler and index stats
    └── /metrics              -> Prometheus exposition

The controller is created once in ``main`` and passed in explicitly; nothing
is looked up from module globals.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from package_search.config import Settings
from package_search.exceptions import IndexNotReadyError
from package_search.observability import (
    TraceContextMiddleware,
    configure_logging,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    init_tracing,
)
from package_search.search.lifecycle import IndexLifecycleController
from package_search.services.index_refresh_service import IndexRefreshService
from package_search.sources import JsonLinesDocumentSource


logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def create_app(
    controller: IndexLifecycleController,
    refresh_service: IndexRefreshService | None = None,
) -> Starlette:
    """Build the Starlette application around an existing controller."""

    @asynccontextmanager
    async def lifespan(app: Starlette):
        if refresh_service is not None:
            initialized = await refresh_service.initialize()
            if not initialized:
                logger.warning("Index refresh service did not initialize; index stays %s", controller.state.value)
        try:
            yield
        finally:
            if refresh_service is not None:
                await refresh_service.stop()

    async def health_check(request: Request) -> JSONResponse:
        stats = controller.stats
        status_code = 200 if controller.is_ready else 503
        return JSONResponse(
            {"status": "healthy" if controller.is_ready else "not_ready", "index": stats},
            status_code=status_code,
        )

    async def search_endpoint(request: Request) -> JSONResponse:
        params = request.query_params
        try:
            result = controller.search_text(
                params.get("q"),
                order=params.get("order"),
                offset=params.get("offset"),
                limit=params.get("limit"),
                platform=params.get("platform"),
                tag=params.get("tag"),
                include_discontinued=params.get("discontinued", "").lower() in _TRUE_VALUES,
            )
        except IndexNotReadyError as exc:
            return JSONResponse({"error": "index_not_ready", "message": str(exc)}, status_code=503)
        return JSONResponse(result.to_json())

    async def trigger_refresh_endpoint(request: Request) -> JSONResponse:
        if refresh_service is None:
            return JSONResponse({"success": False, "message": "Refresh service not configured"}, status_code=503)
        if not refresh_service.is_initialized:
            return JSONResponse({"success": False, "message": "Scheduler not initialized"}, status_code=503)
        result = await refresh_service.trigger_refresh()
        return JSONResponse(result, status_code=202 if result.get("success") else 409)

    async def refresh_status_endpoint(request: Request) -> JSONResponse:
        if refresh_service is None:
            return JSONResponse({"scheduler_initialized": False, "stats": {"index": controller.stats}})
        return JSONResponse(await refresh_service.get_status_snapshot())

    async def metrics_endpoint(request: Request) -> Response:
        return Response(get_metrics(), media_type=get_metrics_content_type())

    routes = [
        Route("/health", endpoint=health_check, methods=["GET"]),
        Route("/api/search", endpoint=search_endpoint, methods=["GET"]),
        Route("/api/refresh", endpoint=trigger_refresh_endpoint, methods=["POST"]),
        Route("/api/refresh/status", endpoint=refresh_status_endpoint, methods=["GET"]),
        Route("/metrics", endpoint=metrics_endpoint, methods=["GET"]),
    ]

    app = Starlette(routes=routes, middleware=[Middleware(TraceContextMiddleware)], lifespan=lifespan)
    app.state.controller = controller
    app.state.refresh_service = refresh_service
    return app


def build_from_settings(settings: Settings) -> tuple[IndexLifecycleController, IndexRefreshService]:
    """Wire controller, document source and refresher from settings."""
    controller = IndexLifecycleController(settings=settings)
    documents_path = settings.get_documents_path()
    source = JsonLinesDocumentSource(documents_path) if documents_path is not None else None
    refresh_service = IndexRefreshService(
        controller,
        source=source,
        refresh_schedule=settings.refresh_schedule if settings.refresh_enabled else None,
    )
    return controller, refresh_service


def main() -> None:
    import uvicorn

    settings = Settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_tracing()
    init_metrics()

    controller, refresh_service = build_from_settings(settings)
    app = create_app(controller, refresh_service)
    logger.info("Starting package search index on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
