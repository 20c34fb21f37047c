"""Composable builder for the search HTTP server."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.routing import Route

from hugo_search.handlers import ApiHandlers
from hugo_search.observability import (
    INDEX_DOC_COUNT,
    MetricsMiddleware,
    RequestContextMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from hugo_search.runtime.health import build_health_endpoint


if TYPE_CHECKING:
    from starlette.requests import Request

    from hugo_search.config import Settings
    from hugo_search.registry import IndexRegistry


logger = logging.getLogger(__name__)


class AppBuilder:
    """Builds the ASGI app serving every index of a registry."""

    def __init__(self, registry: IndexRegistry, settings: Settings) -> None:
        self.registry = registry
        self.settings = settings
        self.handlers = ApiHandlers(registry, settings)

    def build(self) -> Starlette:
        """Build and return the Starlette application."""
        app = Starlette(
            debug=self.settings.effective_log_level() == "debug",
            routes=self._build_routes(),
            lifespan=self._build_lifespan_manager(),
        )

        cors_origins = self.settings.get_cors_origins()
        if cors_origins:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=["X-Request-ID"],
            )
        app.add_middleware(MetricsMiddleware)
        app.add_middleware(RequestContextMiddleware)

        app.state.registry = self.registry
        logger.info("Search server initialized with %d index(es): %s", len(self.registry), self.registry.list_names())
        return app

    def _build_routes(self) -> list[Route]:
        handlers = self.handlers
        return [
            Route("/health", endpoint=build_health_endpoint(self.registry), methods=["GET"]),
            Route("/metrics", endpoint=self._build_metrics_endpoint(), methods=["GET"]),
            Route("/api", endpoint=handlers.list_indexes, methods=["GET"]),
            Route("/api/{index_name}", endpoint=handlers.index_info, methods=["GET"]),
            Route("/api/{index_name}/_search", endpoint=handlers.search, methods=["POST"]),
            Route("/api/{index_name}/_count", endpoint=handlers.count, methods=["GET"]),
            Route("/api/{index_name}/{doc_id:path}", endpoint=handlers.get_document, methods=["GET"]),
        ]

    def _build_metrics_endpoint(self):
        async def metrics_endpoint(_: Request) -> Response:
            return Response(content=get_metrics(), media_type=get_metrics_content_type())

        return metrics_endpoint

    def _build_lifespan_manager(self):
        registry = self.registry

        @asynccontextmanager
        async def lifespan(_: Starlette):
            for name, index in registry.items():
                INDEX_DOC_COUNT.labels(index=name).set(index.doc_count())
            try:
                yield
            finally:
                logger.info("Shutting down search server")
                registry.close_all()

        return lifespan
