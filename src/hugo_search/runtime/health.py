"""Health endpoint factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from hugo_search.observability import INDEX_DOC_COUNT


if TYPE_CHECKING:
    from starlette.requests import Request

    from hugo_search.registry import IndexRegistry


logger = logging.getLogger(__name__)


def build_health_endpoint(registry: IndexRegistry):
    """Return a coroutine function that aggregates index health data."""

    async def health_check(_: Request) -> JSONResponse:
        index_health: dict[str, dict] = {}
        all_healthy = bool(len(registry))

        for name, index in registry.items():
            try:
                doc_count = await run_in_threadpool(index.doc_count)
            except Exception as exc:
                logger.warning("Health check failed for index %s: %s", name, exc)
                index_health[name] = {"status": "unhealthy", "error": str(exc)}
                all_healthy = False
                continue
            INDEX_DOC_COUNT.labels(index=name).set(doc_count)
            index_health[name] = {"status": "healthy", "doc_count": doc_count, "path": str(index.path)}

        return JSONResponse(
            {
                "status": "healthy" if all_healthy else "degraded",
                "index_count": len(registry),
                "indexes": index_health,
            }
        )

    return health_check
