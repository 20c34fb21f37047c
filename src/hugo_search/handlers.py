"""HTTP handlers for the ``/api`` routes.

Every error is reported as ``{"status": "error", "error": "<message>"}``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from hugo_search.observability import INDEX_DOC_COUNT, SEARCH_LATENCY, track_latency
from hugo_search.search.models import SearchRequest
from hugo_search.search.query import QueryError


if TYPE_CHECKING:
    from starlette.requests import Request

    from hugo_search.config import Settings
    from hugo_search.registry import IndexRegistry
    from hugo_search.search.index import SearchIndex


logger = logging.getLogger(__name__)

# Endpoint paths under /api/<index> that the document route must not shadow, with their methods
RESERVED_PATHS: dict[str, str] = {"_search": "POST"}


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"status": "error", "error": message}, status_code=status_code)


class ApiHandlers:
    """Endpoints bound to one registry and one set of search limits."""

    def __init__(self, registry: IndexRegistry, settings: Settings) -> None:
        self.registry = registry
        self.settings = settings

    def _lookup(self, request: Request) -> tuple[SearchIndex | None, JSONResponse | None]:
        name = request.path_params["index_name"]
        index = self.registry.get(name)
        if index is None:
            return None, error_response(f"no such index '{name}'", 404)
        return index, None

    async def list_indexes(self, _: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "indexes": self.registry.list_names()})

    async def index_info(self, request: Request) -> JSONResponse:
        index, error = self._lookup(request)
        if error is not None:
            return error
        info = await run_in_threadpool(index.info)
        return JSONResponse({"status": "ok", **info})

    async def count(self, request: Request) -> JSONResponse:
        index, error = self._lookup(request)
        if error is not None:
            return error
        doc_count = await run_in_threadpool(index.doc_count)
        INDEX_DOC_COUNT.labels(index=index.name).set(doc_count)
        return JSONResponse({"status": "ok", "count": doc_count})

    async def get_document(self, request: Request) -> JSONResponse:
        """Return one page by id; ``/api/<index>/`` fetches the home page."""
        doc_id = request.path_params["doc_id"]
        if doc_id in RESERVED_PATHS:
            response = error_response(f"method {request.method} not allowed on '{doc_id}'", 405)
            response.headers["Allow"] = RESERVED_PATHS[doc_id]
            return response
        index, error = self._lookup(request)
        if error is not None:
            return error
        if not doc_id.startswith("/"):
            doc_id = f"/{doc_id}"
        fields = await run_in_threadpool(index.get_document, doc_id)
        if fields is None:
            return error_response(f"no such document '{doc_id}'", 404)
        return JSONResponse({"status": "ok", "id": doc_id, "fields": fields})

    async def search(self, request: Request) -> JSONResponse:
        """Run a Bleve-style search request against one index."""
        index, error = self._lookup(request)
        if error is not None:
            return error

        body = await request.body()
        try:
            payload = self._parse_payload(body)
            search_request = SearchRequest.model_validate(payload)
        except (orjson.JSONDecodeError, ValueError) as exc:
            return error_response(f"error parsing query: {_describe(exc)}", 400)

        if search_request.size > self.settings.max_size:
            logger.debug("Clamping size %d to %d", search_request.size, self.settings.max_size)
            search_request.size = self.settings.max_size

        try:
            with track_latency(SEARCH_LATENCY, index=index.name):
                response = await run_in_threadpool(
                    index.search,
                    search_request,
                    highlight_max_chars=self.settings.highlight_max_chars,
                )
        except QueryError as exc:
            return error_response(f"error validating query: {exc}", 400)
        except Exception as exc:
            logger.exception("Search on index %s failed", index.name)
            return error_response(f"error executing query: {exc}", 500)

        return JSONResponse(response.to_wire())

    def _parse_payload(self, body: bytes) -> dict[str, Any]:
        if not body.strip():
            raise ValueError("request body is empty")
        payload = orjson.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("request body must be a JSON object")
        payload.setdefault("size", self.settings.default_size)
        return payload


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        parts = []
        for item in exc.errors():
            location = ".".join(str(part) for part in item.get("loc", ())) or "body"
            parts.append(f"{location}: {item.get('msg', 'invalid value')}")
        return "; ".join(parts)
    return str(exc)
