"""Read-only access to an on-disk page index."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import time
from typing import Any

import tantivy

from hugo_search.search.facets import compute_facets
from hugo_search.search.highlight import DEFAULT_MAX_CHARS, Highlighter
from hugo_search.search.models import SearchHit, SearchRequest, SearchResponse
from hugo_search.search.query import QueryError, build_query
from hugo_search.search.schema import FIELDS, ID_FIELD, get_field, json_value


logger = logging.getLogger(__name__)

META_FILENAME = "hugo_search_meta.json"
SCORE_SORT = "_score"
ID_SORT = "_id"
DEFAULT_SORT: tuple[str, ...] = ("-_score",)


class IndexNotFoundError(FileNotFoundError):
    """Raised when no index exists at the requested path."""


def index_exists(path: Path | str) -> bool:
    path = Path(path)
    return path.is_dir() and tantivy.Index.exists(str(path))


class SearchIndex:
    """An opened index that answers Bleve-style search requests."""

    def __init__(self, index: tantivy.Index, *, name: str, path: Path) -> None:
        self.name = name
        self.path = path
        self._index = index
        self._schema = index.schema

    @classmethod
    def open(cls, path: Path | str, name: str) -> SearchIndex:
        """Open the existing index at ``path``.

        Raises:
            IndexNotFoundError: If ``path`` holds no index
        """
        path = Path(path).expanduser()
        if not index_exists(path):
            raise IndexNotFoundError(f"Index not found: {path}")
        index = tantivy.Index.open(str(path))
        index.reload()
        logger.info("Opened index %s at %s", name, path)
        return cls(index, name=name, path=path.resolve())

    def doc_count(self) -> int:
        return self._index.searcher().num_docs

    def meta(self) -> dict[str, Any]:
        meta_path = self.path / META_FILENAME
        if not meta_path.exists():
            return {}
        try:
            return json.loads(meta_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable index metadata %s: %s", meta_path, exc)
            return {}

    def info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path),
            "doc_count": self.doc_count(),
            "meta": self.meta(),
        }

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        """Return the stored fields of the page with ``doc_id``, or None."""
        searcher = self._index.searcher()
        query = tantivy.Query.term_query(self._schema, ID_FIELD, doc_id)
        result = searcher.search(query, limit=1)
        if not result.hits:
            return None
        _, address = result.hits[0]
        return render_fields(searcher.doc(address).to_dict(), ["*"])

    def search(
        self,
        request: SearchRequest,
        *,
        highlight_max_chars: int = DEFAULT_MAX_CHARS,
    ) -> SearchResponse:
        """Run ``request`` and build the Bleve-style response.

        Raises:
            QueryError: If the query, sort, highlight or facet request is invalid
        """
        started = time.perf_counter_ns()
        query = build_query(self._index, request.query)
        searcher = self._index.searcher()
        sort_keys = parse_sort(request.sort or list(DEFAULT_SORT))
        score_sorted = sort_keys == [(SCORE_SORT, True)]

        window = request.from_ + request.size
        collect_all = bool(request.facets) or not score_sorted
        # tantivy preallocates the collector for ``limit`` hits
        limit = max(searcher.num_docs if collect_all else min(window, searcher.num_docs), 1)
        result = searcher.search(query, limit=limit, count=True)
        total_hits = result.count if result.count is not None else len(result.hits)

        scored: list[tuple[float, dict[str, list[Any]], Any]] = []
        documents: dict[int, tantivy.Document] = {}
        for position, (score, address) in enumerate(result.hits):
            if not collect_all and position >= window:
                break
            document = searcher.doc(address)
            documents[position] = document
            scored.append((float(score), document.to_dict(), position))

        max_score = max((score for score, _, _ in scored), default=0.0)

        facets = None
        if request.facets:
            facets = compute_facets(request.facets, [fields for _, fields, _ in scored])

        if not score_sorted:
            scored = sort_documents(scored, sort_keys)
        page = scored[request.from_ : window]

        highlighter = None
        if request.highlight is not None:
            highlighter = Highlighter(
                searcher,
                query,
                self._schema,
                fields=request.highlight.fields,
                style=request.highlight.style,
                max_chars=highlight_max_chars,
            )

        hits: list[SearchHit] = []
        for score, stored, position in page:
            hit = SearchHit(
                index=self.name,
                id=_first(stored.get(ID_FIELD)) or "",
                score=score,
                sort=[_sort_value(key, score, stored) for key, _ in sort_keys],
            )
            if request.fields:
                hit.fields = render_fields(stored, request.fields)
            if highlighter is not None:
                fragments = highlighter.fragments(documents[position])
                if fragments:
                    hit.fragments = fragments
            hits.append(hit)

        took = time.perf_counter_ns() - started
        logger.debug("Search on %s matched %d documents in %.2fms", self.name, total_hits, took / 1_000_000)
        return SearchResponse(
            request=request.to_wire(),
            hits=hits,
            total_hits=total_hits,
            max_score=max_score,
            took=took,
            facets=facets,
        )


def parse_sort(raw: Sequence[str]) -> list[tuple[str, bool]]:
    """Parse Bleve sort strings into ``(field, descending)`` pairs.

    Raises:
        QueryError: If a sort entry names an unknown field
    """
    keys: list[tuple[str, bool]] = []
    for entry in raw:
        if not isinstance(entry, str) or not entry.strip("-"):
            raise QueryError(f"invalid sort entry {entry!r}")
        descending = entry.startswith("-")
        name = entry.lstrip("-")
        if name not in (SCORE_SORT, ID_SORT) and get_field(name) is None:
            raise QueryError(f"cannot sort on unknown field '{name}'")
        keys.append((name, descending))
    return keys or [(SCORE_SORT, True)]


def sort_documents(
    scored: list[tuple[float, dict[str, list[Any]], Any]],
    keys: Sequence[tuple[str, bool]],
) -> list[tuple[float, dict[str, list[Any]], Any]]:
    """Order documents by ``keys``; documents missing a field sort last."""
    ordered = list(scored)
    # Stable sorts applied from the least to the most significant key
    for name, descending in reversed(keys):
        present = [item for item in ordered if _sort_key(name, item) is not None]
        missing = [item for item in ordered if _sort_key(name, item) is None]
        present.sort(key=lambda item: _sort_key(name, item), reverse=descending)
        ordered = present + missing
    return ordered


def render_fields(stored: Mapping[str, list[Any]], requested: Sequence[str]) -> dict[str, Any]:
    """Shape stored values for the response: scalars for single-valued fields."""
    names = [field.name for field in FIELDS] if "*" in requested else list(requested)
    rendered: dict[str, Any] = {}
    for name in names:
        values = stored.get(name)
        if not values:
            continue
        field = get_field(name)
        converted = [json_value(value) for value in values]
        if field is not None and field.multi:
            rendered[name] = converted
        else:
            rendered[name] = converted[0] if len(converted) == 1 else converted
    return rendered


def _sort_key(name: str, item: tuple[float, dict[str, list[Any]], Any]) -> Any:
    score, stored, _ = item
    if name == SCORE_SORT:
        return score
    value = _first(stored.get(ID_FIELD if name == ID_SORT else name))
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _sort_value(name: str, score: float, stored: Mapping[str, list[Any]]) -> Any:
    if name == SCORE_SORT:
        return SCORE_SORT
    value = _first(stored.get(ID_FIELD if name == ID_SORT else name))
    if value is None:
        return None
    return json_value(value)


def _first(values: list[Any] | None) -> Any:
    if not values:
        return None
    return values[0]
