"""Facet aggregation over the stored fields of matching documents."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from hugo_search.hugo.pages import parse_date
from hugo_search.search.models import (
    DateRangeCount,
    FacetRequest,
    FacetResult,
    NumericRangeCount,
    TermCount,
)
from hugo_search.search.query import QueryError
from hugo_search.search.schema import get_field, json_value


def compute_facets(
    requests: Mapping[str, FacetRequest],
    documents: Sequence[Mapping[str, list[Any]]],
) -> dict[str, FacetResult]:
    """Aggregate every requested facet over ``documents``.

    Args:
        requests: Facet name -> facet request
        documents: Stored field values (field -> list of values) of all matches

    Raises:
        QueryError: If a facet names an unknown field or a range has the wrong type
    """
    results: dict[str, FacetResult] = {}
    for name, request in requests.items():
        field = get_field(request.field)
        if field is None:
            raise QueryError(f"facet '{name}' uses unknown field '{request.field}'")

        values = [list(document.get(request.field) or []) for document in documents]
        if request.date_ranges:
            if field.kind != "date":
                raise QueryError(f"facet '{name}': date ranges require a date field")
            results[name] = _date_range_facet(request, values)
        elif request.numeric_ranges:
            if field.kind != "integer":
                raise QueryError(f"facet '{name}': numeric ranges require a numeric field")
            results[name] = _numeric_range_facet(request, values)
        else:
            results[name] = _term_facet(request, values)
    return results


def _term_facet(request: FacetRequest, values: list[list[Any]]) -> FacetResult:
    counts: Counter[str] = Counter()
    missing = 0
    for document_values in values:
        if not document_values:
            missing += 1
            continue
        counts.update(_term(value) for value in document_values)

    total = sum(counts.values())
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[: request.size]
    terms = [TermCount(term=term, count=count) for term, count in ranked]
    return FacetResult(
        field=request.field,
        total=total,
        missing=missing,
        other=total - sum(term.count for term in terms),
        terms=terms,
    )


def _date_range_facet(request: FacetRequest, values: list[list[Any]]) -> FacetResult:
    ranges = []
    for date_range in request.date_ranges or []:
        start = _range_bound(date_range.start, date_range.name)
        end = _range_bound(date_range.end, date_range.name)
        ranges.append((date_range, start, end))

    counts = [0] * len(ranges)
    missing = 0
    for document_values in values:
        dates = [parse_date(value) for value in document_values]
        dates = [value for value in dates if value is not None]
        if not dates:
            missing += 1
            continue
        for position, (_, start, end) in enumerate(ranges):
            if any(_in_range(value, start, end) for value in dates):
                counts[position] += 1

    buckets = [
        DateRangeCount(name=date_range.name, start=date_range.start, end=date_range.end, count=count)
        for (date_range, _, _), count in zip(ranges, counts)
        if count
    ]
    return FacetResult(
        field=request.field,
        total=sum(counts),
        missing=missing,
        date_ranges=buckets,
    )


def _numeric_range_facet(request: FacetRequest, values: list[list[Any]]) -> FacetResult:
    ranges = request.numeric_ranges or []
    counts = [0] * len(ranges)
    missing = 0
    for document_values in values:
        numbers = [value for value in document_values if isinstance(value, (int, float))]
        if not numbers:
            missing += 1
            continue
        for position, numeric_range in enumerate(ranges):
            if any(_in_range(value, numeric_range.min, numeric_range.max) for value in numbers):
                counts[position] += 1

    buckets = [
        NumericRangeCount(name=numeric_range.name, min=numeric_range.min, max=numeric_range.max, count=count)
        for numeric_range, count in zip(ranges, counts)
        if count
    ]
    return FacetResult(
        field=request.field,
        total=sum(counts),
        missing=missing,
        numeric_ranges=buckets,
    )


def _range_bound(raw: str | None, name: str) -> datetime | None:
    if raw is None or raw == "":
        return None
    parsed = parse_date(raw)
    if parsed is None:
        raise QueryError(f"date range '{name}' has an invalid bound {raw!r}")
    return parsed


def _in_range(value: Any, lower: Any, upper: Any) -> bool:
    # Bleve ranges include the lower bound and exclude the upper one
    if lower is not None and value < lower:
        return False
    if upper is not None and value >= upper:
        return False
    return True


def _term(value: Any) -> str:
    return str(json_value(value))
