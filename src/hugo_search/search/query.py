"""Translate Bleve-style JSON queries into tantivy queries.

Supported query objects (every one accepts an optional ``boost``)::

    {"query": "title:hugo +search -draft"}          query string
    {"match": "static site", "field": "content",    analysed terms
     "operator": "and", "fuzziness": 1}
    {"match_phrase": "static site", "field": "content"}
    {"term": "Go", "field": "tags"}                  exact term
    {"term": "hugo", "field": "title", "fuzziness": 1}
    {"prefix": "sta", "field": "title"}
    {"regexp": "sta.*c", "field": "title"}
    {"ids": ["/posts/a/", "/posts/b/"]}
    {"start": "2024-01-01T00:00:00Z", "end": "...", "field": "date"}
    {"min": 100, "max": 500, "field": "word_count"}
    {"match_all": {}} / {"match_none": {}}
    {"conjuncts": [...]} / {"disjuncts": [...], "min": 1}
    {"must": {...}, "should": {...}, "must_not": {...}}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
import math
import re
from typing import Any

import tantivy

from hugo_search.hugo.pages import parse_date
from hugo_search.search.schema import DEFAULT_SEARCH_FIELDS, ID_FIELD, SchemaField, get_field


MAX_FUZZINESS = 2

# Mirrors the tokenizer tantivy's "default" analyzer applies to text fields
_TOKEN_PATTERN = re.compile(r"[^\W_]+")
_REGEX_SPECIAL = frozenset(r"\.+*?()|[]{}^$#&-~")

# tantivy stores dates as i64 nanoseconds since the epoch
_MIN_DATE = datetime(1677, 9, 22, tzinfo=timezone.utc)
_MAX_DATE = datetime(2262, 4, 11, tzinfo=timezone.utc)
_MIN_INT = -(2**63)
_MAX_INT = 2**63 - 1


class QueryError(ValueError):
    """Raised when a query object cannot be translated."""


def build_query(
    index: tantivy.Index,
    payload: Any,
    *,
    default_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> tantivy.Query:
    """Build a tantivy query from a Bleve JSON query object.

    Args:
        index: Index the query will run against (for schema and query parsing)
        payload: Decoded JSON query object
        default_fields: Fields searched when a query names no field

    Raises:
        QueryError: If the query shape, a field name or the query string is invalid
    """
    return _QueryBuilder(index, tuple(default_fields)).build(payload)


def tokenize(text: str) -> list[str]:
    return [token.lower() for token in _TOKEN_PATTERN.findall(text)]


def escape_regex(text: str) -> str:
    return "".join(f"\\{char}" if char in _REGEX_SPECIAL else char for char in text)


class _QueryBuilder:
    def __init__(self, index: tantivy.Index, default_fields: tuple[str, ...]) -> None:
        self.index = index
        self.schema = index.schema
        self.default_fields = default_fields

    def build(self, payload: Any) -> tantivy.Query:
        if not isinstance(payload, Mapping):
            raise QueryError(f"query must be a JSON object, got {type(payload).__name__}")

        query = self._dispatch(payload)
        boost = payload.get("boost")
        if boost is not None:
            try:
                boost_value = float(boost)
            except (TypeError, ValueError) as exc:
                raise QueryError(f"invalid boost {boost!r}") from exc
            query = tantivy.Query.boost_query(query, boost_value)
        return query

    def _dispatch(self, payload: Mapping[str, Any]) -> tantivy.Query:
        if any(key in payload for key in ("must", "should", "must_not")):
            return self._boolean(payload)
        if "conjuncts" in payload:
            return self._combine(self._subqueries(payload["conjuncts"], "conjuncts"), tantivy.Occur.Must)
        if "disjuncts" in payload:
            minimum = payload.get("min") or 0
            if not isinstance(minimum, int) or minimum > 1:
                raise QueryError("disjuncts only support 'min' of 0 or 1")
            return self._combine(self._subqueries(payload["disjuncts"], "disjuncts"), tantivy.Occur.Should)
        if "query" in payload:
            return self._query_string(payload["query"])
        if "match_all" in payload:
            return tantivy.Query.all_query()
        if "match_none" in payload:
            return tantivy.Query.empty_query()
        if "match_phrase" in payload:
            return self._per_field(payload, lambda field: self._phrase(field, self._text(payload, "match_phrase")))
        if "match" in payload:
            text = self._text(payload, "match")
            operator = str(payload.get("operator") or "or").lower()
            if operator not in ("or", "and"):
                raise QueryError(f"unknown match operator '{operator}'")
            fuzziness = self._fuzziness(payload)
            return self._per_field(payload, lambda field: self._match(field, text, operator, fuzziness))
        if "term" in payload:
            text = self._text(payload, "term")
            fuzziness = self._fuzziness(payload)
            return self._per_field(payload, lambda field: self._term(field, text, fuzziness))
        if "prefix" in payload:
            text = self._text(payload, "prefix")
            return self._per_field(payload, lambda field: self._prefix(field, text))
        if "regexp" in payload:
            text = self._text(payload, "regexp")
            return self._per_field(payload, lambda field: self._regex(field, text))
        if "ids" in payload:
            return self._ids(payload["ids"])
        if "start" in payload or "end" in payload:
            return self._date_range(payload)
        if "min" in payload or "max" in payload:
            return self._numeric_range(payload)
        raise QueryError(f"unknown query type with keys {sorted(payload)}")

    def _boolean(self, payload: Mapping[str, Any]) -> tantivy.Query:
        clauses: list[tuple[tantivy.Occur, tantivy.Query]] = []
        for key, occur in (
            ("must", tantivy.Occur.Must),
            ("should", tantivy.Occur.Should),
            ("must_not", tantivy.Occur.MustNot),
        ):
            sub = payload.get(key)
            if sub is None:
                continue
            clauses.append((occur, self.build(sub)))

        if clauses and all(occur == tantivy.Occur.MustNot for occur, _ in clauses):
            clauses.insert(0, (tantivy.Occur.Must, tantivy.Query.all_query()))
        if not clauses:
            return tantivy.Query.empty_query()
        return tantivy.Query.boolean_query(clauses)

    def _subqueries(self, raw: Any, key: str) -> list[tantivy.Query]:
        if not isinstance(raw, list):
            raise QueryError(f"'{key}' must be a list of queries")
        return [self.build(item) for item in raw]

    def _combine(self, queries: list[tantivy.Query], occur: tantivy.Occur) -> tantivy.Query:
        if not queries:
            return tantivy.Query.empty_query()
        if len(queries) == 1:
            return queries[0]
        return tantivy.Query.boolean_query([(occur, query) for query in queries])

    def _query_string(self, text: Any) -> tantivy.Query:
        if not isinstance(text, str):
            raise QueryError("'query' must be a string")
        if not text.strip():
            return tantivy.Query.empty_query()
        try:
            return self.index.parse_query(text, default_field_names=list(self.default_fields))
        except ValueError as exc:
            raise QueryError(f"invalid query string {text!r}: {exc}") from exc

    def _per_field(self, payload: Mapping[str, Any], make) -> tantivy.Query:
        field_name = payload.get("field")
        if field_name:
            return make(self._field(field_name))
        return self._combine([make(self._field(name)) for name in self.default_fields], tantivy.Occur.Should)

    def _field(self, name: Any) -> SchemaField:
        field = get_field(str(name))
        if field is None:
            raise QueryError(f"unknown field '{name}'")
        return field

    def _text(self, payload: Mapping[str, Any], key: str) -> str:
        value = payload[key]
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise QueryError(f"'{key}' must be a string")
        return str(value)

    def _fuzziness(self, payload: Mapping[str, Any]) -> int:
        raw = payload.get("fuzziness") or 0
        if not isinstance(raw, int) or raw < 0:
            raise QueryError(f"invalid fuzziness {raw!r}")
        if raw > MAX_FUZZINESS:
            raise QueryError(f"fuzziness must not exceed {MAX_FUZZINESS}")
        return raw

    def _normalize(self, field: SchemaField, text: str) -> str:
        return text.lower() if field.is_analyzed else text

    def _require_text(self, field: SchemaField, query_type: str) -> None:
        if not field.is_text:
            raise QueryError(f"{query_type} queries are not supported on {field.kind} field '{field.name}'")

    def _term(self, field: SchemaField, text: str, fuzziness: int = 0) -> tantivy.Query:
        self._require_text(field, "term")
        value = self._normalize(field, text)
        if fuzziness:
            return tantivy.Query.fuzzy_term_query(self.schema, field.name, value, distance=fuzziness)
        return tantivy.Query.term_query(self.schema, field.name, value)

    def _match(self, field: SchemaField, text: str, operator: str, fuzziness: int) -> tantivy.Query:
        self._require_text(field, "match")
        if not field.is_analyzed:
            return self._term(field, text, fuzziness)
        tokens = tokenize(text)
        occur = tantivy.Occur.Must if operator == "and" else tantivy.Occur.Should
        return self._combine([self._term(field, token, fuzziness) for token in tokens], occur)

    def _phrase(self, field: SchemaField, text: str) -> tantivy.Query:
        self._require_text(field, "match_phrase")
        if not field.is_analyzed:
            return self._term(field, text)
        tokens = tokenize(text)
        if not tokens:
            return tantivy.Query.empty_query()
        if len(tokens) == 1:
            return self._term(field, tokens[0])
        return tantivy.Query.phrase_query(self.schema, field.name, tokens)

    def _prefix(self, field: SchemaField, text: str) -> tantivy.Query:
        return self._regex(field, escape_regex(self._normalize(field, text)) + ".*")

    def _regex(self, field: SchemaField, pattern: str) -> tantivy.Query:
        self._require_text(field, "regexp")
        try:
            return tantivy.Query.regex_query(self.schema, field.name, pattern)
        except ValueError as exc:
            raise QueryError(f"invalid regular expression {pattern!r}: {exc}") from exc

    def _ids(self, raw: Any) -> tantivy.Query:
        if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
            raise QueryError("'ids' must be a list of strings")
        return self._combine(
            [tantivy.Query.term_query(self.schema, ID_FIELD, doc_id) for doc_id in raw],
            tantivy.Occur.Should,
        )

    def _date_range(self, payload: Mapping[str, Any]) -> tantivy.Query:
        field = self._field(payload.get("field") or "date")
        if field.kind != "date":
            raise QueryError(f"date range queries require a date field, got '{field.name}'")
        start = self._bound_date(payload.get("start"), "start") or _MIN_DATE
        end = self._bound_date(payload.get("end"), "end") or _MAX_DATE
        return self._range(
            field,
            tantivy.FieldType.Date,
            min(max(start, _MIN_DATE), _MAX_DATE),
            min(max(end, _MIN_DATE), _MAX_DATE),
            include_lower=payload.get("inclusive_start", True) is not False,
            include_upper=payload.get("inclusive_end", False) is True,
        )

    def _bound_date(self, raw: Any, name: str) -> datetime | None:
        if raw is None or raw == "":
            return None
        parsed = parse_date(raw)
        if parsed is None:
            raise QueryError(f"invalid date for '{name}': {raw!r}")
        return parsed

    def _numeric_range(self, payload: Mapping[str, Any]) -> tantivy.Query:
        field = self._field(payload.get("field") or "word_count")
        if field.kind != "integer":
            raise QueryError(f"numeric range queries require a numeric field, got '{field.name}'")
        lower = self._bound_number(payload.get("min"), "min")
        upper = self._bound_number(payload.get("max"), "max")

        # Reduce both bounds to inclusive integers so fractional bounds compare exactly
        if lower is None:
            low = _MIN_INT
        elif payload.get("inclusive_min", True) is not False:
            low = math.ceil(lower)
        else:
            low = math.floor(lower) + 1
        if upper is None:
            high = _MAX_INT
        elif payload.get("inclusive_max", False) is True:
            high = math.floor(upper)
        else:
            high = math.ceil(upper) - 1

        low, high = max(low, _MIN_INT), min(high, _MAX_INT)
        if low > high:
            return tantivy.Query.empty_query()
        return self._range(field, tantivy.FieldType.Integer, low, high, include_lower=True, include_upper=True)

    def _bound_number(self, raw: Any, name: str) -> int | float | None:
        if raw is None:
            return None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise QueryError(f"invalid number for '{name}': {raw!r}")
        if isinstance(raw, float) and not math.isfinite(raw):
            raise QueryError(f"invalid number for '{name}': {raw!r}")
        return raw

    def _range(
        self,
        field: SchemaField,
        field_type: tantivy.FieldType,
        lower: Any,
        upper: Any,
        *,
        include_lower: bool,
        include_upper: bool,
    ) -> tantivy.Query:
        try:
            return tantivy.Query.range_query(
                self.schema,
                field.name,
                field_type,
                lower,
                upper,
                include_lower=include_lower,
                include_upper=include_upper,
            )
        except ValueError as exc:
            raise QueryError(f"invalid range on '{field.name}': {exc}") from exc
