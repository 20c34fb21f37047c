"""Highlighted fragments for search hits.

tantivy's snippet generator picks the best fragment of a stored field and
reports the matched byte ranges; this module renders those ranges in one of
Bleve's fragment styles.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import html
from typing import Any

import tantivy

from hugo_search.search.query import QueryError
from hugo_search.search.schema import TEXT_FIELDS, get_field


DEFAULT_STYLE = "html"
DEFAULT_MAX_CHARS = 200

_ANSI_HIGHLIGHT = "\x1b[43m"
_ANSI_RESET = "\x1b[0m"


def format_fragment(fragment: str, ranges: Iterable[tuple[int, int]], style: str = DEFAULT_STYLE) -> str:
    """Wrap the byte ``ranges`` of ``fragment`` in highlight markers.

    Example:
        >>> format_fragment("static site generator", [(7, 11)])
        'static <mark>site</mark> generator'
    """
    raw = fragment.encode("utf-8")
    escape = html.escape if style == "html" else _identity
    if style == "html":
        opening, closing = "<mark>", "</mark>"
    else:
        opening, closing = _ANSI_HIGHLIGHT, _ANSI_RESET

    parts: list[str] = []
    cursor = 0
    for start, end in sorted(ranges):
        if start < cursor or end <= start:
            continue
        parts.append(escape(raw[cursor:start].decode("utf-8", errors="ignore")))
        parts.append(opening + escape(raw[start:end].decode("utf-8", errors="ignore")) + closing)
        cursor = end
    parts.append(escape(raw[cursor:].decode("utf-8", errors="ignore")))
    return "".join(parts)


class Highlighter:
    """Produce per-field fragments for the documents of one search."""

    def __init__(
        self,
        searcher: tantivy.Searcher,
        query: tantivy.Query,
        schema: tantivy.Schema,
        *,
        fields: Sequence[str] | None = None,
        style: str | None = None,
        max_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self.style = style or DEFAULT_STYLE
        self._generators: dict[str, tantivy.SnippetGenerator] = {}
        for name in fields or TEXT_FIELDS:
            field = get_field(name)
            if field is None or not field.is_text:
                raise QueryError(f"cannot highlight field '{name}'")
            generator = tantivy.SnippetGenerator.create(searcher, query, schema, name)
            generator.set_max_num_chars(max_chars)
            self._generators[name] = generator

    def fragments(self, document: tantivy.Document) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for name, generator in self._generators.items():
            snippet = generator.snippet_from_doc(document)
            ranges = [(item.start, item.end) for item in snippet.highlighted()]
            if not ranges:
                continue
            result[name] = [format_fragment(snippet.fragment(), ranges, self.style)]
        return result


def _identity(value: Any) -> Any:
    return value
