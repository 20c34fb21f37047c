"""Index schema for Hugo pages.

The field catalogue below is the single source of truth: the tantivy schema,
the indexer and the query translator all read it, so a field only has to be
declared once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

import tantivy


FieldKind = Literal["text", "keyword", "date", "integer"]

TEXT_TOKENIZER = "default"
KEYWORD_TOKENIZER = "raw"


@dataclass(frozen=True)
class SchemaField:
    """A field of the page document."""

    name: str
    kind: FieldKind
    stored: bool = True
    multi: bool = False
    default_search: bool = False

    @property
    def is_text(self) -> bool:
        return self.kind in ("text", "keyword")

    @property
    def is_analyzed(self) -> bool:
        return self.kind == "text"


FIELDS: tuple[SchemaField, ...] = (
    SchemaField("id", "keyword"),
    SchemaField("permalink", "keyword"),
    SchemaField("title", "text", default_search=True),
    SchemaField("summary", "text", default_search=True),
    SchemaField("content", "text", default_search=True),
    SchemaField("section", "keyword"),
    SchemaField("kind", "keyword"),
    SchemaField("lang", "keyword"),
    SchemaField("tags", "keyword", multi=True, default_search=True),
    SchemaField("categories", "keyword", multi=True, default_search=True),
    SchemaField("keywords", "keyword", multi=True, default_search=True),
    SchemaField("date", "date"),
    SchemaField("word_count", "integer"),
)

FIELDS_BY_NAME: dict[str, SchemaField] = {field.name: field for field in FIELDS}
ID_FIELD = "id"
DEFAULT_SEARCH_FIELDS: tuple[str, ...] = tuple(field.name for field in FIELDS if field.default_search)
TEXT_FIELDS: tuple[str, ...] = tuple(field.name for field in FIELDS if field.is_analyzed)


def get_field(name: str) -> SchemaField | None:
    return FIELDS_BY_NAME.get(name)


def create_schema() -> tantivy.Schema:
    """Create the tantivy schema for page documents.

    Returns:
        Tantivy schema with every field of ``FIELDS``
    """
    builder = tantivy.SchemaBuilder()
    for field in FIELDS:
        if field.kind == "text":
            builder.add_text_field(field.name, stored=field.stored, tokenizer_name=TEXT_TOKENIZER)
        elif field.kind == "keyword":
            builder.add_text_field(field.name, stored=field.stored, tokenizer_name=KEYWORD_TOKENIZER)
        elif field.kind == "date":
            builder.add_date_field(field.name, stored=field.stored, indexed=True, fast=True)
        else:
            builder.add_integer_field(field.name, stored=field.stored, indexed=True, fast=True)
    return builder.build()


def json_value(value: Any) -> Any:
    """Convert a stored value to its JSON form; dates become RFC 3339 UTC strings."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return value
