"""Wire models for the search endpoint.

The request and response shapes follow Bleve's JSON search API so existing
Bleve/Hugo search front-ends can talk to this server unchanged.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class HighlightRequest(BaseModel):
    """Which fields to highlight and how matches are marked."""

    model_config = ConfigDict(extra="ignore")

    style: Literal["html", "ansi"] | None = Field(default=None, description="Fragment formatter (default html)")
    fields: list[str] | None = Field(default=None, description="Fields to highlight (default: text fields)")


class DateRangeRequest(BaseModel):
    name: str
    start: str | None = None
    end: str | None = None


class NumericRangeRequest(BaseModel):
    name: str
    min: float | None = None
    max: float | None = None


class FacetRequest(BaseModel):
    """A term facet, or a range facet when ranges are given."""

    model_config = ConfigDict(extra="ignore")

    field: str
    size: int = Field(default=10, ge=0)
    date_ranges: list[DateRangeRequest] | None = None
    numeric_ranges: list[NumericRangeRequest] | None = None


class SearchRequest(BaseModel):
    """Body of ``POST /api/{index}/_search``.

    Example:
        {
            "query": {"query": "hugo +search"},
            "size": 10,
            "from": 0,
            "fields": ["title", "permalink"],
            "highlight": {"style": "html", "fields": ["content"]},
            "facets": {"tags": {"field": "tags", "size": 5}},
            "sort": ["-_score"]
        }
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    query: dict[str, Any]
    size: int = Field(default=10, ge=0)
    from_: int = Field(default=0, ge=0, alias="from")
    fields: list[str] | None = None
    highlight: HighlightRequest | None = None
    facets: dict[str, FacetRequest] | None = None
    sort: list[str] | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchStatus(BaseModel):
    total: int = 1
    failed: int = 0
    successful: int = 1


class SearchHit(BaseModel):
    index: str
    id: str
    score: float
    sort: list[Any] = Field(default_factory=list)
    fields: dict[str, Any] | None = None
    fragments: dict[str, list[str]] | None = None


class TermCount(BaseModel):
    term: str
    count: int


class DateRangeCount(BaseModel):
    name: str
    start: str | None = None
    end: str | None = None
    count: int


class NumericRangeCount(BaseModel):
    name: str
    min: float | None = None
    max: float | None = None
    count: int


class FacetResult(BaseModel):
    field: str
    total: int = 0
    missing: int = 0
    other: int = 0
    terms: list[TermCount] | None = None
    date_ranges: list[DateRangeCount] | None = None
    numeric_ranges: list[NumericRangeCount] | None = None


class SearchResponse(BaseModel):
    """Bleve-style search result envelope; ``took`` is in nanoseconds."""

    status: SearchStatus = Field(default_factory=SearchStatus)
    request: dict[str, Any]
    hits: list[SearchHit]
    total_hits: int
    max_score: float
    took: int
    facets: dict[str, FacetResult] | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
