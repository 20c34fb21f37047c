"""
Page index and query engine package.

- schema: Field definitions of the page index
- query: Bleve query JSON to tantivy query translation
- facets: Term and range facet aggregation
- highlight: Fragment rendering for matched terms
- index: Opened index answering search requests
- indexer: Index construction from a Hugo site
"""

from hugo_search.search.index import IndexNotFoundError, SearchIndex, index_exists
from hugo_search.search.indexer import HugoIndexer, IndexBuildResult
from hugo_search.search.models import SearchRequest, SearchResponse
from hugo_search.search.query import QueryError, build_query


__all__ = [
    "HugoIndexer",
    "IndexBuildResult",
    "IndexNotFoundError",
    "QueryError",
    "SearchIndex",
    "SearchRequest",
    "SearchResponse",
    "build_query",
    "index_exists",
]
