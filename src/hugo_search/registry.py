"""Registry of the indexes served under ``/api/{index_name}``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from hugo_search.search.index import SearchIndex


logger = logging.getLogger(__name__)


class IndexRegistry:
    """Name -> opened index lookup used by the HTTP handlers.

    Usage:
        registry = IndexRegistry()
        registry.register("search", SearchIndex.open("indexes/search.bleve", "search"))

        index = registry.get("search")
    """

    def __init__(self) -> None:
        self._indexes: dict[str, SearchIndex] = {}

    def register(self, name: str, index: SearchIndex) -> None:
        """Register ``index`` under ``name``, replacing any previous entry.

        Raises:
            ValueError: If ``name`` is empty or contains a slash
        """
        if not name or "/" in name:
            raise ValueError(f"Invalid index name: {name!r}")
        if name in self._indexes:
            logger.warning("Replacing registered index %s", name)
        self._indexes[name] = index

    def get(self, name: str) -> SearchIndex | None:
        return self._indexes.get(name)

    def list_names(self) -> list[str]:
        return sorted(self._indexes)

    def items(self) -> list[tuple[str, SearchIndex]]:
        return sorted(self._indexes.items())

    def close_all(self) -> None:
        """Forget every registered index.

        tantivy releases its files when the index objects are garbage collected.
        """
        if self._indexes:
            logger.debug("Closing %d index(es)", len(self._indexes))
        self._indexes.clear()

    def __len__(self) -> int:
        return len(self._indexes)

    def __contains__(self, name: object) -> bool:
        return name in self._indexes
