"""Build the page index from a Hugo site.

The indexer is run before the HTTP listener starts: once when the index
directory does not exist yet, and again whenever a rebuild is requested.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import shutil
import tempfile
import time

import tantivy

from hugo_search import __version__
from hugo_search.hugo.pages import Page
from hugo_search.hugo.site import HugoSite
from hugo_search.search.index import META_FILENAME, index_exists
from hugo_search.search.schema import create_schema


logger = logging.getLogger(__name__)

DEFAULT_HEAP_SIZE = 64_000_000
COMMIT_INTERVAL = 1000


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of an indexing run."""

    documents_indexed: int
    duplicates_skipped: int
    index_path: Path
    elapsed_seconds: float


class HugoIndexer:
    """Write every publishable page of a site into a fresh index."""

    def __init__(self, site: HugoSite, *, heap_size: int = DEFAULT_HEAP_SIZE) -> None:
        self.site = site
        self.heap_size = heap_size

    def build(self, index_path: Path | str, *, rebuild: bool = False) -> IndexBuildResult:
        """Build the index at ``index_path``.

        Args:
            index_path: Directory to store the index
            rebuild: Replace an existing index instead of refusing to touch it

        Returns:
            IndexBuildResult with the number of pages written

        Raises:
            FileExistsError: If an index already exists and ``rebuild`` is False
        """
        index_path = Path(index_path).expanduser()
        replacing = index_exists(index_path)
        if replacing and not rebuild:
            raise FileExistsError(f"Index already exists: {index_path}")
        if not replacing and index_path.exists() and any(index_path.iterdir()):
            raise FileExistsError(f"Refusing to build an index in non-empty directory: {index_path}")

        index_path.parent.mkdir(parents=True, exist_ok=True)
        # Built beside the target and swapped in, so a failed run leaves the old index intact
        staging = Path(tempfile.mkdtemp(prefix=f".{index_path.name}.", suffix=".building", dir=index_path.parent))
        started = time.monotonic()
        logger.info("Indexing Hugo site %s into %s", self.site.root, index_path)
        try:
            indexed, duplicates = self._write_index(staging)
            self._write_meta(staging, indexed)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        self._swap(staging, index_path, replacing=replacing)
        elapsed = time.monotonic() - started
        logger.info("Indexed %d pages in %.2fs", indexed, elapsed)
        return IndexBuildResult(
            documents_indexed=indexed,
            duplicates_skipped=duplicates,
            index_path=index_path,
            elapsed_seconds=elapsed,
        )

    def _write_index(self, path: Path) -> tuple[int, int]:
        index = tantivy.Index(create_schema(), path=str(path))
        writer = index.writer(heap_size=self.heap_size)

        indexed = 0
        duplicates = 0
        seen_ids: set[str] = set()
        for page in self.site.pages():
            if page.id in seen_ids:
                # Two content files publishing to one URL; Hugo keeps the first
                duplicates += 1
                logger.warning("Duplicate page URL %s from %s, skipping", page.id, page.source_path)
                continue
            seen_ids.add(page.id)

            writer.add_document(page_document(page))
            indexed += 1
            if indexed % COMMIT_INTERVAL == 0:
                writer.commit()
                logger.debug("Committed %d pages", indexed)

        writer.commit()
        writer.wait_merging_threads()
        return indexed, duplicates

    def _swap(self, staging: Path, index_path: Path, *, replacing: bool) -> None:
        if not replacing:
            if index_path.exists():
                index_path.rmdir()
            staging.rename(index_path)
            return

        retired = index_path.with_name(f"{staging.name}.old")
        logger.info("Replacing existing index at %s", index_path)
        index_path.rename(retired)
        try:
            staging.rename(index_path)
        except OSError:
            retired.rename(index_path)
            shutil.rmtree(staging, ignore_errors=True)
            raise
        shutil.rmtree(retired)

    def _write_meta(self, index_path: Path, documents: int) -> None:
        meta = {
            "version": __version__,
            "site": str(self.site.root),
            "base_url": self.site.config.base_url,
            "documents": documents,
            "built_at": datetime.now(timezone.utc).isoformat(),
        }
        (index_path / META_FILENAME).write_text(json.dumps(meta, indent=2, sort_keys=True), encoding="utf-8")


def page_document(page: Page) -> tantivy.Document:
    """Convert a page into the tantivy document stored in the index."""
    doc = tantivy.Document()
    doc.add_text("id", page.id)
    doc.add_text("permalink", page.permalink)
    doc.add_text("title", page.title)
    doc.add_text("summary", page.summary)
    doc.add_text("content", page.content)
    doc.add_text("section", page.section)
    doc.add_text("kind", page.kind)
    doc.add_text("lang", page.lang)
    for tag in page.tags:
        doc.add_text("tags", tag)
    for category in page.categories:
        doc.add_text("categories", category)
    for keyword in page.keywords:
        doc.add_text("keywords", keyword)
    doc.add_date("date", page.date)
    doc.add_integer("word_count", page.word_count)
    return doc
