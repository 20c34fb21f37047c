"""Shared test fixtures: a small Hugo site and an index built from it."""

import os
from pathlib import Path

import pytest

from hugo_search.hugo import HugoSite
from hugo_search.search import HugoIndexer, SearchIndex


SITE_CONFIG = """\
baseURL = "https://example.org/"
title = "Example Site"
languageCode = "en-us"
"""

SITE_PAGES = {
    "_index.md": """\
---
title: Home
---
Welcome to the example site.
""",
    "posts/_index.md": """\
---
title: Posts
---
""",
    "posts/hello-world.md": """\
---
title: Hello World
date: 2024-01-15T09:00:00Z
tags: [go, hugo]
categories: [intro]
---
# Intro

Hugo is a **static** site generator written in Go.

It builds pages fast.
""",
    "posts/search.md": """\
+++
title = "Adding Search"
date = 2024-03-01T10:00:00Z
tags = ["hugo", "search"]
+++
Adding full text search to a static site needs an index.

<!--more-->

The server answers queries over HTTP.
""",
    "posts/draft.md": """\
---
title: Secret Draft
date: 2024-02-01
draft: true
---
Unpublished zebra notes.
""",
    "about/index.md": """\
{
  "title": "About",
  "date": "2023-06-01"
}
About this site and its author.
""",
}

# Pages published without -buildDrafts
PUBLISHED_IDS = {"/", "/posts/", "/posts/hello-world/", "/posts/search/", "/about/"}


def write_site(root: Path, pages: dict[str, str], config: str | None = SITE_CONFIG) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    if config is not None:
        (root / "hugo.toml").write_text(config, encoding="utf-8")
    for relative, text in pages.items():
        target = root / "content" / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep HUGO_SEARCH_* variables and a stray .env file out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("HUGO_SEARCH_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    return write_site(tmp_path / "site", SITE_PAGES)


@pytest.fixture
def index_dir(site_dir: Path, tmp_path: Path) -> Path:
    path = tmp_path / "indexes" / "search.bleve"
    HugoIndexer(HugoSite.load(site_dir)).build(path)
    return path


@pytest.fixture
def search_index(index_dir: Path) -> SearchIndex:
    return SearchIndex.open(index_dir, "search")


@pytest.fixture
def make_site(tmp_path: Path):
    """Factory writing a site with the given content files and hugo.toml."""

    def _make(pages: dict[str, str], config: str | None = SITE_CONFIG, name: str = "custom") -> Path:
        return write_site(tmp_path / name, pages, config)

    return _make
