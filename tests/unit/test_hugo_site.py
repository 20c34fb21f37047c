"""Unit tests for Hugo site loading, page URLs and publishing rules."""

from datetime import date, datetime, timezone
from pathlib import PurePosixPath

import pytest

from hugo_search.hugo import HugoSite, SiteConfig, SiteConfigError, SiteNotFoundError
from hugo_search.hugo.pages import page_url, parse_date, split_language


pytestmark = pytest.mark.unit


def _pages_by_id(site: HugoSite) -> dict:
    return {page.id: page for page in site.pages()}


class TestHugoSiteLoad:
    def test_missing_site_raises(self, tmp_path):
        with pytest.raises(SiteNotFoundError):
            HugoSite.load(tmp_path / "nope")

    def test_site_without_config_uses_defaults(self, make_site):
        root = make_site({"a.md": "Hello"}, config=None)

        site = HugoSite.load(root)

        assert site.config.base_url == ""
        assert site.config.content_dir == "content"
        assert site.config.summary_length == 70
        assert site.config.source is None

    def test_reads_yaml_config_case_insensitively(self, make_site):
        root = make_site({}, config=None)
        (root / "config.yaml").write_text(
            "BaseURL: https://blog.example.com/\nuglyurls: true\nSummaryLength: 12\n", encoding="utf-8"
        )

        config = HugoSite.load(root).config

        assert config.base_url == "https://blog.example.com/"
        assert config.ugly_urls is True
        assert config.summary_length == 12

    def test_reads_config_default_directory(self, make_site):
        root = make_site({}, config=None)
        (root / "config" / "_default").mkdir(parents=True)
        (root / "config" / "_default" / "hugo.toml").write_text('baseURL = "https://docs.example.com"\n')

        assert HugoSite.load(root).config.base_url == "https://docs.example.com"

    def test_invalid_config_raises(self, make_site):
        root = make_site({}, config="baseURL = \n")

        with pytest.raises(SiteConfigError):
            HugoSite.load(root)

    def test_non_mapping_languages_raise(self, make_site):
        root = make_site({}, config='languages = ["en", "fr"]\n')

        with pytest.raises(SiteConfigError):
            HugoSite.load(root)

    def test_build_drafts_override(self, make_site):
        root = make_site({}, config="buildDrafts = true\n")

        assert HugoSite.load(root).config.build_drafts is True
        assert HugoSite.load(root, build_drafts=False).config.build_drafts is False


class TestPages:
    def test_publishes_expected_pages(self, site_dir):
        pages = _pages_by_id(HugoSite.load(site_dir))

        assert set(pages) == {"/", "/posts/", "/posts/hello-world/", "/posts/search/", "/about/"}

    def test_page_fields(self, site_dir):
        page = _pages_by_id(HugoSite.load(site_dir))["/posts/hello-world/"]

        assert page.permalink == "https://example.org/posts/hello-world/"
        assert page.title == "Hello World"
        assert page.kind == "page"
        assert page.section == "posts"
        assert page.lang == "en"
        assert page.tags == ["go", "hugo"]
        assert page.categories == ["intro"]
        assert page.date == datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
        assert page.content == "Intro Hugo is a static site generator written in Go. It builds pages fast."
        assert page.word_count == 14

    def test_sections_and_home(self, site_dir):
        pages = _pages_by_id(HugoSite.load(site_dir))

        assert pages["/"].kind == "section"
        assert pages["/"].section == ""
        assert pages["/posts/"].kind == "section"
        assert pages["/posts/"].section == "posts"

    def test_manual_summary_and_json_front_matter(self, site_dir):
        pages = _pages_by_id(HugoSite.load(site_dir))

        assert pages["/posts/search/"].summary == "Adding full text search to a static site needs an index."
        assert pages["/about/"].title == "About"
        assert pages["/about/"].date == datetime(2023, 6, 1, tzinfo=timezone.utc)

    def test_drafts_included_when_requested(self, site_dir):
        pages = _pages_by_id(HugoSite.load(site_dir, build_drafts=True))

        assert "/posts/draft/" in pages
        assert pages["/posts/draft/"].draft is True

    def test_future_and_expired_pages_are_skipped(self, make_site):
        root = make_site(
            {
                "future.md": "---\ntitle: Future\ndate: 2999-01-01\n---\nLater",
                "expired.md": "---\ntitle: Expired\nexpiryDate: 2000-01-01\n---\nGone",
                "current.md": "---\ntitle: Current\ndate: 2020-01-01\n---\nNow",
            }
        )

        assert set(_pages_by_id(HugoSite.load(root))) == {"/current/"}

    def test_build_future_and_expired_config(self, make_site):
        root = make_site(
            {
                "future.md": "---\ntitle: Future\ndate: 2999-01-01\n---\nLater",
                "expired.md": "---\ntitle: Expired\nexpiryDate: 2000-01-01\n---\nGone",
            },
            config="buildFuture = true\nbuildExpired = true\n",
        )

        assert set(_pages_by_id(HugoSite.load(root))) == {"/future/", "/expired/"}

    def test_publish_date_is_checked_against_now(self, make_site):
        root = make_site({"soon.md": "---\ntitle: Soon\npublishDate: 2030-05-01\n---\nSoon"})
        site = HugoSite.load(root)

        before = list(site.pages(now=datetime(2030, 1, 1, tzinfo=timezone.utc)))
        after = list(site.pages(now=datetime(2030, 6, 1, tzinfo=timezone.utc)))

        assert before == []
        assert [page.id for page in after] == ["/soon/"]

    def test_headless_and_unrendered_pages_are_skipped(self, make_site):
        root = make_site(
            {
                "bundle/index.md": "---\nheadless: true\n---\nHidden bundle",
                "norender.md": "---\n_build:\n  render: never\n---\nNot rendered",
                "shown.md": "Visible",
            }
        )

        assert set(_pages_by_id(HugoSite.load(root))) == {"/shown/"}

    def test_hidden_and_underscore_files_are_ignored(self, make_site):
        root = make_site(
            {
                "_partials/snippet.md": "Partial",
                ".hidden.md": "Hidden",
                "_notes.md": "Notes",
                "docs/_index.md": "Docs section",
                "docs/page.markdown": "Markdown extension",
                "docs/raw.html": "<p>Raw HTML page</p>",
                "docs/image.png": "not content",
            }
        )

        assert set(_pages_by_id(HugoSite.load(root))) == {"/docs/", "/docs/page/", "/docs/raw/"}

    def test_unreadable_page_is_skipped(self, make_site):
        root = make_site({"good.md": "Fine"})
        (root / "content" / "bad.md").write_bytes(b"\xff\xfe\xfa broken")

        assert set(_pages_by_id(HugoSite.load(root))) == {"/good/"}

    def test_title_falls_back_to_heading_then_filename(self, make_site):
        root = make_site({"with-heading.md": "# Real Title\n\nBody", "my_notes-page.md": "Body only"})
        pages = _pages_by_id(HugoSite.load(root))

        assert pages["/with-heading/"].title == "Real Title"
        assert pages["/my_notes-page/"].title == "My Notes Page"

    def test_missing_date_falls_back_to_file_mtime(self, make_site):
        root = make_site({"undated.md": "No date"})

        page = _pages_by_id(HugoSite.load(root))["/undated/"]

        assert page.date.tzinfo is not None
        assert page.date.year >= 2024


class TestMultilingual:
    CONFIG = """\
baseURL = "https://example.org/"
defaultContentLanguage = "en"

[languages.en]
weight = 1

[languages.fr]
weight = 2
"""

    def test_language_suffix_prefixes_url(self, make_site):
        root = make_site({"posts/a.md": "Hello", "posts/a.fr.md": "Bonjour"}, config=self.CONFIG)

        pages = _pages_by_id(HugoSite.load(root))

        assert set(pages) == {"/posts/a/", "/fr/posts/a/"}
        assert pages["/fr/posts/a/"].lang == "fr"
        assert pages["/fr/posts/a/"].permalink == "https://example.org/fr/posts/a/"

    def test_language_content_dir(self, make_site):
        config = self.CONFIG + 'contentDir = "content/fr"\n'
        root = make_site({"about.md": "About", "fr/about.md": "À propos"}, config=config)

        pages = _pages_by_id(HugoSite.load(root))

        assert set(pages) == {"/about/", "/fr/about/"}
        assert pages["/fr/about/"].content == "À propos"

    def test_split_language_ignores_unknown_suffix(self):
        languages = frozenset({"en", "fr"})

        assert split_language(PurePosixPath("posts/a.fr.md"), languages) == ("a", "fr")
        assert split_language(PurePosixPath("posts/v1.2.md"), languages) == ("v1.2", None)


class TestPageUrl:
    @pytest.mark.parametrize(
        ("directory", "stem", "meta", "expected"),
        [
            ("posts", "a", {}, "/posts/a/"),
            ("posts", "_index", {}, "/posts/"),
            ("posts/b", "index", {}, "/posts/b/"),
            ("", "_index", {}, "/"),
            ("posts", "a", {"slug": "custom-slug"}, "/posts/custom-slug/"),
            ("posts", "a", {"url": "/fixed/path/"}, "/fixed/path/"),
            ("Posts", "My Post", {}, "/posts/my-post/"),
        ],
    )
    def test_default_rules(self, directory, stem, meta, expected):
        assert page_url(SiteConfig(), PurePosixPath(directory), stem, meta, lang="en") == expected

    def test_ugly_urls(self):
        config = SiteConfig(ugly_urls=True)

        assert page_url(config, PurePosixPath("posts"), "a", {}, lang="en") == "/posts/a.html"
        assert page_url(config, PurePosixPath("posts"), "_index", {}, lang="en") == "/posts/"

    def test_disable_path_to_lower(self):
        config = SiteConfig(disable_path_to_lower=True)

        assert page_url(config, PurePosixPath("Posts"), "Intro", {}, lang="en") == "/Posts/Intro/"

    def test_default_language_in_subdir(self):
        config = SiteConfig(default_language_in_subdir=True)

        assert page_url(config, PurePosixPath("posts"), "a", {}, lang="en") == "/en/posts/a/"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-15", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("2024-01-15T10:30:00+02:00", datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)),
        (date(2024, 1, 2), datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ("not a date", None),
        (None, None),
        (42, None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected
