"""Hugo content pages and the URL rules that place them on the site."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
import logging
from pathlib import Path, PurePosixPath
import re
from typing import TYPE_CHECKING, Any

from hugo_search.hugo.text import first_heading, normalize_terms, plain_text, summarize, word_count
from hugo_search.utils.front_matter import parse_front_matter


if TYPE_CHECKING:
    from hugo_search.hugo.site import SiteConfig


logger = logging.getLogger(__name__)

PAGE_KIND = "page"
SECTION_KIND = "section"

_SECTION_STEM = "_index"
_BUNDLE_STEM = "index"
_URLIZE_PATTERN = re.compile(r"\s+")


class PageLoadError(RuntimeError):
    """Raised when a content file cannot be read or parsed."""


@dataclass(frozen=True)
class Page:
    """A publishable page of the site, reduced to what the index stores."""

    id: str
    permalink: str
    title: str
    summary: str
    content: str
    section: str
    kind: str
    lang: str
    date: datetime
    source_path: str
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    draft: bool = False
    publish_date: datetime | None = None
    expiry_date: datetime | None = None
    headless: bool = False
    render: bool = True

    @property
    def word_count(self) -> int:
        return word_count(self.content)

    def skip_reason(self, config: SiteConfig, now: datetime) -> str | None:
        """Return why Hugo would not publish this page, or None when it would."""
        if self.headless or not self.render:
            return "not rendered"
        if self.draft and not config.build_drafts:
            return "draft"
        if self.publish_date and self.publish_date > now and not config.build_future:
            return "future"
        if self.expiry_date and self.expiry_date <= now and not config.build_expired:
            return "expired"
        return None


def load_page(
    config: SiteConfig,
    content_root: Path,
    path: Path,
    *,
    language: str | None = None,
) -> Page:
    """Read ``path`` and build the page Hugo would publish for it.

    Args:
        config: Site configuration (URL and language rules)
        content_root: Content directory ``path`` lives under
        path: Content file
        language: Language owning ``content_root``; None for the shared root

    Raises:
        PageLoadError: If the file cannot be read
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PageLoadError(f"cannot read {path}: {exc}") from exc

    metadata, body = parse_front_matter(raw)
    # Hugo front matter keys are case-insensitive
    meta = {str(key).lower(): value for key, value in metadata.items()}

    relative = PurePosixPath(path.relative_to(content_root).as_posix())
    stem, lang = split_language(relative, config.language_codes)
    lang = str(meta.get("lang") or language or lang or config.default_language).lower()
    kind = SECTION_KIND if stem == _SECTION_STEM else PAGE_KIND

    page_path = page_url(config, relative.parent, stem, meta, lang=lang)
    content = plain_text(body)

    title = str(meta.get("title") or "").strip() or first_heading(body) or _default_title(relative, stem)
    summary = str(meta.get("summary") or meta.get("description") or "").strip()
    if summary:
        summary = plain_text(summary)
    else:
        summary = summarize(body, config.summary_length)

    build_options = meta.get("_build") or meta.get("build") or {}
    render = True
    if isinstance(build_options, Mapping):
        render_option = build_options.get("render", True)
        render = render_option not in (False, "never", "false")

    publish_date = parse_date(meta.get("publishdate") or meta.get("pubdate"))
    page_date = parse_date(meta.get("date")) or publish_date or parse_date(meta.get("lastmod"))
    if page_date is None:
        page_date = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    return Page(
        id=page_path,
        permalink=join_base_url(config.base_url, page_path),
        title=title,
        summary=summary,
        content=content,
        section=relative.parts[0] if len(relative.parts) > 1 else "",
        kind=kind,
        lang=lang,
        date=page_date,
        source_path=relative.as_posix(),
        tags=normalize_terms(meta.get("tags")),
        categories=normalize_terms(meta.get("categories")),
        keywords=normalize_terms(meta.get("keywords")),
        draft=_truthy(meta.get("draft")),
        publish_date=publish_date or page_date,
        expiry_date=parse_date(meta.get("expirydate") or meta.get("unpublishdate")),
        headless=_truthy(meta.get("headless")),
        render=render,
    )


def split_language(relative: PurePosixPath, languages: frozenset[str]) -> tuple[str, str | None]:
    """Split ``about.fr.md`` into ``("about", "fr")`` when ``fr`` is a site language."""
    stem = relative.stem
    base, dot, suffix = stem.rpartition(".")
    if dot and base and suffix.lower() in languages:
        return base, suffix.lower()
    return stem, None


def page_url(
    config: SiteConfig,
    directory: PurePosixPath,
    stem: str,
    meta: Mapping[str, Any],
    *,
    lang: str,
) -> str:
    """Compute the site-relative URL Hugo publishes a content file at.

    ``posts/a.md`` -> ``/posts/a/``, ``posts/_index.md`` -> ``/posts/``,
    ``posts/b/index.md`` -> ``/posts/b/``. ``url`` in front matter wins,
    ``slug`` replaces the last segment.
    """
    explicit = meta.get("url")
    if explicit:
        return "/" + str(explicit).strip().lstrip("/")

    segments = [part for part in directory.parts if part not in ("", ".")]
    is_section = stem == _SECTION_STEM
    if not is_section and stem != _BUNDLE_STEM:
        segments.append(stem)

    slug = meta.get("slug")
    if slug and not is_section and segments:
        segments[-1] = str(slug).strip().strip("/")

    segments = [_urlize(segment, lower=not config.disable_path_to_lower) for segment in segments]
    if lang != config.default_language or config.default_language_in_subdir:
        segments.insert(0, lang)

    if not segments:
        return "/"
    if config.ugly_urls and not is_section:
        return "/" + "/".join(segments) + ".html"
    return "/" + "/".join(segments) + "/"


def join_base_url(base_url: str, path: str) -> str:
    if not base_url:
        return path
    return base_url.rstrip("/") + path


def parse_date(value: Any) -> datetime | None:
    """Normalize a front matter date (TOML/YAML native or string) to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            logger.debug("Ignoring unparsable date %r", value)
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _urlize(segment: str, *, lower: bool) -> str:
    segment = _URLIZE_PATTERN.sub("-", segment.strip())
    return segment.lower() if lower else segment


def _default_title(relative: PurePosixPath, stem: str) -> str:
    if stem in (_SECTION_STEM, _BUNDLE_STEM):
        name = relative.parent.name
    else:
        name = stem
    return name.replace("-", " ").replace("_", " ").strip().title()


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)
