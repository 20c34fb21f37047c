"""Hugo site discovery: configuration loading and content enumeration."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
import logging
from pathlib import Path
import tomllib
from typing import Any

import orjson
import yaml

from hugo_search.hugo.pages import Page, PageLoadError, load_page
from hugo_search.hugo.text import DEFAULT_SUMMARY_LENGTH


logger = logging.getLogger(__name__)

CONFIG_BASENAMES = ("hugo", "config")
CONFIG_EXTENSIONS = (".toml", ".yaml", ".yml", ".json")
CONTENT_EXTENSIONS = frozenset({".md", ".markdown", ".html", ".htm"})
DEFAULT_CONTENT_DIR = "content"
DEFAULT_LANGUAGE = "en"


class SiteNotFoundError(FileNotFoundError):
    """Raised when the Hugo site directory does not exist."""


class SiteConfigError(ValueError):
    """Raised when the Hugo site configuration cannot be parsed."""


@dataclass(frozen=True)
class LanguageConfig:
    code: str
    content_dir: str | None = None
    weight: int = 0


@dataclass(frozen=True)
class SiteConfig:
    """Subset of the Hugo site configuration that affects indexing."""

    base_url: str = ""
    content_dir: str = DEFAULT_CONTENT_DIR
    default_language: str = DEFAULT_LANGUAGE
    default_language_in_subdir: bool = False
    languages: tuple[LanguageConfig, ...] = ()
    ugly_urls: bool = False
    disable_path_to_lower: bool = False
    build_drafts: bool = False
    build_future: bool = False
    build_expired: bool = False
    summary_length: int = DEFAULT_SUMMARY_LENGTH
    source: Path | None = None

    @property
    def language_codes(self) -> frozenset[str]:
        codes = {language.code for language in self.languages}
        codes.add(self.default_language)
        return frozenset(codes)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source: Path | None = None) -> SiteConfig:
        # Hugo configuration keys are case-insensitive
        data = {str(key).lower(): value for key, value in raw.items()}

        languages: list[LanguageConfig] = []
        raw_languages = data.get("languages") or {}
        if not isinstance(raw_languages, Mapping):
            raise SiteConfigError("'languages' must be a table of language settings")
        for code, settings in raw_languages.items():
            if not isinstance(settings or {}, Mapping):
                raise SiteConfigError(f"Language '{code}' settings must be a table")
            settings = {str(key).lower(): value for key, value in (settings or {}).items()}
            languages.append(
                LanguageConfig(
                    code=str(code).lower(),
                    content_dir=settings.get("contentdir"),
                    weight=int(settings.get("weight") or 0),
                )
            )
        languages.sort(key=lambda language: (language.weight, language.code))

        try:
            summary_length = int(data.get("summarylength", DEFAULT_SUMMARY_LENGTH))
        except (TypeError, ValueError) as exc:
            raise SiteConfigError(f"summaryLength must be an integer: {exc}") from exc

        return cls(
            base_url=str(data.get("baseurl") or ""),
            content_dir=str(data.get("contentdir") or DEFAULT_CONTENT_DIR),
            default_language=str(data.get("defaultcontentlanguage") or DEFAULT_LANGUAGE).lower(),
            default_language_in_subdir=bool(data.get("defaultcontentlanguageinsubdir", False)),
            languages=tuple(languages),
            ugly_urls=bool(data.get("uglyurls", False)),
            disable_path_to_lower=bool(data.get("disablepathtolower", False)),
            build_drafts=bool(data.get("builddrafts", False)),
            build_future=bool(data.get("buildfuture", False)),
            build_expired=bool(data.get("buildexpired", False)),
            summary_length=summary_length,
            source=source,
        )


def find_config_file(site_root: Path) -> Path | None:
    """Locate the site configuration file following Hugo's lookup order."""
    candidates = [site_root / f"{name}{ext}" for name in CONFIG_BASENAMES for ext in CONFIG_EXTENSIONS]
    candidates += [
        site_root / "config" / "_default" / f"{name}{ext}" for name in CONFIG_BASENAMES for ext in CONFIG_EXTENSIONS
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".toml":
            data = tomllib.loads(raw)
        elif path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(raw) or {}
        else:
            data = orjson.loads(raw)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, orjson.JSONDecodeError) as exc:
        raise SiteConfigError(f"Invalid site configuration {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise SiteConfigError(f"Site configuration {path} must be a mapping")
    return data


@dataclass
class HugoSite:
    """A Hugo site on disk whose content pages can be enumerated."""

    root: Path
    config: SiteConfig = field(default_factory=SiteConfig)

    @classmethod
    def load(
        cls,
        path: Path | str,
        *,
        build_drafts: bool | None = None,
    ) -> HugoSite:
        """Load the site rooted at ``path``.

        Args:
            path: Hugo site directory (the one holding ``hugo.toml``)
            build_drafts: Override the site's ``buildDrafts`` setting

        Raises:
            SiteNotFoundError: If ``path`` is not a directory
            SiteConfigError: If the configuration file is invalid
        """
        root = Path(path).expanduser()
        if not root.is_dir():
            raise SiteNotFoundError(f"Hugo site not found: {root}")
        root = root.resolve()

        config_path = find_config_file(root)
        if config_path is None:
            logger.info("No Hugo configuration found in %s, using defaults", root)
            config = SiteConfig()
        else:
            logger.debug("Loading Hugo configuration from %s", config_path)
            config = SiteConfig.from_mapping(load_config_file(config_path), source=config_path)

        if build_drafts is not None:
            config = replace(config, build_drafts=build_drafts)
        return cls(root=root, config=config)

    def content_roots(self) -> list[tuple[Path, str | None]]:
        """Return ``(directory, language)`` pairs holding content files.

        A language with its own ``contentDir`` owns that directory and is
        listed first; the main content directory is shared and pages in it
        pick their language from the filename suffix.
        """
        roots: list[tuple[Path, str | None]] = [
            (self.root / language.content_dir, language.code)
            for language in self.config.languages
            if language.content_dir
        ]
        roots.append((self.root / self.config.content_dir, None))
        return roots

    def iter_content_files(self) -> Iterator[tuple[Path, Path, str | None]]:
        """Yield ``(content_root, file, language)`` for every content file."""
        seen: set[Path] = set()
        for content_root, language in self.content_roots():
            if not content_root.is_dir():
                logger.debug("Content directory %s does not exist", content_root)
                continue
            for path in sorted(content_root.rglob("*")):
                if not path.is_file() or path.suffix.lower() not in CONTENT_EXTENSIONS:
                    continue
                relative = path.relative_to(content_root)
                if _is_hidden(relative):
                    continue
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                yield content_root, path, language

    def pages(self, *, now: datetime | None = None) -> Iterator[Page]:
        """Yield every publishable page of the site."""
        now = now or datetime.now(timezone.utc)
        for content_root, path, language in self.iter_content_files():
            try:
                page = load_page(self.config, content_root, path, language=language)
            except PageLoadError as exc:
                logger.warning("Skipping %s: %s", path, exc)
                continue

            reason = page.skip_reason(self.config, now)
            if reason:
                logger.debug("Skipping %s (%s)", page.source_path, reason)
                continue
            yield page


def _is_hidden(relative: Path) -> bool:
    for part in relative.parts[:-1]:
        if part.startswith((".", "_")):
            return True
    name = relative.name
    if name.startswith("."):
        return True
    return name.startswith("_") and not name.startswith("_index.")

