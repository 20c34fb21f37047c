"""Hugo site loading: configuration, content pages and their URLs."""

from hugo_search.hugo.pages import Page, PageLoadError, load_page
from hugo_search.hugo.site import HugoSite, SiteConfig, SiteConfigError, SiteNotFoundError


__all__ = [
    "HugoSite",
    "Page",
    "PageLoadError",
    "SiteConfig",
    "SiteConfigError",
    "SiteNotFoundError",
    "load_page",
]
