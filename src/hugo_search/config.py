"""Centralized configuration for hugo-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ADDR = ":8080"
DEFAULT_HUGO_PATH = "."
DEFAULT_INDEX_PATH = "indexes/search.bleve"


class Settings(BaseSettings):
    """Server configuration loaded from ``HUGO_SEARCH_*`` environment variables.

    Command-line flags are applied on top of these values by the CLI.
    """

    model_config = SettingsConfigDict(
        env_prefix="HUGO_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Server
    addr: str = Field(default=DEFAULT_ADDR, description="HTTP listen address, Go style host:port")
    cors_origins: str = Field(default="", description="Comma-separated origins allowed by CORS")

    # Site and index
    hugo_path: Path = Field(default=Path(DEFAULT_HUGO_PATH), description="Path of the Hugo site")
    index_path: Path = Field(default=Path(DEFAULT_INDEX_PATH), description="Directory of the search index")
    index_name: str = Field(default="", description="Route name of the index (default: index directory name)")
    build_drafts: bool | None = Field(
        default=None, description="Index draft pages; overrides the site's buildDrafts setting when set"
    )

    # Search
    default_size: int = Field(default=10, ge=0, description="Hits returned when a request omits size")
    max_size: int = Field(default=1000, ge=1, description="Upper bound applied to the requested size")
    highlight_max_chars: int = Field(default=200, ge=20, description="Maximum characters per highlight fragment")

    # Logging
    verbose: bool = Field(default=False, description="Verbose (debug) logging")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Logging level"
    )
    json_logs: bool = Field(default=False, description="Emit logs as JSON lines")
    access_log: bool = Field(default=False, description="Enable the uvicorn access log")

    @model_validator(mode="after")
    def _check_addr(self) -> "Settings":
        parse_listen_address(self.addr)
        return self

    def resolved_index_name(self) -> str:
        """Return the route name of the index.

        Example:
            >>> Settings(index_path=Path("indexes/search.bleve")).resolved_index_name()
            'search'
        """
        if self.index_name:
            return self.index_name
        path = self.index_path.expanduser()
        name = path.stem or path.resolve().stem
        return name or "search"

    def effective_log_level(self) -> str:
        return "debug" if self.verbose else self.log_level

    def get_cors_origins(self) -> list[str]:
        """Get list of allowed CORS origins (comma-separated)."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def parse_listen_address(addr: str) -> tuple[str, int]:
    """Split a Go style listen address into ``(host, port)``.

    An empty host binds every interface.

    Example:
        >>> parse_listen_address(":8080")
        ('0.0.0.0', 8080)
        >>> parse_listen_address("[::1]:9000")
        ('::1', 9000)

    Raises:
        ValueError: If the port is missing or out of range
    """
    addr = addr.strip()
    host, sep, port_text = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {addr!r}")
    if host.startswith("["):
        if not host.endswith("]"):
            raise ValueError(f"invalid IPv6 address {addr!r}")
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"too many colons in address {addr!r}")

    if not port_text.isdigit():
        raise ValueError(f"invalid port {port_text!r} in address {addr!r}")
    port = int(port_text)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in address {addr!r}")
    return host or "0.0.0.0", port
