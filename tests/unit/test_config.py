"""Tests for settings and listen address parsing."""

from pathlib import Path

from pydantic import ValidationError
import pytest

from hugo_search.config import Settings, parse_listen_address


pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("addr", "expected"),
    [
        (":8080", ("0.0.0.0", 8080)),
        ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ("localhost:80", ("localhost", 80)),
        ("[::1]:8443", ("::1", 8443)),
        ("[::]:0", ("::", 0)),
    ],
)
def test_parse_listen_address(addr, expected):
    assert parse_listen_address(addr) == expected


@pytest.mark.parametrize("addr", ["8080", "localhost", ":http", ":70000", "::1:80", "[::1:80", "host:"])
def test_parse_listen_address_rejects_invalid(addr):
    with pytest.raises(ValueError):
        parse_listen_address(addr)


def test_defaults():
    settings = Settings()

    assert settings.addr == ":8080"
    assert settings.hugo_path == Path(".")
    assert settings.index_path == Path("indexes/search.bleve")
    assert settings.default_size == 10
    assert settings.effective_log_level() == "info"


def test_invalid_addr_fails_validation():
    with pytest.raises(ValidationError):
        Settings(addr="no-port")


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("HUGO_SEARCH_MAX_SIZE", "25")
    monkeypatch.setenv("HUGO_SEARCH_JSON_LOGS", "true")

    settings = Settings()

    assert settings.max_size == 25
    assert settings.json_logs is True


@pytest.mark.parametrize(
    ("index_path", "index_name", "expected"),
    [
        ("indexes/search.bleve", "", "search"),
        ("/var/lib/blog", "", "blog"),
        ("indexes/search.bleve", "docs", "docs"),
    ],
)
def test_resolved_index_name(index_path, index_name, expected):
    settings = Settings(index_path=Path(index_path), index_name=index_name)

    assert settings.resolved_index_name() == expected


def test_verbose_forces_debug_level():
    assert Settings(verbose=True, log_level="warning").effective_log_level() == "debug"


def test_cors_origins_are_split():
    settings = Settings(cors_origins="https://a.example, https://b.example,")

    assert settings.get_cors_origins() == ["https://a.example", "https://b.example"]
    assert Settings().get_cors_origins() == []
