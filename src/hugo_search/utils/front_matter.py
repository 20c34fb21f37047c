"""Front matter utilities for Hugo content files.

Hugo accepts three front matter formats, selected by the opening delimiter:

    ---                 +++                 {
    title: Hello        title = "Hello"       "title": "Hello"
    tags: [go]          tags = ["go"]       }
    ---                 +++

YAML is parsed with PyYAML, TOML with ``tomllib`` and JSON with ``orjson``.
"""

import re
import tomllib
from typing import Any

import orjson
import yaml


YAML_DELIMITER = "---"
TOML_DELIMITER = "+++"


def _delimited(delimiter: str) -> re.Pattern[str]:
    escaped = re.escape(delimiter)
    return re.compile(rf"\A{escaped}[ \t]*\r?\n(.*?)\r?\n{escaped}[ \t]*(?:\r?\n|\Z)", re.DOTALL)


_YAML_PATTERN = _delimited(YAML_DELIMITER)
_TOML_PATTERN = _delimited(TOML_DELIMITER)
# JSON front matter is a top-level object whose closing brace sits alone on a line
_JSON_PATTERN = re.compile(r"\A(\{\s*\r?\n.*?\r?\n\})[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Parse front matter from a Hugo content file.

    Args:
        content: Full file content including front matter

    Returns:
        Tuple of (front_matter_dict, body)
        If no valid front matter is found, returns (empty dict, original content)

    Example:
        >>> metadata, body = parse_front_matter('+++\\ntitle = "Hi"\\n+++\\n# Body')
        >>> metadata["title"]
        'Hi'
        >>> body
        '# Body'
    """
    text = content.lstrip("\ufeff")

    for pattern, loader in (
        (_YAML_PATTERN, _load_yaml),
        (_TOML_PATTERN, tomllib.loads),
        (_JSON_PATTERN, orjson.loads),
    ):
        match = pattern.match(text)
        if not match:
            continue
        try:
            metadata = loader(match.group(1))
        except (yaml.YAMLError, tomllib.TOMLDecodeError, orjson.JSONDecodeError):
            return {}, content
        if not isinstance(metadata, dict):
            return {}, content
        return metadata, text[match.end() :]

    return {}, content


def _load_yaml(text: str) -> Any:
    return yaml.safe_load(text) or {}
