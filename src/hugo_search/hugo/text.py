"""Markdown to plain text conversion for indexing.

Hugo renders pages through Goldmark and its template engine; the index only
needs readable text, so the markup is stripped with a handful of regular
expressions rather than rendered.
"""

from __future__ import annotations

from collections.abc import Iterable
import html
import re


SUMMARY_DIVIDER = "<!--more-->"
DEFAULT_SUMMARY_LENGTH = 70

_SHORTCODE_PATTERN = re.compile(r"\{\{[<%].*?[%>]\}\}", re.DOTALL)
_HTML_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_TAG_PATTERN = re.compile(r"</?[a-zA-Z][^>]*>")
_FENCE_PATTERN = re.compile(r"^\s*(```|~~~).*$", re.MULTILINE)
_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REFERENCE_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
_LINK_DEFINITION_PATTERN = re.compile(r"^\s*\[[^\]]+\]:\s+\S+.*$", re.MULTILINE)
_HEADING_PATTERN = re.compile(r"^\s{0,3}#{1,6}\s+(.*?)\s*#*\s*$", re.MULTILINE)
_SETEXT_PATTERN = re.compile(r"^\s*(=+|-+)\s*$", re.MULTILINE)
_BLOCKQUOTE_PATTERN = re.compile(r"^\s*>\s?", re.MULTILINE)
_LIST_MARKER_PATTERN = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+", re.MULTILINE)
_EMPHASIS_PATTERN = re.compile(r"(\*\*|__|\*|_|~~)(?=\S)(.+?)(?<=\S)\1")
_INLINE_CODE_PATTERN = re.compile(r"`([^`]*)`")
_TABLE_RULE_PATTERN = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$", re.MULTILINE)
_WHITESPACE_PATTERN = re.compile(r"\s+")


def plain_text(markdown: str) -> str:
    """Strip Markdown, HTML and Hugo shortcode markup, returning readable text.

    Example:
        >>> plain_text("# Title\\n\\nSome **bold** [link](/x/) {{< ref \\"a\\" >}}")
        'Title Some bold link'
    """
    if not markdown:
        return ""

    text = _SHORTCODE_PATTERN.sub(" ", markdown)
    text = _HTML_COMMENT_PATTERN.sub(" ", text)
    text = _FENCE_PATTERN.sub(" ", text)
    text = _TABLE_RULE_PATTERN.sub(" ", text)
    text = _LINK_DEFINITION_PATTERN.sub(" ", text)
    text = _IMAGE_PATTERN.sub(r"\1", text)
    text = _LINK_PATTERN.sub(r"\1", text)
    text = _REFERENCE_LINK_PATTERN.sub(r"\1", text)
    text = _HEADING_PATTERN.sub(r"\1", text)
    text = _SETEXT_PATTERN.sub(" ", text)
    text = _BLOCKQUOTE_PATTERN.sub("", text)
    text = _LIST_MARKER_PATTERN.sub("", text)
    text = _HTML_TAG_PATTERN.sub(" ", text)
    text = _INLINE_CODE_PATTERN.sub(r"\1", text)
    text = _EMPHASIS_PATTERN.sub(r"\2", text)
    text = text.replace("|", " ")
    text = html.unescape(text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def summarize(body: str, length: int = DEFAULT_SUMMARY_LENGTH) -> str:
    """Build a page summary the way Hugo does.

    Content above a ``<!--more-->`` divider wins; otherwise the first
    ``length`` words of the plain text are used.
    """
    if SUMMARY_DIVIDER in body:
        manual, _, _ = body.partition(SUMMARY_DIVIDER)
        return plain_text(manual)

    words = plain_text(body).split()
    if len(words) <= length:
        return " ".join(words)
    return " ".join(words[:length]) + " …"


def word_count(text: str) -> int:
    return len(text.split())


def first_heading(markdown: str) -> str | None:
    """Return the text of the first Markdown heading, if any."""
    for match in _HEADING_PATTERN.finditer(markdown):
        heading = plain_text(match.group(1))
        if heading:
            return heading
    return None


def normalize_terms(candidate: object) -> list[str]:
    """Coerce a front matter taxonomy value into a list of strings."""
    if candidate is None:
        return []
    if isinstance(candidate, str):
        return [part.strip() for part in candidate.split(",") if part.strip()]
    if isinstance(candidate, Iterable):
        return [str(item).strip() for item in candidate if item is not None and str(item).strip()]
    return [str(candidate)]
