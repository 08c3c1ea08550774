"""Pure text helpers: slugs, tags, truncation, tag stripping, token templates."""

from __future__ import annotations

import re
from collections.abc import Mapping

_NON_SLUG_RE = re.compile(r"[^\w-]")
_WHITESPACE_RE = re.compile(r"\s+")
_FIRST_SENTENCE_RE = re.compile(r"^[^.]+")
_HTML_TAG_RE = re.compile(r"<[^<]+?>")
_TOKEN_RE = re.compile(r"\{(\w+)\}")

ELLIPSIS = "…"


def remove_non_slug_chars(text: str) -> str:
    """Drop everything except word characters and dashes."""
    return _NON_SLUG_RE.sub("", text)


def to_slug(text: str) -> str:
    """My Title! -> my-title"""
    slug = _WHITESPACE_RE.sub("-", text.strip().lower())
    return remove_non_slug_chars(slug)


def to_tag(term: str) -> str:
    """Like to_slug(), but spaces become underscores so tags stay hashtag-safe."""
    tag = _WHITESPACE_RE.sub("_", term.strip().lower())
    return remove_non_slug_chars(tag)


def first_sentence(plain_text: str) -> str:
    match = _FIRST_SENTENCE_RE.search(plain_text)
    return match.group(0) if match else ""


def truncate(text: str, max_chars: int, suffix: str = ELLIPSIS) -> str:
    """Truncate on a word boundary, appending suffix when anything was cut."""
    stripped = text.strip()
    if len(stripped) <= max_chars:
        return stripped
    words = stripped[:max_chars].split()
    # Last word is likely cut mid-way
    return " ".join(words[:-1]) + suffix


def truncate_280(text: str) -> str:
    return truncate(text, 280)


def strip_html(html: str) -> str:
    """Remove anything between angle brackets. Not an HTML parser."""
    return _HTML_TAG_RE.sub("", html)


def render_tokens(template: str, parts: Mapping[str, str]) -> str:
    """Replace ``{key}`` tokens with values from parts.

    Tokens with no matching key are left as-is, so a half-configured template
    produces a visibly wrong path rather than an exception.
    """

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        return parts[key] if key in parts else m.group(0)

    return _TOKEN_RE.sub(_sub, template)
