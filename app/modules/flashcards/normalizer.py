"""Clean raw input text before analysis.

``normalize`` is the HTML path used for imported pages: it flattens the
document to a single line of plain text. ``prepare_pasted`` applies the same
cleanup to pasted text but keeps paragraph breaks so the analyzer can still
see the document's sections.
"""

from __future__ import annotations

import re

from app.core.config import settings

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_INLINE_SPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")

# Only this fixed set is decoded; anything else is left as-is.
_ENTITIES = {
    "&nbsp;": " ",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}


def _decode_entities(text: str) -> str:
    for entity, char in _ENTITIES.items():
        text = text.replace(entity, char)
    return text.replace("&amp;", "&")


def _strip_markup(text: str) -> str:
    text = _SCRIPT_RE.sub(" ", text)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return _decode_entities(text)


def _strip_until_stable(text: str) -> str:
    # Decoding can surface new markup ("&lt;b&gt;"), so repeat until stable.
    # Every pass that changes something makes the text shorter.
    previous = None
    while text != previous:
        previous = text
        text = _strip_markup(text)
    return text


def normalize(html: str, max_chars: int | None = None) -> str:
    """Strip markup from ``html`` and return at most ``max_chars`` of plain text.

    Truncation keeps the prefix and ignores sentence boundaries.
    """
    limit = settings.importer.max_chars if max_chars is None else max_chars
    text = _strip_until_stable(html or "")
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:limit].rstrip()


def prepare_pasted(text: str, max_chars: int | None = None) -> str:
    """Strip markup from pasted text while keeping blank-line paragraph boundaries."""
    limit = settings.importer.max_chars if max_chars is None else max_chars
    value = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    value = _strip_until_stable(value)
    lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in value.split("\n")]
    value = "\n".join(lines)
    value = _BLANK_LINES_RE.sub("\n\n", value).strip()
    return value[:limit].rstrip()
