"""HTML cleaning utility for listing titles and descriptions."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Entities the upstream CMS emits in rendered titles and content
HTML_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#039;": "'",
    "&#8217;": "'",
    "&#8216;": "'",
    "&#8220;": '"',
    "&#8221;": '"',
    "&#8211;": "–",
    "&#8212;": "—",
    "&nbsp;": " ",
    "&ndash;": "–",
    "&mdash;": "—",
    "&rsquo;": "'",
    "&lsquo;": "'",
    "&rdquo;": '"',
    "&ldquo;": '"',
}

_NUMERIC_ENTITY_RE = re.compile(r"&#(\d+);")
_WS_RE = re.compile(r"\s+")


def decode_entities(text: str | None) -> str:
    """Decode the fixed entity table, then any remaining decimal entities."""
    if not text:
        return ""

    for entity, char in HTML_ENTITIES.items():
        text = text.replace(entity, char)

    return _NUMERIC_ENTITY_RE.sub(_numeric_entity, text)


def _numeric_entity(match: re.Match) -> str:
    try:
        return chr(int(match.group(1)))
    except (ValueError, OverflowError):
        return match.group(0)


def clean_html(raw_html: str | None) -> str:
    """Strip HTML tags, normalize whitespace and decode entities."""
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")

    # Remove script and style elements
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")
    text = _WS_RE.sub(" ", text).strip()

    # Double-encoded entities survive the parser's own decoding pass
    return decode_entities(text)


def truncate(text: str, max_chars: int, marker: str = "...") -> str:
    """Cut text to max_chars, appending marker only when something was cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker
