"""HTML cleanup helpers for screen-scraped import sources."""

from __future__ import annotations

import html
import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")


def replace_html_entities(text: str) -> str:
    """Decode HTML character references (``&amp;``, ``&#39;``, ``&nbsp;``...).

    Non-breaking spaces are turned into plain spaces so that scraped values
    compare equal to typed ones.
    """
    return html.unescape(text).replace("\xa0", " ")


def remove_html(text: str) -> str:
    """Strip markup, decode entities and collapse whitespace.

    Args:
        text: HTML fragment, e.g. ``'<a href="/x">Metal Blade</a>&nbsp;'``.

    Returns:
        Plain text, trimmed (``'Metal Blade'``).
    """
    if not text:
        return ""
    plain = BeautifulSoup(text, "html.parser").get_text(" ")
    plain = plain.replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", plain).strip()
