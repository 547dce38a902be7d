from __future__ import annotations

import re

from bs4 import BeautifulSoup

# NewsAPI truncates `content` and appends e.g. "… [+2381 chars]"
_TRUNCATION_MARKER_RE = re.compile(r"\s*(?:…|\.\.\.)?\s*\[\+\d+ chars\]\s*$")


def normalize_text(text: str) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    return text


def extract_text_from_html_fragment(html_fragment: str) -> str:
    """Convert an HTML snippet (e.g., a provider description) to plain text."""

    if not html_fragment or "<" not in html_fragment:
        return html_fragment or ""
    soup = BeautifulSoup(html_fragment, "lxml")
    return soup.get_text(" ", strip=True)


def clean_field(value: object) -> str:
    if value is None:
        return ""
    return normalize_text(extract_text_from_html_fragment(str(value)))


def strip_truncation_marker(text: str) -> str:
    return _TRUNCATION_MARKER_RE.sub("", text or "")


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
