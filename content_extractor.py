"""Heuristic plain-text extraction from blog-style HTML pages."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

LOGGER = logging.getLogger(__name__)

# Most to least specific. Container selectors first, then paragraph-level ones.
CONTENT_SELECTORS: tuple[str, ...] = (
    ".entry-content",
    ".post-content",
    ".content",
    "article .content",
    ".entry-content p",
    "article p",
)

DEFAULT_MIN_LENGTH = 100

_NOISE_TAGS = ("script", "style", "noscript")


def parse_html(raw_html: str) -> BeautifulSoup:
    soup = BeautifulSoup(raw_html or "", "html.parser")
    for tag in soup.find_all(_NOISE_TAGS):
        tag.decompose()
    return soup


def extract_content(raw_html: str, min_length: int | None = DEFAULT_MIN_LENGTH) -> str:
    """Return the best-effort article body of a page as plain text.

    Each selector's matches are joined with blank lines. The first candidate
    longer than ``min_length`` wins; with ``min_length=None`` the first
    non-empty candidate wins. When nothing qualifies, every ``<p>`` on the page
    is used instead, and the longer of that and the best candidate is returned.
    Never raises: an unusable page yields an empty string.
    """
    try:
        soup = parse_html(raw_html)
    except Exception as exc:  # html.parser is lenient, but input is untrusted
        LOGGER.warning("Could not parse HTML: %s", exc)
        return ""

    threshold = 0 if min_length is None else min_length
    best = ""
    for selector in CONTENT_SELECTORS:
        candidate = _join_blocks(soup.select(selector))
        if not candidate:
            continue
        if len(candidate) > threshold:
            LOGGER.debug("Content matched selector %r (%s chars)", selector, len(candidate))
            return candidate
        if len(candidate) > len(best):
            best = candidate

    fallback = _join_blocks(soup.find_all("p"))
    return fallback if len(fallback) > len(best) else best


def extract_title(raw_html: str) -> str:
    """Return the page title: entry heading, first h1, og:title, then <title>."""
    try:
        soup = parse_html(raw_html)
    except Exception as exc:
        LOGGER.warning("Could not parse HTML for title: %s", exc)
        return ""

    for selector in ("h1.entry-title", "h1"):
        heading = soup.select_one(selector)
        if heading is not None:
            text = heading.get_text(" ", strip=True)
            if text:
                return text

    meta = soup.select_one('meta[property="og:title"]')
    if meta is not None:
        content = meta.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()

    if soup.title is not None:
        return soup.title.get_text(strip=True)
    return ""


def _join_blocks(elements) -> str:
    texts = (element.get_text(" ", strip=True) for element in elements)
    return "\n\n".join(text for text in texts if text)
