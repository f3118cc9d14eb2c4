"""Fetches reference pages and reduces them to bounded plain text."""

from __future__ import annotations

import logging

import requests

from config import PipelineConfig
from content_extractor import extract_content
from models import FetchStatus, ReferenceContent
from rate_limiter import RateLimiter

LOGGER = logging.getLogger(__name__)

MAX_REFERENCE_CHARS = 2000

# Plenty of blogs reject the default python-requests agent outright.
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class PageFetcher:
    """Rate-limited HTTP GET with a browser user agent."""

    def __init__(self, config: PipelineConfig, limiter: RateLimiter | None = None) -> None:
        self._timeout = config.fetch_timeout_seconds
        self._limiter = limiter or RateLimiter("fetch", config.fetch_interval_seconds)
        self._headers = {"User-Agent": USER_AGENT}

    def fetch_html(self, url: str) -> str:
        """Return the raw page body. Raises ``requests.RequestException`` on failure."""
        self._limiter.acquire()
        response = requests.get(url, headers=self._headers, timeout=self._timeout)
        response.raise_for_status()
        return response.text

    def fetch(self, url: str) -> ReferenceContent:
        """Fetch one reference page and extract at most MAX_REFERENCE_CHARS of text."""
        try:
            html = self.fetch_html(url)
        except requests.RequestException as exc:
            LOGGER.warning("Failed to fetch %s: %s", url, exc)
            return ReferenceContent(url=url, status=FetchStatus.FETCH_FAILED)

        text = extract_content(html, min_length=None)
        if not text:
            LOGGER.info("No content found at %s", url)
            return ReferenceContent(url=url, status=FetchStatus.NOT_FOUND)

        return ReferenceContent(url=url, status=FetchStatus.FOUND, text=text[:MAX_REFERENCE_CHARS])
