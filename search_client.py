"""Serper web search client used to find reference articles."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import requests

from config import PipelineConfig, require
from rate_limiter import RateLimiter

LOGGER = logging.getLogger(__name__)

QUERY_QUALIFIER = "blog article"
MAX_RESULTS = 2

# Social and video platforms rarely carry long-form text worth citing.
_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "facebook.com",
    "twitter.com",
    "x.com",
    "youtube.com",
    "instagram.com",
    "tiktok.com",
)


class SearchClient:
    """Looks up candidate reference URLs for an article title."""

    def __init__(self, config: PipelineConfig, limiter: RateLimiter | None = None) -> None:
        self._api_key = require(config.serper_api_key, "SERPER_API_KEY")
        self._url = config.search_url
        self._timeout = config.search_timeout_seconds
        self._limiter = limiter or RateLimiter("search", config.search_interval_seconds)

    def search(self, query: str) -> list[str]:
        """Return up to two reference URLs in provider rank order.

        Errors of any kind are logged and produce an empty list.
        """
        self._limiter.acquire()
        payload = {"q": f"{query} {QUERY_QUALIFIER}"}
        headers = {"X-API-KEY": self._api_key, "Content-Type": "application/json"}

        try:
            response = requests.post(self._url, json=payload, headers=headers, timeout=self._timeout)
            response.raise_for_status()
            organic = response.json().get("organic") or []
        except (requests.RequestException, ValueError, AttributeError) as exc:
            LOGGER.warning("Search failed for query=%r: %s", query, exc)
            return []

        links = filter_result_links(organic)
        LOGGER.info("Search for %r returned %s usable links", query, len(links))
        return links


def filter_result_links(organic: list[Any], limit: int = MAX_RESULTS) -> list[str]:
    """Drop unusable and social links, dedupe, and keep the top ``limit``."""
    links: list[str] = []
    for result in organic:
        link = result.get("link") if isinstance(result, dict) else None
        if not isinstance(link, str) or not link.strip():
            continue
        link = link.strip()
        if _is_excluded(link) or link in links:
            continue
        links.append(link)
        if len(links) >= limit:
            break
    return links


def _is_excluded(link: str) -> bool:
    host = urlparse(link).netloc.lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in _EXCLUDED_DOMAINS)
