"""Seeds raw articles from the oldest page of a paginated blog listing."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from article_store import ArticleStore
from content_extractor import extract_content, extract_title, parse_html
from page_fetcher import PageFetcher

LOGGER = logging.getLogger(__name__)

_PAGINATION_SELECTOR = ".pagination a, .page-numbers a"
_PAGE_NUMBER_RE = re.compile(r"/page/(\d+)")
_PRIMARY_LINK_SELECTOR = "h2.entry-title a, .post-title a, article h2 a"
_EXCLUDED_PATH_PARTS = ("/tag/", "/page/", "/category/")
_MIN_FALLBACK_LINK_TEXT = 10


class DiscoveryIngester:
    """One-shot scan of a listing site that creates unenhanced articles."""

    def __init__(
        self,
        store: ArticleStore,
        fetcher: PageFetcher,
        base_url: str,
        max_articles: int = 5,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._max_articles = max_articles

    def ingest(self) -> int:
        """Create records for new article links; return how many were created."""
        try:
            root_html = self._fetcher.fetch_html(self._base_url)
            last_page = find_last_page(root_html)
            LOGGER.info("Found last listing page: %s", last_page)

            if last_page == 1:
                listing_url, listing_html = self._base_url, root_html
            else:
                listing_url = f"{self._base_url}page/{last_page}/"
                listing_html = self._fetcher.fetch_html(listing_url)
        except requests.RequestException as exc:
            LOGGER.error("Could not fetch listing %s: %s", self._base_url, exc)
            return 0

        links = extract_article_links(listing_html, self._base_url, page_url=listing_url)
        links = links[: self._max_articles]
        LOGGER.info("Found %s articles to ingest from %s", len(links), listing_url)

        created = 0
        for link in links:
            try:
                if self._ingest_one(link):
                    created += 1
            except Exception as exc:  # one bad page or rejected record must not stop the rest
                LOGGER.error("Failed to ingest %s: %s", link, exc)

        LOGGER.info("Discovery complete. links=%s created=%s", len(links), created)
        return created

    def _ingest_one(self, link: str) -> bool:
        if self._store.find_by_source_url(link) is not None:
            LOGGER.info("Article already exists, skipping: %s", link)
            return False

        LOGGER.info("Ingesting: %s", link)
        html = self._fetcher.fetch_html(link)
        title = extract_title(html)
        content = extract_content(html)

        if not title or not content:
            LOGGER.warning("Missing title or body, skipping: %s", link)
            return False

        self._store.create(title=title, original_content=content, source_url=link)
        LOGGER.info("Saved: %s", title)
        return True


def find_last_page(listing_html: str) -> int:
    """Return the highest page number linked from pagination controls (default 1)."""
    soup = parse_html(listing_html)
    last_page = 1
    for anchor in soup.select(_PAGINATION_SELECTOR):
        match = _PAGE_NUMBER_RE.search(anchor.get("href") or "")
        if match:
            last_page = max(last_page, int(match.group(1)))
    return last_page


def extract_article_links(listing_html: str, base_url: str, page_url: str | None = None) -> list[str]:
    """Return unique article URLs in page order.

    Title links inside article headings are preferred. Only when none match
    are all anchors under ``base_url`` considered, and then the anchor text
    must look like a title.
    """
    soup = parse_html(listing_html)
    page_url = page_url or base_url

    links = _collect_links(soup, _PRIMARY_LINK_SELECTOR, base_url, page_url, min_text=0)
    if not links:
        links = _collect_links(soup, "a[href]", base_url, page_url, min_text=_MIN_FALLBACK_LINK_TEXT)
    return list(dict.fromkeys(links))


def _collect_links(
    soup: BeautifulSoup,
    selector: str,
    base_url: str,
    page_url: str,
    min_text: int,
) -> list[str]:
    links: list[str] = []
    for anchor in soup.select(selector):
        href = anchor.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        url = urljoin(page_url, href.strip())
        if min_text and len(anchor.get_text(strip=True)) <= min_text:
            continue
        if _looks_like_article(url, base_url):
            links.append(url)
    return links


def _looks_like_article(url: str, base_url: str) -> bool:
    if not url.startswith(base_url) or url.rstrip("/") == base_url.rstrip("/"):
        return False
    if any(part in url for part in _EXCLUDED_PATH_PARTS):
        return False
    # Article slugs are hyphenated; navigation links generally are not.
    return "-" in url[len(base_url):]
