from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import requests

from article_store import ArticleStoreError
from csv_store import CsvArticleStore
from discovery import DiscoveryIngester, extract_article_links, find_last_page

BASE = "https://beyondchats.com/blogs/"

_ROOT_HTML = f"""
<html><body>
  <h2 class="entry-title"><a href="{BASE}newest-post/">Newest</a></h2>
  <nav class="pagination">
    <a href="{BASE}page/2/">2</a>
    <a href="{BASE}page/15/">15</a>
    <a href="{BASE}page/3/">Next</a>
  </nav>
</body></html>
"""

_LAST_PAGE_HTML = f"""
<html><body>
  <article><h2 class="entry-title"><a href="{BASE}first-old-post/">First old post</a></h2></article>
  <article><h2 class="entry-title"><a href="{BASE}second-old-post/">Second old post</a></h2></article>
  <article><h2 class="entry-title"><a href="{BASE}first-old-post/">First old post again</a></h2></article>
  <article><h2 class="entry-title"><a href="{BASE}tag/some-tag/">Tag</a></h2></article>
  <article><h2 class="entry-title"><a href="https://elsewhere.example/an-article/">Offsite</a></h2></article>
</body></html>
"""


def _article_html(title: str) -> str:
    body = f"{title} explains how support teams use chatbots to resolve tickets faster. " * 3
    return f"<html><head><title>{title} | Blog</title></head><body><h1 class='entry-title'>{title}</h1><div class='entry-content'><p>{body}</p></div></body></html>"


def _fetcher(pages: dict[str, str]) -> MagicMock:
    fetcher = MagicMock()

    def fetch_html(url: str) -> str:
        if url not in pages:
            raise requests.ConnectionError(f"unreachable: {url}")
        return pages[url]

    fetcher.fetch_html.side_effect = fetch_html
    return fetcher


def _pages() -> dict[str, str]:
    return {
        BASE: _ROOT_HTML,
        f"{BASE}page/15/": _LAST_PAGE_HTML,
        f"{BASE}first-old-post/": _article_html("First old post"),
        f"{BASE}second-old-post/": _article_html("Second old post"),
    }


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def test_find_last_page_takes_max_page_number() -> None:
    assert find_last_page(_ROOT_HTML) == 15


def test_find_last_page_defaults_to_one() -> None:
    assert find_last_page("<html><body><p>No pagination</p></body></html>") == 1


def test_primary_links_are_filtered_and_deduplicated() -> None:
    links = extract_article_links(_LAST_PAGE_HTML, BASE)
    assert links == [f"{BASE}first-old-post/", f"{BASE}second-old-post/"]


def test_fallback_links_require_title_like_text() -> None:
    html = f"""
    <div>
      <a href="{BASE}short-text/">Read</a>
      <a href="{BASE}category/news/">Category of things here</a>
      <a href="{BASE}about/">About this blog and its authors</a>
      <a href="/blogs/relative-article-link/">A relative article link title</a>
      <a href="{BASE}a-real-article/">A real article with a long title</a>
    </div>
    """
    links = extract_article_links(html, BASE)
    assert links == [f"{BASE}relative-article-link/", f"{BASE}a-real-article/"]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

def test_ingest_creates_raw_articles_from_last_page(tmp_path: Path) -> None:
    store = CsvArticleStore(str(tmp_path / "articles.csv"))
    ingester = DiscoveryIngester(store, _fetcher(_pages()), BASE)

    assert ingester.ingest() == 2

    articles = store.list_unenhanced()
    assert [a.title for a in articles] == ["First old post", "Second old post"]
    assert articles[0].source_url == f"{BASE}first-old-post/"
    assert "resolve tickets faster" in articles[0].original_content
    assert all(not a.is_updated for a in articles)


def test_second_run_creates_nothing(tmp_path: Path) -> None:
    store = CsvArticleStore(str(tmp_path / "articles.csv"))
    fetcher = _fetcher(_pages())

    assert DiscoveryIngester(store, fetcher, BASE).ingest() == 2
    assert DiscoveryIngester(store, fetcher, BASE).ingest() == 0
    assert len(store.list_unenhanced()) == 2


def test_failed_link_does_not_abort_the_rest(tmp_path: Path) -> None:
    pages = _pages()
    del pages[f"{BASE}first-old-post/"]
    store = CsvArticleStore(str(tmp_path / "articles.csv"))

    assert DiscoveryIngester(store, _fetcher(pages), BASE).ingest() == 1
    assert [a.title for a in store.list_unenhanced()] == ["Second old post"]


class _RejectingStore(CsvArticleStore):
    """CSV store whose backend refuses one source URL."""

    def __init__(self, path: str, rejected_url: str) -> None:
        super().__init__(path)
        self._rejected_url = rejected_url

    def create(self, title: str, original_content: str, source_url: str | None = None):
        if source_url == self._rejected_url:
            raise ArticleStoreError("create rejected: 422")
        return super().create(title, original_content, source_url)


def test_rejected_record_does_not_abort_the_rest(tmp_path: Path) -> None:
    store = _RejectingStore(str(tmp_path / "articles.csv"), f"{BASE}first-old-post/")

    assert DiscoveryIngester(store, _fetcher(_pages()), BASE).ingest() == 1
    assert [a.title for a in store.list_unenhanced()] == ["Second old post"]


def test_existing_articles_are_not_fetched_again(tmp_path: Path) -> None:
    store = CsvArticleStore(str(tmp_path / "articles.csv"))
    DiscoveryIngester(store, _fetcher(_pages()), BASE).ingest()
    fetcher = _fetcher(_pages())

    assert DiscoveryIngester(store, fetcher, BASE).ingest() == 0

    fetched = [c.args[0] for c in fetcher.fetch_html.call_args_list]
    assert f"{BASE}first-old-post/" not in fetched
    assert f"{BASE}second-old-post/" not in fetched


def test_respects_max_articles(tmp_path: Path) -> None:
    store = CsvArticleStore(str(tmp_path / "articles.csv"))
    assert DiscoveryIngester(store, _fetcher(_pages()), BASE, max_articles=1).ingest() == 1


def test_unreachable_listing_returns_zero() -> None:
    store = MagicMock()
    assert DiscoveryIngester(store, _fetcher({}), BASE).ingest() == 0
    store.create.assert_not_called()


def test_single_page_listing_uses_root(tmp_path: Path) -> None:
    pages = _pages()
    pages[BASE] = _LAST_PAGE_HTML
    store = CsvArticleStore(str(tmp_path / "articles.csv"))
    fetcher = _fetcher(pages)

    assert DiscoveryIngester(store, fetcher, BASE).ingest() == 2
    fetched = [c.args[0] for c in fetcher.fetch_html.call_args_list]
    assert f"{BASE}page/15/" not in fetched
