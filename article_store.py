"""HTTP client for the article CRUD API (the record store)."""

from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime
from typing import Any, Callable, Iterator, Protocol, Sequence

import requests

from config import PipelineConfig, require
from models import Article

LOGGER = logging.getLogger(__name__)

MAX_RETRIES = 3
PAGE_SIZE = 100


class ArticleStoreError(RuntimeError):
    """The record store could not be read or written."""


class ArticleStore(Protocol):
    def list_unenhanced(self) -> list[Article]: ...

    def find_by_source_url(self, source_url: str) -> Article | None: ...

    def create(self, title: str, original_content: str, source_url: str | None = None) -> Article: ...

    def update(
        self,
        article_id: str,
        *,
        updated_content: str | None = None,
        references: Sequence[str] | None = None,
        is_updated: bool | None = None,
    ) -> Article: ...


def build_store(config: PipelineConfig) -> ArticleStore:
    """Return the record store selected by ARTICLE_STORE."""
    if config.article_store == "csv":
        from csv_store import CsvArticleStore  # noqa: PLC0415

        return CsvArticleStore(config.article_csv_path)
    if config.article_store == "api":
        return ApiArticleStore(config)
    raise RuntimeError(f"Unsupported ARTICLE_STORE: {config.article_store!r}")


class ApiArticleStore:
    """Talks to ``{ARTICLE_API_BASE}/articles`` with retry and backoff."""

    def __init__(self, config: PipelineConfig, sleep: Callable[[float], None] = time.sleep) -> None:
        self._base = require(config.article_api_base, "ARTICLE_API_BASE").rstrip("/")
        self._timeout = config.store_timeout_seconds
        self._sleep = sleep
        self._headers = {"Content-Type": "application/json"}
        if config.article_api_key:
            self._headers["X-API-KEY"] = config.article_api_key

    def list_unenhanced(self) -> list[Article]:
        articles = [a for a in self._iter_articles({"isUpdated": "false"}) if not a.is_updated]
        LOGGER.info("Record store returned %s unenhanced articles", len(articles))
        return articles

    def find_by_source_url(self, source_url: str) -> Article | None:
        # The listing endpoint has no exact-match filter, so scan and compare.
        for article in self._iter_articles({"sourceUrl": source_url}):
            if article.source_url == source_url:
                return article
        return None

    def create(self, title: str, original_content: str, source_url: str | None = None) -> Article:
        payload: dict[str, Any] = {"title": title, "originalContent": original_content}
        if source_url:
            payload["sourceUrl"] = source_url
        body = self._request("POST", f"{self._base}/articles", json_payload=payload)
        return article_from_api(_unwrap_article(body))

    def update(
        self,
        article_id: str,
        *,
        updated_content: str | None = None,
        references: Sequence[str] | None = None,
        is_updated: bool | None = None,
    ) -> Article:
        payload: dict[str, Any] = {}
        if updated_content is not None:
            payload["updatedContent"] = updated_content
        if references is not None:
            payload["references"] = list(references)
        if is_updated is not None:
            payload["isUpdated"] = is_updated

        body = self._request("PUT", f"{self._base}/articles/{article_id}", json_payload=payload)
        return article_from_api(_unwrap_article(body))

    def _iter_articles(self, params: dict[str, Any]) -> Iterator[Article]:
        page = 1
        while True:
            body = self._request(
                "GET",
                f"{self._base}/articles",
                params={**params, "page": page, "limit": PAGE_SIZE},
            )
            items = body.get("articles") if isinstance(body, dict) else None
            if not isinstance(items, list):
                raise ArticleStoreError(f"Unexpected article list payload: {str(body)[:200]}")
            for item in items:
                if isinstance(item, dict):
                    yield article_from_api(item)

            pagination = body.get("pagination") or {}
            if not items or not pagination.get("hasNext"):
                return
            page += 1

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request with exponential backoff on 429 and transport errors."""
        delay_seconds = 1.0
        last_error: Exception | None = None

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_payload,
                    timeout=self._timeout,
                )
                if response.status_code == 429 and attempt < MAX_RETRIES:
                    self._sleep(delay_seconds)
                    delay_seconds *= 2
                    continue
                response.raise_for_status()
                return response.json()
            except requests.HTTPError as exc:
                last_error = exc
                # Client errors other than 429 will not go away on retry.
                if exc.response is not None and 400 <= exc.response.status_code < 500:
                    break
            except (requests.RequestException, ValueError) as exc:
                last_error = exc

            if attempt >= MAX_RETRIES:
                break
            self._sleep(delay_seconds)
            delay_seconds *= 2

        response_text = ""
        if isinstance(last_error, requests.HTTPError) and last_error.response is not None:
            try:
                response_text = json.dumps(last_error.response.json())
            except ValueError:
                response_text = last_error.response.text

        raise ArticleStoreError(f"{method} {url} failed: {last_error} {response_text}".strip())


def article_from_api(item: dict[str, Any]) -> Article:
    """Map one camelCase API document onto an Article."""
    references = item.get("references")
    return Article(
        article_id=str(item.get("_id") or item.get("id") or ""),
        title=_as_str(item.get("title")),
        original_content=_as_str(item.get("originalContent")),
        updated_content=item.get("updatedContent") or None,
        references=tuple(r for r in references if isinstance(r, str)) if isinstance(references, list) else (),
        source_url=item.get("sourceUrl") or None,
        is_updated=bool(item.get("isUpdated", False)),
        created_at=parse_timestamp(item.get("createdAt")),
        updated_at=parse_timestamp(item.get("updatedAt")),
    )


def parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None

    # Mongo/Express timestamps come back as ISO-8601 with a trailing Z.
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _unwrap_article(body: Any) -> dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("article"), dict):
        return body["article"]
    if isinstance(body, dict) and ("_id" in body or "id" in body):
        return body
    raise ArticleStoreError(f"Unexpected article payload: {str(body)[:200]}")


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
