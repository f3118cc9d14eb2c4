"""Record store backed by a local CSV file, for running without the CRUD API."""

from __future__ import annotations

import csv
import json
import logging
import os
import uuid
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Sequence

from article_store import ArticleStoreError, parse_timestamp
from models import Article

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "title",
    "original_content",
    "updated_content",
    "references",       # JSON list of URLs
    "source_url",
    "is_updated",       # "true" | "false"
    "created_at",
    "updated_at",
]


class CsvArticleStore:
    """Whole-file CSV store. Every write rewrites the file through a temp file."""

    def __init__(self, csv_path: str) -> None:
        self.path = Path(csv_path)

    def list_unenhanced(self) -> list[Article]:
        return [article for article in self._load() if not article.is_updated]

    def find_by_source_url(self, source_url: str) -> Article | None:
        for article in self._load():
            if article.source_url == source_url:
                return article
        return None

    def create(self, title: str, original_content: str, source_url: str | None = None) -> Article:
        title = title.strip() if isinstance(title, str) else ""
        original_content = original_content.strip() if isinstance(original_content, str) else ""
        if not title:
            raise ArticleStoreError("Title is required and must be a non-empty string")
        if not original_content:
            raise ArticleStoreError("Original content is required and must be a non-empty string")

        now = datetime.now(UTC)
        article = Article(
            article_id=uuid.uuid4().hex,
            title=title,
            original_content=original_content,
            source_url=source_url.strip() if source_url else None,
            created_at=now,
            updated_at=now,
        )
        articles = self._load()
        articles.append(article)
        self._save(articles)
        LOGGER.info("Created article id=%s in %s", article.article_id, self.path)
        return article

    def update(
        self,
        article_id: str,
        *,
        updated_content: str | None = None,
        references: Sequence[str] | None = None,
        is_updated: bool | None = None,
    ) -> Article:
        articles = self._load()
        for index, article in enumerate(articles):
            if article.article_id != article_id:
                continue
            changes: dict[str, object] = {"updated_at": datetime.now(UTC)}
            if updated_content is not None:
                changes["updated_content"] = updated_content.strip()
            if references is not None:
                changes["references"] = tuple(references)
            if is_updated is not None:
                changes["is_updated"] = is_updated
            articles[index] = replace(article, **changes)
            self._save(articles)
            return articles[index]

        raise ArticleStoreError(f"Article not found: {article_id}")

    def _load(self) -> list[Article]:
        if not self.path.exists():
            return []

        try:
            with self.path.open(newline="", encoding="utf-8") as fh:
                return [_row_to_article(row) for row in csv.DictReader(fh)]
        except (OSError, csv.Error, ValueError) as exc:
            raise ArticleStoreError(f"Could not read {self.path}: {exc}") from exc

    def _save(self, articles: list[Article]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", newline="", encoding="utf-8") as fh:
                writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
                writer.writeheader()
                for article in articles:
                    writer.writerow(_article_to_row(article))
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise ArticleStoreError(f"Could not write {self.path}: {exc}") from exc


def _article_to_row(article: Article) -> dict[str, str]:
    return {
        "id": article.article_id,
        "title": article.title,
        "original_content": article.original_content,
        "updated_content": article.updated_content or "",
        "references": json.dumps(list(article.references)),
        "source_url": article.source_url or "",
        "is_updated": "true" if article.is_updated else "false",
        "created_at": article.created_at.isoformat() if article.created_at else "",
        "updated_at": article.updated_at.isoformat() if article.updated_at else "",
    }


def _row_to_article(row: dict[str, str]) -> Article:
    references = json.loads(row.get("references") or "[]")
    return Article(
        article_id=row.get("id", ""),
        title=row.get("title", ""),
        original_content=row.get("original_content", ""),
        updated_content=row.get("updated_content") or None,
        references=tuple(references) if isinstance(references, list) else (),
        source_url=row.get("source_url") or None,
        is_updated=row.get("is_updated") == "true",
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )
