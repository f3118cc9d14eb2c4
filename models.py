"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class Article:
    """Transient copy of one article record held by the record store."""

    article_id: str
    title: str
    original_content: str
    updated_content: str | None = None
    references: tuple[str, ...] = ()
    source_url: str | None = None
    is_updated: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FetchStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True, slots=True)
class ReferenceContent:
    """Extracted text of one reference page, tagged with how the fetch went."""

    url: str
    status: FetchStatus
    text: str = ""

    @property
    def ok(self) -> bool:
        # NOT_FOUND still counts: the page was reachable, it just had no body.
        return self.status is not FetchStatus.FETCH_FAILED


SKIP_INSUFFICIENT_REFERENCES = "insufficient_references"
SKIP_SCRAPE_FAILED = "scrape_failed"
SKIP_REWRITE_UNCHANGED = "rewrite_unchanged"


@dataclass(slots=True)
class RunReport:
    """Counters for one orchestrator run, updated live while it progresses."""

    attempted: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    skip_reasons: dict[str, int] = field(default_factory=dict)

    def record_skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def as_dict(self) -> dict[str, object]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "skip_reasons": dict(self.skip_reasons),
        }
