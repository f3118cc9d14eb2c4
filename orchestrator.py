"""Enhancement run: search, scrape, rewrite and persist each unenhanced article."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable

from article_store import ArticleStore, ArticleStoreError
from models import (
    SKIP_INSUFFICIENT_REFERENCES,
    SKIP_REWRITE_UNCHANGED,
    SKIP_SCRAPE_FAILED,
    Article,
    RunReport,
)
from page_fetcher import PageFetcher
from search_client import SearchClient
from synthesizer import Synthesizer

LOGGER = logging.getLogger(__name__)

REQUIRED_REFERENCES = 2


class EnhancementOrchestrator:
    """Processes the unenhanced article snapshot one article at a time.

    Per-article problems end in a skip or a failure and the run moves on.
    Only reading the work list or persisting a finished article is fatal:
    those raise :class:`ArticleStoreError` to the caller.
    """

    def __init__(
        self,
        store: ArticleStore,
        search_client: SearchClient | None,
        fetcher: PageFetcher | None,
        synthesizer: Synthesizer | None,
        article_delay_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._store = store
        self._search = search_client
        self._fetcher = fetcher
        self._synthesizer = synthesizer
        self._article_delay = article_delay_seconds
        self._sleep = sleep
        self.cancel_event = cancel_event or threading.Event()
        self.report = RunReport()

    def run(self, limit: int | None = None, dry_run: bool = False) -> RunReport:
        """Run one batch and return its report.

        A dry run only needs the store; the other components may be None.
        A cancellation request applies to the current run only and is cleared
        when it ends.
        """
        try:
            return self._run_batch(limit, dry_run)
        finally:
            self.cancel_event.clear()

    def _run_batch(self, limit: int | None, dry_run: bool) -> RunReport:
        self.report = RunReport()
        report = self.report

        articles = self._store.list_unenhanced()
        if limit is not None:
            articles = articles[:limit]
        LOGGER.info("Found %s articles to update", len(articles))

        if dry_run:
            for article in articles:
                LOGGER.info("[dry-run] Would enhance: %s", article.title)
            return report

        if self._search is None or self._fetcher is None or self._synthesizer is None:
            raise RuntimeError("Search, fetch and rewrite components are required for a real run")

        for index, article in enumerate(articles, start=1):
            if self.cancel_event.is_set():
                report.cancelled = True
                LOGGER.warning("Run cancelled with %s articles left", len(articles) - index + 1)
                break

            report.attempted += 1
            LOGGER.info("[%s/%s] Processing: %s", index, len(articles), article.title)
            try:
                enhanced = self._process(article, report)
            except ArticleStoreError:
                raise
            except Exception as exc:  # isolate per-article failures
                report.failed += 1
                LOGGER.exception("Failed to update %r: %s", article.title, exc)
                continue

            if enhanced and index < len(articles):
                LOGGER.info("Waiting %.0f seconds before next article", self._article_delay)
                self._sleep(self._article_delay)

        LOGGER.info(
            "Run complete. attempted=%s succeeded=%s skipped=%s failed=%s reasons=%s",
            report.attempted,
            report.succeeded,
            report.skipped,
            report.failed,
            report.skip_reasons,
        )
        return report

    def _process(self, article: Article, report: RunReport) -> bool:
        """Take one article through the pipeline; return True once it is persisted."""
        links = self._search.search(article.title)
        if len(links) < REQUIRED_REFERENCES:
            LOGGER.info("Not enough search results for %r, skipping", article.title)
            report.record_skip(SKIP_INSUFFICIENT_REFERENCES)
            return False

        urls = links[:REQUIRED_REFERENCES]
        LOGGER.info("Found references: %s, %s", urls[0], urls[1])

        references = []
        for url in urls:
            reference = self._fetcher.fetch(url)
            if not reference.ok:
                LOGGER.info("Failed to scrape references for %r, skipping", article.title)
                report.record_skip(SKIP_SCRAPE_FAILED)
                return False
            references.append(reference)

        updated = self._synthesizer.rewrite(
            article.original_content,
            references[0].text,
            references[1].text,
            urls,
        )
        if updated == article.original_content:
            LOGGER.warning("Rewrite for %r came back unchanged, leaving it unenhanced", article.title)
            report.record_skip(SKIP_REWRITE_UNCHANGED)
            return False

        self._store.update(
            article.article_id,
            updated_content=updated,
            references=urls,
            is_updated=True,
        )
        report.succeeded += 1
        LOGGER.info("Successfully updated: %s", article.title)
        return True


class BackgroundRun:
    """Handle for an enhancement run started with :func:`start_background_run`."""

    def __init__(self, orchestrator: EnhancementOrchestrator, limit: int | None = None) -> None:
        self._orchestrator = orchestrator
        self._limit = limit
        self._result: RunReport | None = None
        self._error: Exception | None = None
        self._thread = threading.Thread(target=self._target, name="enhancement-run")

    def _target(self) -> None:
        try:
            self._result = self._orchestrator.run(limit=self._limit)
        except Exception as exc:
            LOGGER.exception("Background enhancement run failed: %s", exc)
            self._error = exc

    def start(self) -> BackgroundRun:
        self._thread.start()
        return self

    def done(self) -> bool:
        return not self._thread.is_alive()

    def cancel(self) -> None:
        """Stop before the next article; the article in flight completes."""
        self._orchestrator.cancel_event.set()

    def status(self) -> RunReport:
        """Snapshot of the live counters."""
        report = self._orchestrator.report
        return replace(report, skip_reasons=dict(report.skip_reasons))

    def wait(self, timeout: float | None = None) -> RunReport:
        """Block until the run ends. Re-raises the run's fatal error, if any."""
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("Enhancement run still in progress")
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise RuntimeError("Enhancement run was never started")
        return self._result


def start_background_run(orchestrator: EnhancementOrchestrator, limit: int | None = None) -> BackgroundRun:
    """Start a run on a worker thread without blocking the caller."""
    return BackgroundRun(orchestrator, limit=limit).start()
