"""CLI entrypoint for the article discovery and enhancement pipelines."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from article_store import build_store
from config import PipelineConfig
from discovery import DiscoveryIngester
from models import RunReport
from orchestrator import EnhancementOrchestrator
from page_fetcher import PageFetcher
from rate_limiter import RateLimiter
from search_client import SearchClient
from synthesizer import Synthesizer, build_completer


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Discover blog articles and enhance them with referenced LLM rewrites")
    parser.add_argument(
        "--mode",
        choices=["enhance", "discover"],
        default="enhance",
        help=(
            "'enhance' (default): rewrite every not-yet-enhanced article with two cited references. "
            "'discover': ingest the oldest articles from the listing site as raw records."
        ),
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of articles to enhance")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only log which articles would be enhanced, without external calls",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_orchestrator(config: PipelineConfig, dry_run: bool = False) -> EnhancementOrchestrator:
    """Wire the enhancement pipeline from one configuration.

    A dry run only lists articles, so it gets the store alone and needs no API keys.
    """
    if dry_run:
        return EnhancementOrchestrator(store=build_store(config), search_client=None, fetcher=None, synthesizer=None)
    return EnhancementOrchestrator(
        store=build_store(config),
        search_client=SearchClient(config),
        fetcher=PageFetcher(config),
        synthesizer=Synthesizer(
            build_completer(config),
            limiter=RateLimiter("llm", config.llm_interval_seconds),
        ),
        article_delay_seconds=config.article_delay_seconds,
    )


def build_ingester(config: PipelineConfig) -> DiscoveryIngester:
    return DiscoveryIngester(
        store=build_store(config),
        fetcher=PageFetcher(config),
        base_url=config.discovery_base_url,
        max_articles=config.discovery_max_articles,
    )


def run_enhancement_batch(
    config: PipelineConfig | None = None,
    limit: int | None = None,
    dry_run: bool = False,
) -> RunReport:
    """Run one enhancement pass over the unenhanced articles."""
    config = config or PipelineConfig.from_env()
    logging.info("Starting article update process")
    return build_orchestrator(config, dry_run=dry_run).run(limit=limit, dry_run=dry_run)


def run_discovery_ingestion(config: PipelineConfig | None = None) -> int:
    """Scan the listing site once and return the number of articles created."""
    config = config or PipelineConfig.from_env()
    logging.info("Starting discovery from %s", config.discovery_base_url)
    return build_ingester(config).ingest()


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute the selected pipeline."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        if args.mode == "discover":
            created = run_discovery_ingestion()
            logging.info("Discovery finished: created=%s", created)
        else:
            report = run_enhancement_batch(limit=args.limit, dry_run=args.dry_run)
            logging.info("Enhancement finished: %s", report.as_dict())
    except RuntimeError as exc:  # includes ArticleStoreError and missing config
        logging.error("Pipeline aborted: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
