"""
Discover -> diff -> scrape loop for configured publishers.

Each article is isolated: a failure is recorded in the store and the result's
`errors` list, and the loop moves on to the next URL.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from inkwell.errors import UnknownSourceError
from inkwell.extractors.shared import utc_now_iso
from inkwell.pipeline.output import DEFAULT_OUTPUT_DIR, write_anf_document, write_article
from inkwell.pipeline.store import Store
from inkwell.publishers import PublisherConfig
from inkwell.schemas.validate import validate_article, validate_discovery_result
from inkwell.sources.base import ArticleSource, SourceRegistry
from inkwell.transformers.anf import transform_to_anf
from inkwell.utils.security import redact_secrets

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    publisher_id: str
    discovered: int = 0
    scraped: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def record_failure(self, url: str, error: str) -> None:
        self.failed += 1
        self.errors.append({"url": url, "error": error})


@dataclass
class PollSummary:
    results: List[PollResult] = field(default_factory=list)
    totals: Dict[str, int] = field(
        default_factory=lambda: {"discovered": 0, "scraped": 0, "failed": 0, "skipped": 0}
    )

    def add(self, result: PollResult) -> None:
        self.results.append(result)
        for key in self.totals:
            self.totals[key] += getattr(result, key)

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [asdict(result) for result in self.results], "totals": dict(self.totals)}


def poll_publisher(
    config: PublisherConfig,
    source: ArticleSource,
    store: Store,
    output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
    anf: bool = False,
) -> PollResult:
    """
    Discover articles on the publisher's homepage, record new ones, then scrape
    everything not yet scraped (new or previously failed).

    `skipped` counts discovered articles that were already scraped earlier.
    """
    result = PollResult(publisher_id=config.id)
    source.init()
    try:
        discovered = source.scrape_articles(config.homepage_url)
        envelope = validate_discovery_result(
            {
                "articles": discovered,
                "discoveredAt": utc_now_iso(),
                "sourceUrl": config.homepage_url,
                "sourceId": config.id,
            }
        )
        urls = [article.url for article in envelope.articles]
        result.discovered = store.insert_discovered(config.id, urls)

        scrapeable = store.get_scrapeable(config.id)
        result.skipped = max(0, len(urls) - len(scrapeable))
        logger.info(
            "%s: %d listed, %d new, %d to scrape", config.id, len(urls), result.discovered, len(scrapeable)
        )

        for row in scrapeable:
            try:
                logger.debug("Scraping %s", row.url)
                article = validate_article(source.scrape_article(row.url))
                output_path = write_article(config.id, article, output_dir)
                if anf:
                    transformed = transform_to_anf(article)
                    write_anf_document(config.id, article, transformed.document, output_dir)
                store.mark_scraped(row.url, str(output_path))
                result.scraped += 1
            except Exception as exc:
                message = redact_secrets(str(exc)) or exc.__class__.__name__
                store.mark_failed(row.url, message)
                result.record_failure(row.url, message)
                logger.warning("Failed to scrape %s: %s", row.url, message)
    finally:
        source.dispose()
    return result


def poll_all(
    publishers: Iterable[PublisherConfig],
    registry: SourceRegistry,
    store: Store,
    output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
    anf: bool = False,
) -> PollSummary:
    summary = PollSummary()
    for config in publishers:
        try:
            source = registry.get(config.source_id)
        except UnknownSourceError:
            logger.warning("No source found for %s, skipping %s", config.source_id, config.id)
            continue

        logger.info("Polling %s (%s)...", config.name, config.id)
        try:
            result = poll_publisher(config, source, store, output_dir=output_dir, anf=anf)
        except Exception as exc:
            # Discovery itself failed; nothing was scraped for this publisher
            message = redact_secrets(str(exc)) or exc.__class__.__name__
            logger.warning("Discovery failed for %s: %s", config.id, message)
            result = PollResult(publisher_id=config.id)
            result.record_failure(config.homepage_url, message)
        summary.add(result)
        logger.info(
            "%s: discovered=%d scraped=%d failed=%d skipped=%d",
            config.id,
            result.discovered,
            result.scraped,
            result.failed,
            result.skipped,
        )
    return summary
