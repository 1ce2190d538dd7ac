"""
Command-line entry point: scrape, discover, transform and poll.

JSON goes to stdout; logs go to stderr.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import click
from dotenv import load_dotenv

from inkwell.errors import InkwellError, UnknownSourceError
from inkwell.extractors.shared import utc_now_iso
from inkwell.infra.browser import BrowserFetcher
from inkwell.infra.http import HttpFetcher
from inkwell.pipeline.output import write_anf_document, write_article
from inkwell.pipeline.poll import poll_all
from inkwell.pipeline.store import Store
from inkwell.publishers import get_enabled_publishers, get_publisher
from inkwell.schemas.validate import validate_article, validate_discovery_result
from inkwell.settings import InkwellSettings, load_settings
from inkwell.sources import SourceRegistry, default_registry
from inkwell.transformers.anf import transform_to_anf

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("inkwell")


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except InkwellError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_registry(settings: InkwellSettings) -> SourceRegistry:
    http = HttpFetcher(
        user_agent=settings.user_agent,
        min_delay=settings.min_delay,
        max_retries=settings.max_retries,
        timeout=settings.fetch_timeout,
    )
    browser = BrowserFetcher(headless=settings.headless, timeout_ms=settings.fetch_timeout * 1000)
    return default_registry(http=http, browser=browser)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Extract publisher articles into structured JSON and Apple News Format."""
    load_dotenv(os.getenv("INKWELL_DOTENV", ".env"))
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    ctx.obj = settings


@cli.command()
@click.argument("url")
@click.option("--anf", is_flag=True, help="Also transform the article to Apple News Format.")
@click.option("--save", is_flag=True, help="Write the result under the output directory instead of stdout.")
@click.pass_obj
def scrape(settings: InkwellSettings, url: str, anf: bool, save: bool) -> None:
    """Fetch and parse a single article URL."""
    with _reported_errors():
        source = _build_registry(settings).resolve(url)
        logger.info("Scraping %s with %s source", url, source.id)
        source.init()
        try:
            article = validate_article(source.scrape_article(url))
        finally:
            source.dispose()

        transformed = transform_to_anf(article) if anf else None
        if save:
            publisher_id = article.source.publisher_id
            click.echo(str(write_article(publisher_id, article, settings.output_dir)))
            if transformed is not None:
                click.echo(str(write_anf_document(publisher_id, article, transformed.document, settings.output_dir)))
            return
        if transformed is not None:
            _echo_json(transformed.to_dict())
        else:
            _echo_json(article.to_dict())


@cli.command()
@click.argument("target")
@click.pass_obj
def discover(settings: InkwellSettings, target: str) -> None:
    """List articles on a homepage URL or a configured publisher's homepage."""
    with _reported_errors():
        registry = _build_registry(settings)
        if target.startswith(("http://", "https://")):
            url = target
            source = registry.resolve(url)
            source_id = source.id
        else:
            publisher = get_publisher(target, settings.publishers_path)
            if publisher is None:
                raise UnknownSourceError(f"Unknown publisher: {target}")
            url = publisher.homepage_url
            source = registry.get(publisher.source_id)
            source_id = publisher.id

        source.init()
        try:
            articles = source.scrape_articles(url)
        finally:
            source.dispose()
        result = validate_discovery_result(
            {"articles": articles, "discoveredAt": utc_now_iso(), "sourceUrl": url, "sourceId": source_id}
        )
        _echo_json(result.to_dict())


@cli.command()
@click.argument("article_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def transform(article_path: Path) -> None:
    """Transform a saved article JSON file to Apple News Format."""
    with _reported_errors():
        try:
            data = json.loads(article_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"{article_path} is not valid JSON: {exc}") from exc
        result = transform_to_anf(validate_article(data))
        for warning in result.warnings:
            logger.warning("%s: %s", warning.type.value, warning.message)
        _echo_json(result.to_dict())


@cli.command()
@click.option("--publisher", "publisher_id", default=None, help="Poll only this publisher id.")
@click.option("--anf", is_flag=True, help="Also write ANF documents for scraped articles.")
@click.pass_obj
def poll(settings: InkwellSettings, publisher_id: Optional[str], anf: bool) -> None:
    """Discover and scrape new articles for every enabled publisher."""
    with _reported_errors():
        if publisher_id:
            publisher = get_publisher(publisher_id, settings.publishers_path)
            if publisher is None:
                raise UnknownSourceError(f"Unknown publisher: {publisher_id}")
            publishers = [publisher]
        else:
            publishers = get_enabled_publishers(settings.publishers_path)

        store = Store(settings.db_path)
        try:
            summary = poll_all(publishers, _build_registry(settings), store, output_dir=settings.output_dir, anf=anf)
        finally:
            store.close()
        _echo_json(summary.to_dict())


if __name__ == "__main__":  # pragma: no cover
    cli()
