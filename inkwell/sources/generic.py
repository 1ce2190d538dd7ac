"""
Fallback source for publishers without a dedicated parser.

Relies only on cross-site conventions: JSON-LD / OpenGraph metadata and an
`articleBody`, `<article>` or `<main>` content container.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from inkwell.errors import ExtractionError, InkwellError
from inkwell.extractors.html_body import Component, convert_children, convert_standard_element
from inkwell.extractors.shared import (
    build_article,
    extract_canonical_url,
    extract_json_ld,
    extract_og_tags,
    json_ld_authors,
    json_ld_keywords,
    json_ld_section,
    json_ld_text,
    json_ld_thumbnail,
    load_html,
    locale_to_language,
    og_thumbnail,
    resolve_url,
    safe_iso,
    utc_now_iso,
)
from inkwell.infra.http import HttpFetcher
from inkwell.sources.base import PublisherRef, host_publisher
from inkwell.utils.dedupe import dedupe_by_key

logger = logging.getLogger(__name__)

CONTENT_SELECTORS = ['[itemprop="articleBody"]', "article", "main"]

# Wrappers whose children are content; anything in SKIPPED_TAGS never is.
CONTAINER_TAGS = {"div", "section", "header"}
SKIPPED_TAGS = {"nav", "aside", "footer", "form", "script", "style", "noscript", "button"}

# Article permalinks end in a slug of at least three words, e.g. /2024/05/some-story-title
SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+){2,}(?:\.html?)?/?$", re.IGNORECASE)


class GenericSource:
    id = "generic"
    cms_type = "generic"
    homepage_url = None

    def __init__(self, fetcher: Optional[HttpFetcher] = None) -> None:
        self.publishers: List[PublisherRef] = []
        self._fetcher = fetcher

    @property
    def fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            self._fetcher = HttpFetcher()
        return self._fetcher

    def matches(self, url: str) -> bool:
        return False

    def parse_article(self, html: str, url: str) -> Dict[str, Any]:
        soup = load_html(html)
        root = find_content_root(soup)
        if root is None:
            raise ExtractionError(
                f"No article content container found (tried {', '.join(CONTENT_SELECTORS)})",
                url=url,
            )
        json_ld = extract_json_ld(soup) or {}
        og_tags = extract_og_tags(soup)
        return build_article(
            source={
                "url": url,
                "canonicalUrl": extract_canonical_url(soup, og_tags, url),
                "publisherId": host_publisher(url).id,
                "cmsType": self.cms_type,
                "ingestionMethod": "scrape",
            },
            metadata=build_metadata(soup, json_ld, og_tags, url),
            authors=json_ld_authors(json_ld) or meta_authors(soup),
            body=convert_children(root, url, convert_element),
        )

    def parse_articles(self, html: str, url: str) -> List[Dict[str, Any]]:
        soup = load_html(html)
        host = urlsplit(url).hostname
        publisher_id = host_publisher(url).id
        articles: List[Dict[str, Any]] = []
        for anchor in soup.find_all("a", href=True):
            absolute = resolve_url(url, anchor["href"]).split("#", 1)[0]
            parts = urlsplit(absolute)
            if parts.scheme not in ("http", "https") or parts.hostname != host:
                continue
            if not SLUG_PATTERN.search(parts.path):
                continue
            title = anchor.get_text(" ", strip=True)
            if not title:
                continue
            articles.append({"url": absolute, "title": title, "sourceId": publisher_id})
        return dedupe_by_key(articles, key_fn=lambda article: article["url"])

    def scrape_article(self, url: str) -> Dict[str, Any]:
        return self.parse_article(self.fetcher.fetch_text(url), url)

    def scrape_articles(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        if not url:
            raise InkwellError("The generic source needs an explicit homepage URL")
        return self.parse_articles(self.fetcher.fetch_text(url), url)

    def init(self) -> None:
        pass

    def dispose(self) -> None:
        if self._fetcher is not None:
            self._fetcher.close()
            self._fetcher = None


def find_content_root(soup: BeautifulSoup) -> Optional[Tag]:
    for selector in CONTENT_SELECTORS:
        root = soup.select_one(selector)
        if root is not None:
            return root
    return None


def convert_element(el: Tag, base_url: str) -> List[Component]:
    if el.name in SKIPPED_TAGS:
        return []
    if el.name in CONTAINER_TAGS:
        return convert_children(el, base_url, convert_element)
    return convert_standard_element(el, base_url)


def build_metadata(soup: BeautifulSoup, json_ld: Dict[str, Any], og_tags: Dict[str, str], url: str) -> Dict[str, Any]:
    title_tag = soup.find("title")
    title = (
        json_ld_text(json_ld, "headline")
        or og_tags.get("og:title")
        or (title_tag.get_text() if title_tag is not None else "")
        or ""
    ).strip() or "Untitled"
    html_lang = soup.html.get("lang") if soup.html is not None else None
    return {
        "title": title,
        "excerpt": json_ld_text(json_ld, "description") or og_tags.get("og:description"),
        "language": locale_to_language(og_tags.get("og:locale") or html_lang, "en"),
        "publishedAt": (
            safe_iso(json_ld.get("datePublished"))
            or safe_iso(og_tags.get("article:published_time"))
            or utc_now_iso()
        ),
        "modifiedAt": safe_iso(json_ld.get("dateModified")) or safe_iso(og_tags.get("article:modified_time")),
        "keywords": json_ld_keywords(json_ld),
        "section": json_ld_section(json_ld) or og_tags.get("article:section"),
        "thumbnail": json_ld_thumbnail(json_ld, url) or og_thumbnail(og_tags, url),
    }


def meta_authors(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    meta = soup.find("meta", attrs={"name": "author"})
    name = (meta.get("content") or "").strip() if meta is not None else ""
    return [{"name": name}] if name else []
