"""
Source protocol + registry for pluggable CMS parsers.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from inkwell.errors import UnknownSourceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublisherRef:
    id: str
    homepage_url: Optional[str] = None
    pattern: Optional[re.Pattern] = None

    def matches(self, url: str) -> bool:
        return bool(self.pattern and self.pattern.search(url))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        if self.homepage_url:
            data["homepageUrl"] = self.homepage_url
        return data


class ArticleSource(Protocol):
    """
    Capabilities every CMS parser provides.

    `parse_*` are pure functions of (html, url); `scrape_*` fetch and then parse.
    `init`/`dispose` bracket a batch of scrapes sharing a browser or session.
    """

    id: str
    cms_type: str
    homepage_url: Optional[str]
    publishers: List[PublisherRef]

    def matches(self, url: str) -> bool:
        ...

    def parse_article(self, html: str, url: str) -> Dict[str, Any]:
        ...

    def parse_articles(self, html: str, url: str) -> List[Dict[str, Any]]:
        ...

    def scrape_article(self, url: str) -> Dict[str, Any]:
        ...

    def scrape_articles(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    def init(self) -> None:
        ...

    def dispose(self) -> None:
        ...


class SourceRegistry:
    """
    Ordered set of sources. URL resolution is first-registered-wins; the
    optional fallback source is used only when nothing else claims a URL.
    """

    def __init__(self, fallback: Optional[ArticleSource] = None) -> None:
        self._sources: Dict[str, ArticleSource] = {}
        self.fallback = fallback

    def register(self, source: ArticleSource) -> None:
        if source.id in self._sources:
            raise ValueError(f"Source '{source.id}' already registered")
        self._sources[source.id] = source

    def resolve(self, url: str, hint: Optional[str] = None, allow_fallback: bool = True) -> ArticleSource:
        """
        Pick the source for `url`.

        `hint` (a source id or CMS tag) bypasses URL matching. Raises
        UnknownSourceError when no source applies.
        """
        if hint:
            return self._by_hint(hint)
        for source in self._sources.values():
            if source.matches(url):
                return source
        if allow_fallback and self.fallback is not None:
            logger.debug("No source matches %s; using %s", url, self.fallback.id)
            return self.fallback
        raise UnknownSourceError(f"No source registered for URL: {url}")

    def _by_hint(self, hint: str) -> ArticleSource:
        for source in self.all():
            if hint in (source.id, source.cms_type):
                return source
        raise UnknownSourceError(f"Unknown source or CMS type: {hint}")

    def get(self, source_id: str) -> ArticleSource:
        for source in self.all():
            if source.id == source_id:
                return source
        raise UnknownSourceError(f"Unknown source: {source_id}")

    def find_publisher(self, publisher_id: str) -> Tuple[ArticleSource, PublisherRef]:
        for source in self._sources.values():
            for publisher in source.publishers:
                if publisher.id == publisher_id:
                    return source, publisher
        raise UnknownSourceError(f"Unknown publisher: {publisher_id}")

    def all(self) -> List[ArticleSource]:
        sources = list(self._sources.values())
        if self.fallback is not None and self.fallback.id not in self._sources:
            sources.append(self.fallback)
        return sources

    def keys(self) -> List[str]:
        return [source.id for source in self.all()]


def publisher_for_url(publishers: List[PublisherRef], url: str) -> PublisherRef:
    """Return the configured publisher owning `url`, or one derived from its host."""
    for publisher in publishers:
        if publisher.matches(url):
            return publisher
    return host_publisher(url)


def host_publisher(url: str) -> PublisherRef:
    parts = urlsplit(url)
    host = (parts.hostname or "unknown").lower()
    if host.startswith("www."):
        host = host[4:]
    publisher_id = re.sub(r"[^a-z0-9]+", "-", host).strip("-") or "unknown"
    homepage = f"{parts.scheme}://{parts.netloc}/" if parts.scheme and parts.netloc else None
    return PublisherRef(id=publisher_id, homepage_url=homepage)
