"""
CMS-specific article sources and the registry that routes URLs to them.
"""
from __future__ import annotations

from typing import Optional

from inkwell.infra.browser import BrowserFetcher
from inkwell.infra.http import HttpFetcher
from inkwell.sources.base import ArticleSource, PublisherRef, SourceRegistry
from inkwell.sources.generic import GenericSource
from inkwell.sources.ghost import GhostSource
from inkwell.sources.itv_news import ItvNewsSource, wait_for_next_data

__all__ = [
    "ArticleSource",
    "GenericSource",
    "GhostSource",
    "ItvNewsSource",
    "PublisherRef",
    "SourceRegistry",
    "default_registry",
]


def default_registry(
    http: Optional[HttpFetcher] = None,
    browser: Optional[BrowserFetcher] = None,
) -> SourceRegistry:
    """
    Build a fresh registry of the built-in sources, in resolution order.

    Fetchers are created lazily by each source unless injected here; the HTTP
    fetcher is shared by the sources that use plain requests.
    """
    if browser is not None and browser.on_load is None:
        browser.on_load = wait_for_next_data
    registry = SourceRegistry(fallback=GenericSource(fetcher=http))
    registry.register(GhostSource(fetcher=http))
    registry.register(ItvNewsSource(fetcher=browser))
    return registry
