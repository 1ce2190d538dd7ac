"""
Public API for inkwell: publisher page extraction and ANF transformation.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from inkwell.errors import (
    AnfValidationError,
    ArticleValidationError,
    ExtractionError,
    FetchError,
    InkwellError,
    UnknownSourceError,
)
from inkwell.schemas.models import Article, DiscoveredArticle
from inkwell.schemas.validate import validate_article, validate_discovery_result
from inkwell.sources import default_registry
from inkwell.transformers.anf import TransformResult, transform_to_anf

__all__ = [
    "AnfValidationError",
    "Article",
    "ArticleValidationError",
    "DiscoveredArticle",
    "ExtractionError",
    "FetchError",
    "InkwellError",
    "TransformResult",
    "UnknownSourceError",
    "discover_articles",
    "parse_article",
    "transform_to_anf",
    "validate_article",
    "validate_discovery_result",
]


def parse_article(html: str, url: str, cms_type_hint: Optional[str] = None) -> Article:
    """
    Parse already-fetched HTML into a validated Article.

    The source is picked by `cms_type_hint` (a source id or CMS tag) when given,
    otherwise by URL ownership with the generic parser as fallback.
    """
    source = default_registry().resolve(url, hint=cms_type_hint)
    return validate_article(source.parse_article(html, url))


def discover_articles(html: str, url: str, cms_type_hint: Optional[str] = None) -> List[Dict[str, object]]:
    """Extract article references from an already-fetched homepage."""
    source = default_registry().resolve(url, hint=cms_type_hint)
    return source.parse_articles(html, url)
