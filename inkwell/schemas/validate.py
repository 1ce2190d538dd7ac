"""
Strict, fail-fast validation at the parser output boundary.

A single malformed component fails the whole document; there is no lenient mode.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from inkwell.errors import ArticleValidationError, DiscoveryValidationError
from inkwell.schemas.models import Article, DiscoveryResult

logger = logging.getLogger(__name__)


def validate_article(candidate: Union[Article, Mapping[str, Any]]) -> Article:
    """
    Validate a parser's output and return it as an `Article`.

    Raises ArticleValidationError with field-level issues when any required
    field, enumeration or body component is malformed.
    """
    data = candidate.to_dict() if isinstance(candidate, Article) else candidate
    try:
        return Article.model_validate(data)
    except ValidationError as exc:
        error = ArticleValidationError.from_pydantic(exc)
        logger.debug("Article validation failed: %s", error)
        raise error from exc


def validate_discovery_result(candidate: Union[DiscoveryResult, Mapping[str, Any]]) -> DiscoveryResult:
    data = candidate.to_dict() if isinstance(candidate, DiscoveryResult) else candidate
    try:
        return DiscoveryResult.model_validate(data)
    except ValidationError as exc:
        raise DiscoveryValidationError.from_pydantic(exc) from exc
