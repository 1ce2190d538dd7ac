"""
Exception types raised by the extraction and transformation core.

Structural and validation failures propagate to the caller untouched; transform
warnings are values and never appear here.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class InkwellError(Exception):
    """Base class for every error raised by inkwell."""


class ExtractionError(InkwellError):
    """A parser could not find the anchor structure it needs (JSON payload, content container)."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class UnknownSourceError(InkwellError):
    """No registered source claims a URL, source id or publisher id."""


class FetchError(InkwellError):
    """The fetch layer could not retrieve a page."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ValidationFailed(InkwellError):
    """
    A document failed schema validation.

    `issues` carries field-level detail as a list of {"loc", "msg", "type"} dicts,
    with `loc` rendered as a dotted path (e.g. "body.2.items").
    """

    label = "document"

    def __init__(self, issues: List[Dict[str, Any]]) -> None:
        self.issues = issues
        super().__init__(self._summary())

    def _summary(self) -> str:
        if not self.issues:
            return f"Invalid {self.label}"
        parts = [f"{issue['loc'] or '<root>'}: {issue['msg']}" for issue in self.issues[:5]]
        more = len(self.issues) - len(parts)
        suffix = f" (+{more} more)" if more > 0 else ""
        return f"Invalid {self.label}: " + "; ".join(parts) + suffix

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationFailed":
        issues = [
            {
                "loc": ".".join(str(part) for part in error.get("loc", ())),
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        return cls(issues)


class ArticleValidationError(ValidationFailed):
    label = "article"


class DiscoveryValidationError(ValidationFailed):
    label = "discovery result"


class AnfValidationError(ValidationFailed):
    label = "ANF document"
