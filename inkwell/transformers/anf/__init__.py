"""
Apple News Format (ANF) transformer.

`transform_to_anf` is lenient per component (unsupported content becomes a
warning) and strict per document (the assembled result must validate).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from inkwell.schemas.models import Article
from inkwell.transformers.anf.components import (
    ComponentResult,
    TransformWarning,
    WarningType,
    transform_component,
)
from inkwell.transformers.anf.document import AssembleResult, assemble_document, build_identifier
from inkwell.transformers.anf.html import sanitize_html
from inkwell.transformers.anf.models import AnfDocument
from inkwell.transformers.anf.validate import validate_anf_document

__all__ = [
    "AnfDocument",
    "AssembleResult",
    "ComponentResult",
    "TransformResult",
    "TransformWarning",
    "WarningType",
    "assemble_document",
    "build_identifier",
    "sanitize_html",
    "transform_component",
    "transform_to_anf",
    "validate_anf_document",
]


@dataclass
class TransformResult:
    document: AnfDocument
    warnings: List[TransformWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """ANF JSON with the warnings alongside, as written by the CLI."""
        return {
            "document": self.document.to_dict(),
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def transform_to_anf(article: Article) -> TransformResult:
    """Assemble and validate; AnfValidationError propagates to the caller."""
    assembled = assemble_document(article)
    document = validate_anf_document(assembled.document)
    return TransformResult(document=document, warnings=assembled.warnings)
