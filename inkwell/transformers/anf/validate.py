"""
Strict validation of assembled ANF documents.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from inkwell.errors import AnfValidationError
from inkwell.transformers.anf.models import AnfDocument

logger = logging.getLogger(__name__)


def validate_anf_document(document: Union[AnfDocument, Mapping[str, Any]]) -> AnfDocument:
    """
    Check a document against the ANF shape and return a validated copy.

    Raises AnfValidationError when a required field is empty, the identifier
    exceeds 64 characters, there are no components, or a metadata URL or date
    is malformed.
    """
    data = document.to_dict() if isinstance(document, AnfDocument) else document
    try:
        return AnfDocument.model_validate(data)
    except ValidationError as exc:
        error = AnfValidationError.from_pydantic(exc)
        logger.debug("ANF validation failed: %s", error)
        raise error from exc
