"""
Output file layout and writers for scraped articles and their ANF documents.

    {output_dir}/{publisher_id}/{YYYY-MM-DD}-{slug}.json
    {output_dir}/{publisher_id}/anf/{YYYY-MM-DD}-{slug}.json
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Union
from urllib.parse import urlsplit

from inkwell.extractors.shared import utc_now_iso
from inkwell.schemas.models import Article
from inkwell.schemas.validate import validate_article
from inkwell.transformers.anf.models import AnfDocument

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "output"

_EXTENSION_RE = re.compile(r"\.\w+$")


def slug_from_url(url: str) -> str:
    """Last path segment without its file extension ("untitled" for bare hosts)."""
    segments = [segment for segment in urlsplit(url).path.split("/") if segment]
    last = segments[-1] if segments else "untitled"
    return _EXTENSION_RE.sub("", last) or "untitled"


def _file_name(article: Article) -> str:
    date = (article.metadata.published_at or utc_now_iso())[:10]
    return f"{date}-{slug_from_url(article.source.url)}.json"


def build_output_path(publisher_id: str, article: Article, output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR) -> Path:
    return Path(output_dir) / publisher_id / _file_name(article)


def build_anf_output_path(publisher_id: str, article: Article, output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR) -> Path:
    return Path(output_dir) / publisher_id / "anf" / _file_name(article)


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def write_article(
    publisher_id: str,
    article: Union[Article, Mapping[str, Any]],
    output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
) -> Path:
    """Validate and write an article; returns the path written. Invalid articles raise before touching disk."""
    validated = validate_article(article)
    path = build_output_path(publisher_id, validated, output_dir)
    _write_json(path, validated.to_dict())
    logger.debug("Wrote article %s", path)
    return path


def write_anf_document(
    publisher_id: str,
    article: Article,
    document: Union[AnfDocument, Mapping[str, Any]],
    output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
) -> Path:
    path = build_anf_output_path(publisher_id, article, output_dir)
    payload = document.to_dict() if isinstance(document, AnfDocument) else dict(document)
    _write_json(path, payload)
    logger.debug("Wrote ANF document %s", path)
    return path
