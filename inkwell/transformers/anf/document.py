"""
Assembly of a complete ANF article document from an Article.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List
from urllib.parse import urlsplit

from inkwell.schemas.models import Article
from inkwell.transformers.anf import models as anf
from inkwell.transformers.anf.components import TransformWarning, transform_component

IDENTIFIER_MAX_LENGTH = 64

_HEADING = "HelveticaNeue-Bold"

# (fontSize, lineHeight, paragraph spacing before, after) per heading level
_HEADING_STYLES = {
    1: (32, 38, 12, 8),
    2: (26, 32, 10, 6),
    3: (22, 28, 8, 6),
    4: (20, 26, 8, 4),
    5: (18, 24, 6, 4),
    6: (16, 22, 6, 4),
}


@dataclass
class AssembleResult:
    document: anf.AnfDocument
    warnings: List[TransformWarning] = field(default_factory=list)


def build_identifier(publisher_id: str, url: str) -> str:
    """`{publisher_id}-{last path segment}`, truncated to ANF's 64-character limit."""
    return f"{publisher_id}-{_slug(url)}"[:IDENTIFIER_MAX_LENGTH]


def _slug(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return "article"
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else "article"


def build_default_text_styles() -> Dict[str, anf.ComponentTextStyle]:
    styles = {
        "default-body": anf.ComponentTextStyle(
            font_name="IowanOldStyle",
            font_size=16,
            line_height=24,
            paragraph_spacing_before=6,
            paragraph_spacing_after=6,
        ),
    }
    for level, (size, line_height, before, after) in _HEADING_STYLES.items():
        styles[f"default-heading-{level}"] = anf.ComponentTextStyle(
            font_name=_HEADING,
            font_size=size,
            line_height=line_height,
            paragraph_spacing_before=before,
            paragraph_spacing_after=after,
        )
    styles["default-caption"] = anf.ComponentTextStyle(
        font_name="HelveticaNeue",
        font_size=13,
        line_height=18,
        text_color="#6B7280",
        font_style="italic",
    )
    styles["default-pullquote"] = anf.ComponentTextStyle(
        font_name="IowanOldStyle-Italic",
        font_size=24,
        line_height=32,
        text_alignment="center",
        font_style="italic",
    )
    styles["default-quote"] = anf.ComponentTextStyle(
        font_name="IowanOldStyle-Italic",
        font_size=16,
        line_height=24,
        font_style="italic",
    )
    styles["default-monospace"] = anf.ComponentTextStyle(
        font_name="Menlo-Regular",
        font_size=14,
        line_height=20,
    )
    return styles


def build_metadata(article: Article) -> anf.AnfMetadata:
    meta = article.metadata
    published = meta.published_at
    # dateCreated has no separate source field; the publish date stands in for it.
    return anf.AnfMetadata.model_construct(
        authors=[author.name for author in article.authors] or None,
        excerpt=meta.excerpt or None,
        canonical_url=article.source.canonical_url or article.source.url,
        thumbnail_url=meta.thumbnail.url if meta.thumbnail else None,
        date_created=published,
        date_published=published,
        date_modified=meta.modified_at or None,
    )


def assemble_document(article: Article) -> AssembleResult:
    """
    Transform every body component in order and wrap the results in a document.

    The document is built without validation so that the collected warnings
    survive even when the result turns out to be invalid (for example when
    every component was dropped); `validate_anf_document` is the strict step.
    """
    warnings: List[TransformWarning] = []
    components: List[anf.AnfComponent] = []
    for body_component in article.body:
        outcome = transform_component(body_component)
        warnings.extend(outcome.warnings)
        if outcome.result is not None:
            components.append(outcome.result)

    source_url = article.source.canonical_url or article.source.url
    document = anf.AnfDocument.model_construct(
        version=anf.ANF_VERSION,
        identifier=build_identifier(article.source.publisher_id, source_url),
        title=article.metadata.title,
        subtitle=article.metadata.subtitle or None,
        language=article.metadata.language,
        layout=anf.Layout(columns=7, width=1024),
        components=components,
        component_text_styles=build_default_text_styles(),
        metadata=build_metadata(article),
    )
    return AssembleResult(document=document, warnings=warnings)
