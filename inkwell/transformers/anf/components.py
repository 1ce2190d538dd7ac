"""
Per-component mapping from intermediary body components to ANF components.

Transforms are lenient: anything ANF cannot express is dropped or degraded
with a warning instead of failing the document.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from inkwell.extractors.shared import escape_html
from inkwell.schemas import models as schema
from inkwell.transformers.anf import models as anf
from inkwell.transformers.anf.html import sanitize_html

logger = logging.getLogger(__name__)

VIDEO_EMBED_PLATFORMS = frozenset({"youtube", "vimeo", "dailymotion"})

SOCIAL_EMBED_COMPONENTS = {
    "x": anf.Tweet,
    "instagram": anf.Instagram,
    "facebook": anf.FacebookPost,
    "tiktok": anf.TikTok,
}


class WarningType(str, Enum):
    DROPPED_COMPONENT = "dropped_component"
    UNSUPPORTED_EMBED = "unsupported_embed"
    HTML_SANITIZED = "html_sanitized"
    MISSING_FIELD = "missing_field"


@dataclass(frozen=True)
class TransformWarning:
    type: WarningType
    message: str
    component: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"type": self.type.value, "message": self.message}
        if self.component:
            data["component"] = self.component
        return data


@dataclass
class ComponentResult:
    result: Optional[anf.AnfComponent]
    warnings: List[TransformWarning] = field(default_factory=list)


def transform_component(component: schema.BodyComponent) -> ComponentResult:
    """Map one body component to at most one ANF component plus any warnings."""
    transform = _TRANSFORMS[component.type]
    outcome = transform(component)
    for warning in outcome.warnings:
        logger.debug("ANF transform warning (%s): %s", warning.type.value, warning.message)
    return outcome


def _ok(result: anf.AnfComponent) -> ComponentResult:
    return ComponentResult(result=result)


def _sanitized_text(text: str, component_name: str, warnings: List[TransformWarning]) -> str:
    sanitized = sanitize_html(text)
    if sanitized != text:
        warnings.append(
            TransformWarning(
                type=WarningType.HTML_SANITIZED,
                message=f"HTML was sanitized for {component_name} component",
                component=component_name,
            )
        )
    return sanitized


def transform_paragraph(component: schema.Paragraph) -> ComponentResult:
    warnings: List[TransformWarning] = []
    is_html = component.format == "html"
    text = _sanitized_text(component.text, "paragraph", warnings) if is_html else component.text
    result = anf.BodyText(text=text, format="html" if is_html else None, text_style="default-body")
    return ComponentResult(result=result, warnings=warnings)


def transform_heading(component: schema.Heading) -> ComponentResult:
    level = max(1, min(6, component.level))
    warnings: List[TransformWarning] = []
    is_html = component.format == "html"
    text = _sanitized_text(component.text, "heading", warnings) if is_html else component.text
    result = anf.HeadingText(
        role=f"heading{level}",
        text=text,
        format="html" if is_html else None,
        text_style=f"default-heading-{level}",
    )
    return ComponentResult(result=result, warnings=warnings)


def append_attribution(text: str, attribution: Optional[str]) -> str:
    if attribution:
        return f"{text}\n— {attribution}"
    return text


def transform_blockquote(component: schema.Blockquote) -> ComponentResult:
    return _ok(anf.QuoteText(text=append_attribution(component.text, component.attribution), text_style="default-quote"))


def transform_pullquote(component: schema.Pullquote) -> ComponentResult:
    return _ok(
        anf.PullquoteText(text=append_attribution(component.text, component.attribution), text_style="default-pullquote")
    )


def transform_list(component: schema.ListBlock) -> ComponentResult:
    tag = "ol" if component.style == "ordered" else "ul"
    items = "".join(f"<li>{item}</li>" for item in component.items)
    return _ok(anf.BodyText(text=f"<{tag}>{items}</{tag}>", format="html", text_style="default-body"))


def _monospace(text: str) -> ComponentResult:
    return _ok(anf.BodyText(text=f"<pre>{escape_html(text)}</pre>", format="html", text_style="default-monospace"))


def transform_code_block(component: schema.CodeBlock) -> ComponentResult:
    return _monospace(component.code)


def transform_preformatted(component: schema.Preformatted) -> ComponentResult:
    return _monospace(component.text)


def image_caption(caption: Optional[str], credit: Optional[str]) -> Optional[anf.CaptionDescriptor]:
    if caption and credit:
        text = f"{caption} — {credit}"
    else:
        text = caption or credit
    if not text:
        return None
    return anf.CaptionDescriptor(text=text, text_style="default-caption")


def transform_image(component: schema.ImageComponent) -> ComponentResult:
    return _ok(
        anf.Photo(
            url=component.url,
            caption=image_caption(component.caption, component.credit),
            accessibility_caption=component.alt_text or None,
        )
    )


def transform_video(component: schema.VideoComponent) -> ComponentResult:
    return _ok(
        anf.Video(
            url=component.url,
            still_url=component.thumbnail_url or None,
            caption=component.caption or None,
        )
    )


def transform_embed(component: schema.EmbedComponent) -> ComponentResult:
    if component.platform in VIDEO_EMBED_PLATFORMS:
        return _ok(anf.EmbedWebVideo(url=component.embed_url, caption=component.caption or None))

    social = SOCIAL_EMBED_COMPONENTS.get(component.platform)
    if social is not None:
        return _ok(social(url=component.embed_url))

    warnings = [
        TransformWarning(
            type=WarningType.UNSUPPORTED_EMBED,
            message=f'Unsupported embed platform "{component.platform}" — rendered as body text fallback',
            component="embed",
        )
    ]
    if component.fallback_text:
        return ComponentResult(
            result=anf.BodyText(text=component.fallback_text, text_style="default-body"),
            warnings=warnings,
        )
    href = escape_html(component.embed_url)
    return ComponentResult(
        result=anf.BodyText(text=f'<a href="{href}">{href}</a>', format="html", text_style="default-body"),
        warnings=warnings,
    )


def transform_divider(component: schema.Divider) -> ComponentResult:
    return _ok(anf.Divider())


def render_table(rows: List[List[str]], header_rows: int) -> str:
    head, body = rows[:header_rows], rows[header_rows:]
    parts = ["<table>"]
    if head:
        parts.append("<thead>")
        for row in head:
            parts.append("<tr>" + "".join(f"<th>{escape_html(cell)}</th>" for cell in row) + "</tr>")
        parts.append("</thead>")
    parts.append("<tbody>")
    for row in body:
        parts.append("<tr>" + "".join(f"<td>{escape_html(cell)}</td>" for cell in row) + "</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def transform_table(component: schema.Table) -> ComponentResult:
    return _ok(anf.HtmlTable(html=render_table(component.rows, component.header_rows or 0)))


def transform_raw_html(component: schema.RawHtml) -> ComponentResult:
    return ComponentResult(
        result=None,
        warnings=[
            TransformWarning(
                type=WarningType.DROPPED_COMPONENT,
                message="rawHtml component dropped — not supported in ANF",
                component="rawHtml",
            )
        ],
    )


def transform_ad_placement(component: schema.AdPlacement) -> ComponentResult:
    return _ok(anf.BannerAdvertisement(banner_type="any"))


_TRANSFORMS: Dict[str, Callable[..., ComponentResult]] = {
    "paragraph": transform_paragraph,
    "heading": transform_heading,
    "blockquote": transform_blockquote,
    "pullquote": transform_pullquote,
    "list": transform_list,
    "codeBlock": transform_code_block,
    "preformatted": transform_preformatted,
    "image": transform_image,
    "video": transform_video,
    "embed": transform_embed,
    "divider": transform_divider,
    "table": transform_table,
    "rawHtml": transform_raw_html,
    "adPlacement": transform_ad_placement,
}
