"""
Conversion of standard HTML content elements into body component dicts.

Only plain HTML semantics live here (p, h1-h6, lists, blockquote, figure, img,
pre, table, hr). CMS card markup is handled by the source that knows it, which
falls back to `convert_standard_element` for everything else.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag

from inkwell.extractors.shared import (
    compact,
    detect_embed_platform,
    inner_html,
    parse_dimension,
    resolve_url,
)

logger = logging.getLogger(__name__)

Component = Dict[str, Any]
Converter = Callable[[Tag, str], List[Component]]

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}


def convert_children(root: Tag, base_url: str, convert: Converter) -> List[Component]:
    """Walk the direct element children of `root` in document order, flattening results."""
    components: List[Component] = []
    for child in root.children:
        if not isinstance(child, Tag):
            continue
        components.extend(convert(child, base_url))
    return components


def convert_standard_element(el: Tag, base_url: str) -> List[Component]:
    tag = el.name
    if tag == "p":
        return convert_paragraph(el, base_url)
    if tag in HEADING_LEVELS:
        return convert_heading(el, HEADING_LEVELS[tag])
    if tag == "blockquote":
        return convert_blockquote(el)
    if tag == "ul":
        return convert_list(el, "unordered")
    if tag == "ol":
        return convert_list(el, "ordered")
    if tag == "hr":
        return [{"type": "divider"}]
    if tag == "pre":
        return convert_pre(el)
    if tag == "figure":
        return convert_figure(el, base_url)
    if tag == "img":
        image = image_from_img(el, base_url)
        return [image] if image else []
    if tag == "table":
        return convert_table(el)
    if tag == "iframe":
        embed = embed_from_iframe(el, base_url)
        return [embed] if embed else []
    return []


def convert_paragraph(el: Tag, base_url: str) -> List[Component]:
    if not el.get_text(strip=True):
        # Image-only paragraphs are common in WYSIWYG output
        images = [image_from_img(img, base_url) for img in el.find_all("img")]
        return [image for image in images if image]
    html = inner_html(el)
    if not html:
        return []
    return [{"type": "paragraph", "text": html, "format": "html"}]


def convert_heading(el: Tag, level: int) -> List[Component]:
    text = el.get_text().strip()
    if not text:
        return []
    return [{"type": "heading", "level": level, "text": text, "format": "text"}]


def convert_blockquote(el: Tag, component_type: str = "blockquote") -> List[Component]:
    cite = el.find(["cite", "footer"])
    paragraphs = [p for p in el.find_all("p") if not _inside(p, cite)]
    if paragraphs:
        text = "\n".join(p.get_text().strip() for p in paragraphs if p.get_text(strip=True))
    else:
        text = "".join(
            str(s) for s in el.find_all(string=True) if not _inside(s, cite)
        ).strip()
    if not text:
        return []
    attribution = None
    if cite is not None:
        attribution = cite.get_text().strip().lstrip("—–- ").strip() or None
    return [compact({"type": component_type, "text": text, "attribution": attribution})]


def _inside(node, container: Optional[Tag]) -> bool:
    if container is None:
        return False
    return node is container or any(parent is container for parent in node.parents)


def convert_list(el: Tag, style: str) -> List[Component]:
    items = [inner_html(li) for li in el.find_all("li", recursive=False)]
    items = [item for item in items if item]
    if not items:
        return []
    return [{"type": "list", "style": style, "items": items}]


def convert_pre(el: Tag) -> List[Component]:
    code = el.find("code")
    if code is None:
        return [{"type": "preformatted", "text": el.get_text()}]
    language = None
    for cls in code.get("class") or []:
        if cls.startswith("language-"):
            language = cls[len("language-"):] or None
            break
    return [compact({"type": "codeBlock", "code": code.get_text(), "language": language})]


def convert_figure(el: Tag, base_url: str) -> List[Component]:
    caption = figcaption_text(el)
    iframe = el.find("iframe")
    if iframe is not None:
        embed = embed_from_iframe(iframe, base_url, caption=caption)
        return [embed] if embed else []
    video = el.find("video")
    if video is not None:
        clip = video_from_tag(video, base_url, caption=caption)
        return [clip] if clip else []
    img = el.find("img")
    if img is not None:
        image = image_from_img(img, base_url, caption=caption)
        return [image] if image else []
    return []


def convert_table(el: Tag) -> List[Component]:
    thead = el.find("thead")
    rows: List[List[str]] = []
    header_flags: List[bool] = []
    for tr in el.find_all("tr"):
        cells = tr.find_all(["th", "td"], recursive=False)
        if not cells:
            continue
        rows.append([cell.get_text(" ", strip=True) for cell in cells])
        header_flags.append(_inside(tr, thead) or all(cell.name == "th" for cell in cells))
    if not rows:
        return []
    header_rows = 0
    for flag in header_flags:
        if not flag:
            break
        header_rows += 1
    # A table made only of <th> rows has no body to head
    if header_rows == len(rows) and thead is None:
        header_rows = 0
    table: Component = {"type": "table", "rows": rows}
    if header_rows:
        table["headerRows"] = header_rows
    return [table]


def figcaption_text(el: Tag) -> Optional[str]:
    figcaption = el.find("figcaption")
    if figcaption is None:
        return None
    return figcaption.get_text().strip() or None


def image_src(img: Tag) -> Optional[str]:
    for attr in ("src", "data-src"):
        value = (img.get(attr) or "").strip()
        if value and not value.startswith("data:"):
            return value
    return None


def image_from_img(img: Tag, base_url: str, caption: Optional[str] = None) -> Optional[Component]:
    src = image_src(img)
    if not src:
        logger.debug("Skipping image without a usable src")
        return None
    return compact(
        {
            "type": "image",
            "url": resolve_url(base_url, src),
            "caption": caption,
            "altText": (img.get("alt") or "").strip() or None,
            "width": parse_dimension(img.get("width")),
            "height": parse_dimension(img.get("height")),
        }
    )


def video_from_tag(video: Tag, base_url: str, caption: Optional[str] = None) -> Optional[Component]:
    src = (video.get("src") or "").strip()
    if not src:
        source = video.find("source", src=True)
        src = (source["src"] or "").strip() if source is not None else ""
    if not src:
        return None
    poster = (video.get("poster") or "").strip()
    return compact(
        {
            "type": "video",
            "url": resolve_url(base_url, src),
            "thumbnailUrl": resolve_url(base_url, poster) if poster else None,
            "caption": caption,
        }
    )


def embed_from_iframe(iframe: Tag, base_url: str, caption: Optional[str] = None) -> Optional[Component]:
    src = (iframe.get("src") or iframe.get("data-src") or "").strip()
    if not src:
        return None
    return embed_from_url(resolve_url(base_url, src), caption=caption)


def embed_from_url(
    url: str,
    caption: Optional[str] = None,
    fallback_text: Optional[str] = None,
) -> Component:
    return compact(
        {
            "type": "embed",
            "platform": detect_embed_platform(url),
            "embedUrl": url,
            "caption": caption,
            "fallbackText": fallback_text,
        }
    )
