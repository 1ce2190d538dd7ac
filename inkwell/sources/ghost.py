"""
Ghost CMS source (404 Media and other Ghost-hosted publishers).

Article pages carry JSON-LD + OpenGraph metadata and a content container whose
children are plain HTML plus Koenig editor cards (`kg-*-card`). Homepages list
articles as `.post-card` elements.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from inkwell.errors import ExtractionError, InkwellError
from inkwell.extractors.html_body import (
    Component,
    convert_blockquote,
    convert_children,
    convert_figure,
    convert_standard_element,
    embed_from_iframe,
    embed_from_url,
    figcaption_text,
    image_from_img,
)
from inkwell.extractors.shared import (
    build_article,
    escape_html,
    extract_canonical_url,
    extract_json_ld,
    extract_og_tags,
    json_ld_authors,
    json_ld_keywords,
    json_ld_section,
    json_ld_text,
    json_ld_thumbnail,
    load_html,
    locale_to_language,
    og_thumbnail,
    resolve_url,
    safe_iso,
    unique,
    utc_now_iso,
)
from inkwell.infra.http import HttpFetcher
from inkwell.sources.base import PublisherRef, publisher_for_url
from inkwell.utils.dedupe import dedupe_by_key

logger = logging.getLogger(__name__)

GHOST_PUBLISHERS = [
    PublisherRef(
        id="404-media",
        homepage_url="https://www.404media.co/",
        pattern=re.compile(r"^https?://(www\.)?404media\.co/"),
    ),
]

# 404 Media uses post__content, stock Casper themes use gh-content.
CONTENT_SELECTORS = [".post__content", ".gh-content", ".post-content", "article .content", "article"]

CARD_SELECTORS = [".post-card"]
CARD_TITLE_SELECTORS = [".post-card__title > a", ".post-card__title"]
CARD_LINK_SELECTORS = [".post-card__title > a", "a.post-card__image", "h4 a"]
CARD_EXCERPT_SELECTORS = [".post-card__excerpt"]
CARD_IMAGE_SELECTORS = [".post-card__image img[data-src]", ".post-card__image img[src]"]
CARD_DATE_SELECTORS = ["time.byline__date[datetime]", "time[datetime]"]

SKIPPED_DIV_CLASSES = {"outpost-pub-container", "post-author", "post-access-cta"}


class GhostSource:
    id = "ghost"
    cms_type = "ghost"

    def __init__(self, fetcher: Optional[HttpFetcher] = None, publishers: Optional[List[PublisherRef]] = None) -> None:
        self.publishers = list(publishers if publishers is not None else GHOST_PUBLISHERS)
        self.homepage_url = self.publishers[0].homepage_url if self.publishers else None
        self._fetcher = fetcher

    @property
    def fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            self._fetcher = HttpFetcher()
        return self._fetcher

    def matches(self, url: str) -> bool:
        return any(publisher.matches(url) for publisher in self.publishers)

    # --- Parse ---

    def parse_article(self, html: str, url: str) -> Dict[str, Any]:
        soup = load_html(html)
        root = find_content_root(soup)
        if root is None:
            raise ExtractionError(
                f"No Ghost content container found (tried {', '.join(CONTENT_SELECTORS)})",
                url=url,
            )

        json_ld = extract_json_ld(soup) or {}
        og_tags = extract_og_tags(soup)
        publisher = publisher_for_url(self.publishers, url)
        body = convert_children(root, url, self._convert_element)

        paywall = None
        if soup.select_one(".post-access-cta") is not None:
            paywall = {"status": "premium", "previewBoundary": len(body)}

        return build_article(
            source={
                "url": url,
                "canonicalUrl": extract_canonical_url(soup, og_tags, url),
                "publisherId": publisher.id,
                "cmsType": self.cms_type,
                "ingestionMethod": "scrape",
            },
            metadata=self._metadata(soup, json_ld, og_tags, url),
            authors=json_ld_authors(json_ld),
            body=body,
            paywall=paywall,
        )

    def _metadata(self, soup: BeautifulSoup, json_ld: Dict[str, Any], og_tags: Dict[str, str], url: str) -> Dict[str, Any]:
        title = (json_ld_text(json_ld, "headline") or og_tags.get("og:title") or "").strip() or "Untitled"
        published_at = (
            safe_iso(json_ld.get("datePublished"))
            or safe_iso(og_tags.get("article:published_time"))
            or utc_now_iso()
        )
        modified_at = safe_iso(json_ld.get("dateModified")) or safe_iso(og_tags.get("article:modified_time"))
        return {
            "title": title,
            "excerpt": json_ld_text(json_ld, "description") or og_tags.get("og:description"),
            "language": locale_to_language(og_tags.get("og:locale"), "en"),
            "publishedAt": published_at,
            "modifiedAt": modified_at,
            "keywords": json_ld_keywords(json_ld),
            "tags": body_class_tags(soup),
            "section": json_ld_section(json_ld) or og_tags.get("article:section"),
            "thumbnail": json_ld_thumbnail(json_ld, url) or og_thumbnail(og_tags, url),
        }

    def _convert_element(self, el: Tag, base_url: str) -> List[Component]:
        classes = set(el.get("class") or [])
        if el.name == "figure":
            return self._convert_figure(el, classes, base_url)
        if el.name == "div":
            return self._convert_div(el, classes, base_url)
        if el.name == "blockquote" and "kg-blockquote-alt" in classes:
            return convert_blockquote(el, component_type="pullquote")
        return convert_standard_element(el, base_url)

    def _convert_figure(self, el: Tag, classes: set, base_url: str) -> List[Component]:
        if "kg-gallery-card" in classes:
            images = [image_from_img(img, base_url) for img in el.find_all("img")]
            return [image for image in images if image]
        if "kg-embed-card" in classes:
            return convert_embed_card(el, base_url)
        if "kg-bookmark-card" in classes:
            return [convert_bookmark_card(el, base_url)]
        if "kg-video-card" in classes:
            return convert_video_card(el, base_url)
        return convert_figure(el, base_url)

    def _convert_div(self, el: Tag, classes: set, base_url: str) -> List[Component]:
        if "kg-callout-card" in classes:
            callout = el.select_one(".kg-callout-text")
            text = callout.get_text().strip() if callout is not None else ""
            return [{"type": "blockquote", "text": text}] if text else []
        if classes & SKIPPED_DIV_CLASSES:
            logger.debug("Skipping non-content div %s", sorted(classes & SKIPPED_DIV_CLASSES))
            return []
        if "post-sneak-peek" in classes:
            # Paywalled preview; its children are still article content
            return convert_children(el, base_url, self._convert_element)
        return []

    # --- Discovery ---

    def parse_articles(self, html: str, url: str) -> List[Dict[str, Any]]:
        soup = load_html(html)
        publisher = publisher_for_url(self.publishers, url)
        articles: List[Dict[str, Any]] = []
        for selector in CARD_SELECTORS:
            for card in soup.select(selector):
                article = extract_card(card, url, publisher.id)
                if article is not None:
                    articles.append(article)
        return dedupe_by_key(articles, key_fn=lambda article: article["url"])

    # --- Fetching ---

    def scrape_article(self, url: str) -> Dict[str, Any]:
        return self.parse_article(self.fetcher.fetch_text(url), url)

    def scrape_articles(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        target = url or self.homepage_url
        if not target:
            raise InkwellError(f"No homepage URL configured for source '{self.id}'")
        return self.parse_articles(self.fetcher.fetch_text(target), target)

    def init(self) -> None:
        pass

    def dispose(self) -> None:
        if self._fetcher is not None:
            self._fetcher.close()
            self._fetcher = None


def find_content_root(soup: BeautifulSoup) -> Optional[Tag]:
    for selector in CONTENT_SELECTORS:
        root = soup.select_one(selector)
        if root is not None:
            return root
    return None


def body_class_tags(soup: BeautifulSoup) -> Optional[List[str]]:
    """Ghost renders post tags as `tag-<slug>` classes on <body>."""
    body = soup.body
    classes = (body.get("class") or []) if body is not None else []
    tags = [cls[len("tag-"):].replace("-", " ") for cls in classes if cls.startswith("tag-")]
    tags = unique(tag for tag in tags if tag)
    return tags or None


def convert_embed_card(el: Tag, base_url: str) -> List[Component]:
    caption = figcaption_text(el)
    iframe = el.find("iframe")
    if iframe is not None:
        embed = embed_from_iframe(iframe, base_url, caption=caption)
        return [embed] if embed else []
    # Social embeds ship as a blockquote plus a loader script
    quote = el.find("blockquote")
    if quote is None:
        return []
    permalink = quote.get("data-instgrm-permalink")
    if not permalink:
        links = [a["href"] for a in quote.find_all("a", href=True)]
        status_links = [href for href in links if "/status/" in href or "/p/" in href or "/video/" in href]
        permalink = (status_links or links or [None])[-1]
    if not permalink:
        return []
    fallback = quote.get_text(" ", strip=True) or None
    return [embed_from_url(resolve_url(base_url, permalink), caption=caption, fallback_text=fallback)]


def convert_bookmark_card(el: Tag, base_url: str) -> Component:
    link = el.select_one("a.kg-bookmark-container")
    href = resolve_url(base_url, link.get("href") or "") if link is not None else ""
    title_node = el.select_one(".kg-bookmark-title")
    title = (title_node.get_text().strip() if title_node is not None else "") or "Bookmark"
    return {
        "type": "paragraph",
        "text": f'<a href="{escape_html(href)}">{escape_html(title)}</a>',
        "format": "html",
    }


def convert_video_card(el: Tag, base_url: str) -> List[Component]:
    video = el.find("video")
    if video is None:
        return []
    src = (video.get("src") or "").strip()
    if not src:
        source = video.find("source", src=True)
        src = (source.get("src") or "").strip() if source is not None else ""
    if not src:
        logger.debug("Skipping video card without a source")
        return []
    poster = (video.get("poster") or "").strip()
    component: Component = {"type": "video", "url": resolve_url(base_url, src)}
    # Ghost uses a spacergif placeholder until the real thumbnail loads
    if poster and "spacergif" not in poster:
        component["thumbnailUrl"] = resolve_url(base_url, poster)
    caption = figcaption_text(el)
    if caption:
        component["caption"] = caption
    return [component]


def extract_card(card: Tag, base_url: str, publisher_id: str) -> Optional[Dict[str, Any]]:
    link = _find_first(card, CARD_LINK_SELECTORS, lambda el: el.get("href"))
    if not link:
        return None
    absolute_url = resolve_url(base_url, link)
    if not absolute_url.startswith(("http://", "https://")):
        return None
    title = _find_first(card, CARD_TITLE_SELECTORS, lambda el: el.get_text().strip())
    if not title:
        return None

    article: Dict[str, Any] = {"url": absolute_url, "title": title, "sourceId": publisher_id}
    excerpt = _find_first(card, CARD_EXCERPT_SELECTORS, lambda el: el.get_text().strip())
    if excerpt:
        article["excerpt"] = excerpt
    thumbnail = _card_image(card, base_url)
    if thumbnail:
        article["thumbnail"] = thumbnail
    published_at = _find_first(card, CARD_DATE_SELECTORS, lambda el: safe_iso(el.get("datetime")))
    if published_at:
        article["publishedAt"] = published_at
    return article


def _find_first(card: Tag, selectors: List[str], extract: Callable[[Tag], Optional[str]]) -> Optional[str]:
    for selector in selectors:
        el = card.select_one(selector)
        if el is not None:
            value = extract(el)
            if value:
                return value
    return None


def _card_image(card: Tag, base_url: str) -> Optional[Dict[str, Any]]:
    for selector in CARD_IMAGE_SELECTORS:
        img = card.select_one(selector)
        if img is None:
            continue
        raw = img.get("data-src") or img.get("src")
        if raw and "placeholder" not in raw:
            return {"url": resolve_url(base_url, raw)}
    return None
