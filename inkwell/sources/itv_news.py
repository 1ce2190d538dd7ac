"""
ITV News source (Next.js front end over Contentful).

Pages embed their data as JSON in `<script id="__NEXT_DATA__">`; the article
lives at `props.pageProps.article` and its body is a Contentful rich-text tree.
The site renders client-side, so fetching goes through a headless browser.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from inkwell.errors import ExtractionError
from inkwell.extractors.shared import (
    build_article,
    compact,
    escape_html,
    extract_canonical_url,
    extract_json_ld,
    extract_og_tags,
    json_ld_authors,
    json_ld_keywords,
    json_ld_section,
    json_ld_text,
    load_html,
    locale_to_language,
    og_thumbnail,
    parse_dimension,
    resolve_url,
    safe_iso,
    unique,
    utc_now_iso,
)
from inkwell.infra.browser import BrowserFetcher
from inkwell.sources.base import PublisherRef
from inkwell.utils.dedupe import dedupe_by_key

logger = logging.getLogger(__name__)

ITV_HOMEPAGE_URL = "https://www.itv.com/news"
ITV_PUBLISHER_ID = "itv-news"
GENERIC_AUTHOR = "ITV News"

# Article pages plus the bare /news homepage
ITV_URL_PATTERN = re.compile(r"^https?://(www\.)?itv\.com/news(?:/|\?|$)")

# news/YYYY-MM-DD/slug or news/<region>/YYYY-MM-DD/slug
ARTICLE_LINK_PATTERN = re.compile(r"^news/(?:[\w-]+/)*\d{4}-\d{2}-\d{2}/[\w-]+$")
DOM_LINK_PATTERN = re.compile(r"/news/(?:[\w-]+/)*(\d{4}-\d{2}-\d{2}/[\w-]+)")

BYLINE_PATTERN = re.compile(r"^By\s+(?:[\w\s]+?Editor\s+)?(.+)", re.IGNORECASE)
BYLINE_SCAN_LIMIT = 8

MARK_TAGS = {
    "bold": "strong",
    "italic": "em",
    "underline": "u",
    "code": "code",
    "superscript": "sup",
    "subscript": "sub",
    "strikethrough": "s",
}

HEADING_NODES = {f"heading-{level}": level for level in range(1, 7)}


def wait_for_next_data(page: Page) -> None:
    """Browser hook: wait for the Next.js payload, then dismiss the Cassie cookie banner."""
    page.wait_for_function(
        "() => (document.getElementById('__NEXT_DATA__')?.textContent?.length ?? 0) > 0",
        timeout=10000,
    )
    accept = page.locator('.cassie-pre-banner button:has-text("Accept")').first
    try:
        accept.wait_for(state="visible", timeout=2000)
        accept.click()
    except PlaywrightError:
        logger.debug("No cookie banner to dismiss")


class ItvNewsSource:
    id = "itv-news"
    cms_type = "contentful"
    homepage_url = ITV_HOMEPAGE_URL

    def __init__(self, fetcher: Optional[BrowserFetcher] = None, headless: bool = True) -> None:
        self.publishers = [PublisherRef(id=ITV_PUBLISHER_ID, homepage_url=ITV_HOMEPAGE_URL, pattern=ITV_URL_PATTERN)]
        self._fetcher = fetcher
        self.headless = headless

    @property
    def fetcher(self) -> BrowserFetcher:
        if self._fetcher is None:
            self._fetcher = BrowserFetcher(headless=self.headless, on_load=wait_for_next_data)
        return self._fetcher

    def matches(self, url: str) -> bool:
        return bool(ITV_URL_PATTERN.search(url))

    # --- Parse ---

    def parse_article(self, html: str, url: str) -> Dict[str, Any]:
        soup = load_html(html)
        next_data = extract_next_data(soup)
        if next_data is None:
            raise ExtractionError("Could not find __NEXT_DATA__ in page", url=url)
        article = _dig(next_data, "props", "pageProps", "article")
        if not isinstance(article, dict):
            raise ExtractionError("No article data found in __NEXT_DATA__", url=url)

        json_ld = extract_json_ld(soup) or {}
        og_tags = extract_og_tags(soup)
        content = _dig(article, "body", "content") or []

        return build_article(
            source={
                "url": url,
                # ITV's og:url points at the section, not the article
                "canonicalUrl": extract_canonical_url(soup, {}, url),
                "publisherId": ITV_PUBLISHER_ID,
                "cmsType": self.cms_type,
                "ingestionMethod": "scrape",
            },
            metadata=build_metadata(article, json_ld, og_tags, url),
            authors=build_authors(content, json_ld),
            body=build_body(content),
            relatedContent=build_related(content) or None,
        )

    # --- Discovery ---

    def parse_articles(self, html: str, url: str) -> List[Dict[str, Any]]:
        soup = load_html(html)
        page_props = _dig(extract_next_data(soup) or {}, "props", "pageProps")
        if isinstance(page_props, dict):
            articles = discover_from_next_data(page_props)
            if articles:
                return articles
        logger.debug("No __NEXT_DATA__ listings on %s; falling back to DOM anchors", url)
        return discover_from_dom(soup, url)

    # --- Fetching ---

    def scrape_article(self, url: str) -> Dict[str, Any]:
        return self.parse_article(self.fetcher.fetch_html(url), url)

    def scrape_articles(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        target = url or self.homepage_url
        return self.parse_articles(self.fetcher.fetch_html(target), target)

    def init(self) -> None:
        self.fetcher.init()

    def dispose(self) -> None:
        if self._fetcher is not None:
            self._fetcher.dispose()


def extract_next_data(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None or not script.string:
        return None
    try:
        data = json.loads(script.string)
    except json.JSONDecodeError:
        logger.debug("Malformed __NEXT_DATA__ payload")
        return None
    return data if isinstance(data, dict) else None


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _labels(items: Any) -> List[str]:
    if not isinstance(items, list):
        return []
    return [item["label"] for item in items if isinstance(item, dict) and item.get("label")]


def build_metadata(
    article: Dict[str, Any],
    json_ld: Dict[str, Any],
    og_tags: Dict[str, str],
    url: str,
) -> Dict[str, Any]:
    title = (article.get("title") or json_ld_text(json_ld, "headline") or og_tags.get("og:title") or "").strip() or "Untitled"
    short_title = article.get("shortTitle")
    published_at = (
        safe_iso(article.get("displayDate"))
        or safe_iso(json_ld.get("datePublished"))
        or utc_now_iso()
    )
    regions = _labels(article.get("regions"))
    topics = unique(_labels(article.get("topics")))
    label = article.get("label")
    return {
        "title": title,
        "subtitle": short_title if short_title and short_title != title else None,
        "excerpt": article.get("summary") or json_ld_text(json_ld, "description") or og_tags.get("og:description"),
        "language": locale_to_language(og_tags.get("og:locale"), "en-GB"),
        "publishedAt": published_at,
        "modifiedAt": safe_iso(json_ld.get("dateModified")),
        "categories": regions or None,
        "tags": topics or None,
        "keywords": json_ld_keywords(json_ld),
        "section": json_ld_section(json_ld) or (regions[0] if regions else None),
        "thumbnail": _article_thumbnail(article.get("image"), url) or og_thumbnail(og_tags, url),
        "urgency": "breaking" if isinstance(label, str) and label.lower() == "breaking" else None,
    }


def _article_thumbnail(image: Any, base_url: str) -> Optional[Dict[str, Any]]:
    if not isinstance(image, dict) or not image.get("url"):
        return None
    return compact(
        {
            "url": resolve_url(base_url, image["url"]),
            "altText": image.get("description") or image.get("caption") or None,
            "width": parse_dimension(image.get("width")),
            "height": parse_dimension(image.get("height")),
        }
    )


def build_authors(content: List[Dict[str, Any]], json_ld: Dict[str, Any]) -> List[Dict[str, Any]]:
    # JSON-LD usually credits the generic "ITV News"; the body byline is better.
    byline = extract_byline(content)
    if byline:
        return [{"name": byline}]
    return json_ld_authors(json_ld, ignore=(GENERIC_AUTHOR,))


def extract_byline(content: List[Dict[str, Any]]) -> Optional[str]:
    """Find "By Deputy Content Editor Sophia Ankel"-style bylines near the top of the body."""
    for block in content[:BYLINE_SCAN_LIMIT]:
        if not isinstance(block, dict) or block.get("nodeType") != "paragraph":
            continue
        match = BYLINE_PATTERN.match(plain_text(block).strip())
        if match:
            return match.group(1).strip() or None
    return None


# --- Body conversion ---


def build_body(content: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    components: List[Dict[str, Any]] = []
    for block in content:
        if isinstance(block, dict):
            components.extend(convert_block(block))
    return components


def convert_block(block: Dict[str, Any]) -> List[Dict[str, Any]]:
    node_type = block.get("nodeType")
    if node_type == "paragraph":
        html = render_rich_text(block.get("content") or [])
        return [{"type": "paragraph", "text": html, "format": "html"}] if html.strip() else []
    if node_type in HEADING_NODES:
        text = plain_text(block).strip()
        if not text:
            return []
        return [{"type": "heading", "level": HEADING_NODES[node_type], "text": text, "format": "text"}]
    if node_type == "hr":
        return [{"type": "divider"}]
    if node_type in ("unordered-list", "ordered-list"):
        return convert_list(block, "unordered" if node_type == "unordered-list" else "ordered")
    if node_type == "blockquote":
        parts = [plain_text(child).strip() for child in block.get("content") or []]
        text = "\n".join(part for part in parts if part)
        return [{"type": "blockquote", "text": text}] if text else []
    if node_type == "embedded-entry-block":
        return convert_embedded_entry(block)
    logger.debug("Skipping unsupported rich-text node %s", node_type)
    return []


def convert_list(block: Dict[str, Any], style: str) -> List[Dict[str, Any]]:
    items: List[str] = []
    for list_item in block.get("content") or []:
        # Each list-item wraps one or more paragraphs
        parts = [render_rich_text(child.get("content") or []) for child in list_item.get("content") or []]
        item = " ".join(part for part in parts if part.strip())
        if item:
            items.append(item)
    return [{"type": "list", "style": style, "items": items}] if items else []


def _entry_type(block: Dict[str, Any]) -> Optional[str]:
    return block.get("contentType") or (block.get("data") or {}).get("contentType")


def convert_embedded_entry(block: Dict[str, Any]) -> List[Dict[str, Any]]:
    data = block.get("data") or {}
    content_type = _entry_type(block)

    if content_type == "image":
        if not data.get("url"):
            return []
        return [
            compact(
                {
                    "type": "image",
                    "url": data["url"],
                    "caption": data.get("caption") or None,
                    "credit": data.get("credit") or None,
                    "altText": data.get("description") or data.get("caption") or None,
                }
            )
        ]

    if content_type == "Brightcove":
        if not (data.get("accountId") and data.get("playerId") and data.get("id")):
            logger.debug("Skipping Brightcove entry without player identifiers")
            return []
        return [
            compact(
                {
                    "type": "video",
                    "url": brightcove_url(data["accountId"], data["playerId"], data["id"]),
                    "thumbnailUrl": _dig(data, "poster", "url") or None,
                    "caption": data.get("guidance") or None,
                }
            )
        ]

    if content_type == "tile-links":
        return [
            {
                "type": "paragraph",
                "text": f'<a href="{escape_html(tile_url(tile["link"]))}">{escape_html(_tile_title(tile))}</a>',
                "format": "html",
            }
            for tile in _tiles(data)
        ]

    if content_type == "podcast-show":
        label = data.get("title") or data.get("id") or ""
        return [{"type": "rawHtml", "html": f"<!-- podcast: {escape_html(str(label))} -->"}]

    logger.debug("Skipping unsupported embedded entry %s", content_type)
    return []


def brightcove_url(account_id: Any, player_id: Any, video_id: Any) -> str:
    return f"https://players.brightcove.net/{account_id}/{player_id}_default/index.html?videoId={video_id}"


def tile_url(link: str) -> str:
    return f"https://www.itv.com/news/{link.lstrip('/')}"


def _tiles(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    tiles = data.get("articles")
    if not isinstance(tiles, list):
        return []
    return [tile for tile in tiles if isinstance(tile, dict) and tile.get("link")]


def _tile_title(tile: Dict[str, Any]) -> str:
    return tile.get("shortTitle") or tile.get("title") or "Related article"


def build_related(content: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    related: List[Dict[str, Any]] = []
    for block in content:
        if not isinstance(block, dict) or block.get("nodeType") != "embedded-entry-block":
            continue
        if _entry_type(block) != "tile-links":
            continue
        for tile in _tiles(block.get("data") or {}):
            related.append({"type": "readNext", "title": _tile_title(tile), "url": tile_url(tile["link"])})
    return dedupe_by_key(related, key_fn=lambda item: item["url"])


# --- Rich text rendering ---


def render_rich_text(nodes: Iterable[Dict[str, Any]]) -> str:
    return "".join(render_node(node) for node in nodes if isinstance(node, dict))


def render_node(node: Dict[str, Any]) -> str:
    node_type = node.get("nodeType")
    if node_type == "text":
        text = escape_html(node.get("value") or "")
        for mark in node.get("marks") or []:
            tag = MARK_TAGS.get((mark or {}).get("type"))
            if tag:
                text = f"<{tag}>{text}</{tag}>"
        return text
    if node_type == "hyperlink":
        href = escape_html(_dig(node, "data", "uri") or "")
        return f'<a href="{href}">{render_rich_text(node.get("content") or [])}</a>'
    return render_rich_text(node.get("content") or [])


def plain_text(node: Dict[str, Any]) -> str:
    if not isinstance(node, dict):
        return ""
    if node.get("nodeType") == "text":
        return node.get("value") or ""
    return "".join(plain_text(child) for child in node.get("content") or [])


# --- Discovery ---


def discover_from_next_data(page_props: Dict[str, Any]) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    for section in ("topStories", "popular"):
        items.extend(_dig(page_props, section, "items") or [])
    for collection in page_props.get("collections") or []:
        if isinstance(collection, dict):
            items.extend(collection.get("items") or [])
    # `latest` wraps items in {"fields": {...}} and drops the "news/" prefix
    for wrapper in _dig(page_props, "latest", "items") or []:
        fields = wrapper.get("fields") if isinstance(wrapper, dict) else None
        if not isinstance(fields, dict):
            continue
        link = fields.get("link")
        items.append(dict(fields, link=f"news/{link}" if link else None))

    articles = [article for article in (_listing_item(item) for item in items) if article]
    return dedupe_by_key(articles, key_fn=lambda article: article["url"])


def _listing_item(item: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    title, link = item.get("title"), item.get("link")
    if not title or not link or item.get("externalUrl"):
        return None
    if not ARTICLE_LINK_PATTERN.match(link):
        return None
    image = item.get("image") if isinstance(item.get("image"), dict) else {}
    thumbnail = None
    if image.get("url"):
        thumbnail = compact(
            {
                "url": image["url"],
                "width": parse_dimension(image.get("width")),
                "height": parse_dimension(image.get("height")),
            }
        )
    return compact(
        {
            "url": f"https://www.itv.com/{link}",
            "title": title,
            "excerpt": item.get("summary") or None,
            "thumbnail": thumbnail,
            "publishedAt": safe_iso(item.get("displayDate")),
            "sourceId": ITV_PUBLISHER_ID,
        }
    )


def discover_from_dom(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    articles: List[Dict[str, Any]] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if not DOM_LINK_PATTERN.search(href):
            continue
        articles.append(
            {
                "url": resolve_url(base_url, href),
                "title": anchor.get_text().strip() or "Untitled",
                "sourceId": ITV_PUBLISHER_ID,
            }
        )
    return dedupe_by_key(articles, key_fn=lambda article: article["url"])
