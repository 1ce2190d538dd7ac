"""
Cross-publisher extraction helpers: JSON-LD, OpenGraph/article meta tags,
canonical links, date normalization, embed classification and HTML escaping.

Anything that depends on a specific CMS's DOM or JSON shape belongs in that
source's module, not here.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from dateutil.parser import parse as parse_date

from inkwell.schemas.models import SCHEMA_VERSION
from inkwell.utils.dedupe import dedupe_by_key

logger = logging.getLogger(__name__)

ARTICLE_TYPES = {"Article", "NewsArticle", "BlogPosting", "ReportageNewsArticle"}

# Void elements render as <br>, not <br/>; text is escaped with &amp; &lt; &gt; only.
HTML_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

EMBED_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"youtube\.com|youtube-nocookie\.com|youtu\.be"), "youtube"),
    (re.compile(r"vimeo\.com"), "vimeo"),
    (re.compile(r"dailymotion\.com|dai\.ly"), "dailymotion"),
    (re.compile(r"facebook\.com|fb\.watch"), "facebook"),
    (re.compile(r"instagram\.com"), "instagram"),
    (re.compile(r"tiktok\.com"), "tiktok"),
    (re.compile(r"twitter\.com|(?:^|[/.])x\.com"), "x"),
]


def load_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def extract_json_ld(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """
    Return the first Article-like JSON-LD object on the page.

    Handles top-level lists, `@graph` containers and `@type` lists; malformed
    blocks are skipped.
    """
    for tag in soup.select('script[type="application/ld+json"]'):
        try:
            payload = json.loads(tag.string or "{}")
        except json.JSONDecodeError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        for candidate in _json_ld_candidates(payload):
            if _is_article_type(candidate.get("@type")):
                return candidate
    return None


def _json_ld_candidates(payload: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(payload, list):
        items = payload
    else:
        items = [payload]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get("@graph")
        if isinstance(graph, list):
            for node in graph:
                if isinstance(node, dict):
                    yield node


def _is_article_type(value: Any) -> bool:
    if isinstance(value, str):
        return value in ARTICLE_TYPES
    if isinstance(value, list):
        return any(isinstance(v, str) and v in ARTICLE_TYPES for v in value)
    return False


def extract_og_tags(soup: BeautifulSoup) -> Dict[str, str]:
    """Collect `og:*` and `article:*` meta properties into a flat dict (first value wins)."""
    tags: Dict[str, str] = {}
    for meta in soup.select("meta[property]"):
        prop = meta.get("property") or ""
        content = meta.get("content")
        if not content or not (prop.startswith("og:") or prop.startswith("article:")):
            continue
        tags.setdefault(prop, content.strip())
    return tags


def extract_canonical_url(soup: BeautifulSoup, og_tags: Dict[str, str], url: str) -> str:
    link = soup.select_one('link[rel="canonical"][href]')
    if link and link["href"].strip():
        return urljoin(url, link["href"].strip())
    return og_tags.get("og:url") or url


def og_thumbnail(og_tags: Dict[str, str], base_url: str) -> Optional[Dict[str, Any]]:
    image = og_tags.get("og:image")
    if not image:
        return None
    return compact(
        {
            "url": resolve_url(base_url, image),
            "width": parse_dimension(og_tags.get("og:image:width")),
            "height": parse_dimension(og_tags.get("og:image:height")),
        }
    )


def json_ld_thumbnail(json_ld: Optional[Dict[str, Any]], base_url: str) -> Optional[Dict[str, Any]]:
    image = (json_ld or {}).get("image")
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, str) and image:
        return {"url": resolve_url(base_url, image)}
    if isinstance(image, dict) and image.get("url"):
        return compact(
            {
                "url": resolve_url(base_url, image["url"]),
                "width": parse_dimension(image.get("width")),
                "height": parse_dimension(image.get("height")),
            }
        )
    return None


def json_ld_text(json_ld: Optional[Dict[str, Any]], key: str) -> Optional[str]:
    """Stripped string value of `key`; lists yield their first non-empty string."""
    value = (json_ld or {}).get(key)
    if isinstance(value, list):
        value = next((v for v in value if isinstance(v, str) and v.strip()), None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def json_ld_keywords(json_ld: Optional[Dict[str, Any]]) -> Optional[List[str]]:
    keywords = (json_ld or {}).get("keywords")
    if isinstance(keywords, str):
        values = [k.strip() for k in keywords.split(",")]
    elif isinstance(keywords, list):
        values = [k.strip() for k in keywords if isinstance(k, str)]
    else:
        return None
    values = [k for k in values if k]
    return values or None


def json_ld_authors(json_ld: Optional[Dict[str, Any]], ignore: Iterable[str] = ()) -> List[Dict[str, Any]]:
    raw = (json_ld or {}).get("author")
    if not raw:
        return []
    entries = raw if isinstance(raw, list) else [raw]
    skipped = set(ignore)
    authors: List[Dict[str, Any]] = []
    for entry in entries:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict):
            continue
        name = (entry.get("name") or "").strip()
        if not name or name in skipped:
            continue
        authors.append(compact({"name": name, "url": entry.get("url") or None}))
    return authors


def locale_to_language(locale: Optional[str], default: str) -> str:
    if not locale:
        return default
    return locale.replace("_", "-")


def escape_html(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def inner_html(tag: Tag) -> str:
    return tag.decode_contents(formatter=HTML_FORMATTER).strip()


def ensure_iso(value: str) -> str:
    """
    Normalize any parseable date string to `YYYY-MM-DDTHH:MM:SS.mmmZ` in UTC.

    Values without an offset or zone are taken to be UTC. Raises ValueError when
    the string is not a date.
    """
    try:
        parsed = parse_date(value)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Unparseable date: {value!r}") from exc
    return format_timestamp(parsed)


def safe_iso(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return ensure_iso(value.strip())
    except ValueError:
        logger.debug("Ignoring unparseable date %r", value)
        return None


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def detect_embed_platform(url: str) -> str:
    for pattern, platform in EMBED_PATTERNS:
        if pattern.search(url):
            return platform
    return "other"


def resolve_url(base_url: str, href: str) -> str:
    return urljoin(base_url, href.strip())


def parse_dimension(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value >= 1 else None
    if isinstance(value, str):
        match = re.match(r"\s*(\d+)", value)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
    return None


def compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None so optional fields stay absent."""
    return {key: value for key, value in data.items() if value is not None}


def unique(values: Iterable[str]) -> List[str]:
    return dedupe_by_key(values, key_fn=lambda value: value)


def build_article(
    source: Dict[str, Any],
    metadata: Dict[str, Any],
    authors: List[Dict[str, Any]],
    body: List[Dict[str, Any]],
    **extra: Any,
) -> Dict[str, Any]:
    """Wrap parser output in the intermediary document envelope (camelCase keys)."""
    article = {
        "version": SCHEMA_VERSION,
        "extractedAt": utc_now_iso(),
        "source": compact(source),
        "metadata": compact(metadata),
        "authors": authors,
        "body": body,
    }
    article.update(compact(extra))
    return article


def json_ld_section(json_ld: Optional[Dict[str, Any]]) -> Optional[str]:
    section = (json_ld or {}).get("articleSection")
    if isinstance(section, list):
        section = next((s for s in section if isinstance(s, str) and s.strip()), None)
    if isinstance(section, str) and section.strip():
        return section.strip()
    return None
