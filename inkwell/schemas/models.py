"""
Pydantic models for the intermediary article document.

Field names are snake_case in Python and camelCase on the wire; dump with
`by_alias=True, exclude_none=True` to get the JSON shape parsers produce.
"""
from __future__ import annotations

import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from urllib.parse import urlsplit

from dateutil.parser import isoparse
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = "1.0"

_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?Z$")


def _check_url(value: str) -> str:
    parts = urlsplit(value)
    if not parts.scheme or not parts.netloc or " " in value:
        raise ValueError("Invalid URL")
    return value


def _check_timestamp(value: str) -> str:
    if not _TIMESTAMP_RE.match(value):
        raise ValueError("Invalid ISO 8601 UTC timestamp")
    try:
        isoparse(value)
    except ValueError as exc:
        raise ValueError("Invalid ISO 8601 UTC timestamp") from exc
    return value


UrlStr = Annotated[str, AfterValidator(_check_url)]
Timestamp = Annotated[str, AfterValidator(_check_timestamp)]
NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(strict=True, gt=0)]
NonNegativeInt = Annotated[int, Field(strict=True, ge=0)]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ImageRef(_Model):
    url: UrlStr
    alt_text: Optional[str] = None
    width: Optional[PositiveInt] = None
    height: Optional[PositiveInt] = None


class Source(_Model):
    url: UrlStr
    canonical_url: Optional[UrlStr] = None
    publisher_id: str
    cms_type: str
    ingestion_method: Literal["scrape", "feed", "api"]
    feed_url: Optional[UrlStr] = None


class Metadata(_Model):
    title: NonEmptyStr
    subtitle: Optional[str] = None
    excerpt: Optional[str] = None
    language: NonEmptyStr
    published_at: Timestamp
    modified_at: Optional[Timestamp] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    section: Optional[str] = None
    thumbnail: Optional[ImageRef] = None
    urgency: Optional[Literal["standard", "priority", "breaking"]] = None
    content_rating: Optional[Literal["general", "mature"]] = None


class Author(_Model):
    name: NonEmptyStr
    url: Optional[UrlStr] = None
    bio: Optional[str] = None
    avatar: Optional[ImageRef] = None


# Body components: a closed union discriminated on `type`.

TextFormat = Literal["text", "html", "markdown"]


class Paragraph(_Model):
    type: Literal["paragraph"] = "paragraph"
    text: str
    format: TextFormat


class Heading(_Model):
    type: Literal["heading"] = "heading"
    level: Annotated[int, Field(strict=True, ge=1, le=6)]
    text: str
    format: TextFormat


class Blockquote(_Model):
    type: Literal["blockquote"] = "blockquote"
    text: str
    attribution: Optional[str] = None


class Pullquote(_Model):
    type: Literal["pullquote"] = "pullquote"
    text: str
    attribution: Optional[str] = None


class ListBlock(_Model):
    type: Literal["list"] = "list"
    style: Literal["ordered", "unordered"]
    items: Annotated[List[str], Field(min_length=1)]


class CodeBlock(_Model):
    type: Literal["codeBlock"] = "codeBlock"
    code: str
    language: Optional[str] = None


class Preformatted(_Model):
    type: Literal["preformatted"] = "preformatted"
    text: str


class ImageComponent(_Model):
    type: Literal["image"] = "image"
    url: UrlStr
    caption: Optional[str] = None
    credit: Optional[str] = None
    alt_text: Optional[str] = None
    width: Optional[PositiveInt] = None
    height: Optional[PositiveInt] = None
    media_ref: Optional[str] = None


class VideoComponent(_Model):
    type: Literal["video"] = "video"
    url: UrlStr
    thumbnail_url: Optional[UrlStr] = None
    caption: Optional[str] = None
    credit: Optional[str] = None
    duration: Optional[Annotated[float, Field(gt=0)]] = None


EmbedPlatform = Literal["youtube", "vimeo", "dailymotion", "facebook", "instagram", "tiktok", "x", "other"]


class EmbedComponent(_Model):
    type: Literal["embed"] = "embed"
    platform: EmbedPlatform
    embed_url: UrlStr
    caption: Optional[str] = None
    fallback_text: Optional[str] = None


class Divider(_Model):
    type: Literal["divider"] = "divider"


class Table(_Model):
    type: Literal["table"] = "table"
    rows: Annotated[List[List[str]], Field(min_length=1)]
    header_rows: Optional[NonNegativeInt] = None


class RawHtml(_Model):
    type: Literal["rawHtml"] = "rawHtml"
    html: str


class AdPlacement(_Model):
    type: Literal["adPlacement"] = "adPlacement"
    slot: str


BodyComponent = Annotated[
    Union[
        Paragraph,
        Heading,
        Blockquote,
        Pullquote,
        ListBlock,
        CodeBlock,
        Preformatted,
        ImageComponent,
        VideoComponent,
        EmbedComponent,
        Divider,
        Table,
        RawHtml,
        AdPlacement,
    ],
    Field(discriminator="type"),
]

BODY_COMPONENT_TYPES = (
    "paragraph",
    "heading",
    "blockquote",
    "pullquote",
    "list",
    "codeBlock",
    "preformatted",
    "image",
    "video",
    "embed",
    "divider",
    "table",
    "rawHtml",
    "adPlacement",
)


class MediaAsset(_Model):
    id: str
    type: Literal["image", "video", "audio"]
    url: UrlStr
    mime_type: Optional[str] = None
    width: Optional[PositiveInt] = None
    height: Optional[PositiveInt] = None
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    credit: Optional[str] = None
    file_size: Optional[PositiveInt] = None


class RelatedContent(_Model):
    type: Literal["readNext", "series"]
    title: str
    url: UrlStr


class Paywall(_Model):
    status: Literal["free", "metered", "premium"]
    preview_boundary: Optional[NonNegativeInt] = None
    access_tier: Optional[str] = None


class Article(_Model):
    version: str
    extracted_at: Timestamp
    source: Source
    metadata: Metadata
    authors: List[Author]
    body: Annotated[List[BodyComponent], Field(min_length=1)]
    media: Optional[List[MediaAsset]] = None
    related_content: Optional[List[RelatedContent]] = None
    paywall: Optional[Paywall] = None
    custom: Optional[Dict[str, Any]] = None


class DiscoveredArticle(_Model):
    url: UrlStr
    title: NonEmptyStr
    excerpt: Optional[str] = None
    thumbnail: Optional[ImageRef] = None
    published_at: Optional[Timestamp] = None
    source_id: str


class DiscoveryResult(_Model):
    articles: List[DiscoveredArticle]
    discovered_at: Timestamp
    source_url: UrlStr
    source_id: str
