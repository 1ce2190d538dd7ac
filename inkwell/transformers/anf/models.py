"""
Pydantic models for Apple News Format (ANF) article documents.

Only the subset of ANF the transformer emits is modelled. Keys that ANF spells
with an upper-case acronym (`URL`, `stillURL`, `canonicalURL`, `thumbnailURL`)
carry explicit aliases; everything else is camelCase.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inkwell.schemas.models import NonEmptyStr, PositiveInt, Timestamp, UrlStr

ANF_VERSION = "1.9"

AnfTextFormat = Literal["html", "markdown", "none"]
HeadingRole = Literal["heading1", "heading2", "heading3", "heading4", "heading5", "heading6"]


class _AnfModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ComponentTextStyle(_AnfModel):
    font_name: Optional[str] = None
    font_size: Optional[PositiveInt] = None
    line_height: Optional[PositiveInt] = None
    text_alignment: Optional[Literal["left", "center", "right", "justified", "none"]] = None
    text_color: Optional[str] = None
    font_weight: Optional[str] = None
    font_style: Optional[str] = None
    paragraph_spacing_before: Optional[int] = None
    paragraph_spacing_after: Optional[int] = None


class Layout(_AnfModel):
    columns: PositiveInt
    width: PositiveInt
    margin: Optional[int] = None
    gutter: Optional[int] = None


class CaptionDescriptor(_AnfModel):
    text: str
    format: Optional[AnfTextFormat] = None
    text_style: Optional[str] = None


# --- Components (discriminated on `role`) ---


class _TextComponent(_AnfModel):
    text: str
    format: Optional[AnfTextFormat] = None
    text_style: Optional[str] = None
    layout: Optional[str] = None


class BodyText(_TextComponent):
    role: Literal["body"] = "body"


class HeadingText(_TextComponent):
    role: HeadingRole


class QuoteText(_TextComponent):
    role: Literal["quote"] = "quote"


class PullquoteText(_TextComponent):
    role: Literal["pullquote"] = "pullquote"


class Photo(_AnfModel):
    role: Literal["photo"] = "photo"
    url: UrlStr = Field(alias="URL")
    caption: Optional[Union[str, CaptionDescriptor]] = None
    accessibility_caption: Optional[str] = None
    layout: Optional[str] = None


class Video(_AnfModel):
    role: Literal["video"] = "video"
    url: UrlStr = Field(alias="URL")
    still_url: Optional[UrlStr] = Field(default=None, alias="stillURL")
    caption: Optional[str] = None
    accessibility_caption: Optional[str] = None
    layout: Optional[str] = None


class EmbedWebVideo(_AnfModel):
    role: Literal["embedwebvideo"] = "embedwebvideo"
    url: UrlStr = Field(alias="URL")
    caption: Optional[str] = None
    accessibility_caption: Optional[str] = None
    layout: Optional[str] = None


class Tweet(_AnfModel):
    role: Literal["tweet"] = "tweet"
    url: UrlStr = Field(alias="URL")
    layout: Optional[str] = None


class Instagram(_AnfModel):
    role: Literal["instagram"] = "instagram"
    url: UrlStr = Field(alias="URL")
    layout: Optional[str] = None


class FacebookPost(_AnfModel):
    role: Literal["facebook_post"] = "facebook_post"
    url: UrlStr = Field(alias="URL")
    layout: Optional[str] = None


class TikTok(_AnfModel):
    role: Literal["tiktok"] = "tiktok"
    url: UrlStr = Field(alias="URL")
    layout: Optional[str] = None


class Divider(_AnfModel):
    role: Literal["divider"] = "divider"
    layout: Optional[str] = None


class HtmlTable(_AnfModel):
    role: Literal["htmltable"] = "htmltable"
    html: str
    layout: Optional[str] = None


class BannerAdvertisement(_AnfModel):
    role: Literal["banner_advertisement"] = "banner_advertisement"
    banner_type: Optional[Literal["any", "standard", "double_height", "large"]] = None
    layout: Optional[str] = None


AnfComponent = Annotated[
    Union[
        BodyText,
        HeadingText,
        QuoteText,
        PullquoteText,
        Photo,
        Video,
        EmbedWebVideo,
        Tweet,
        Instagram,
        FacebookPost,
        TikTok,
        Divider,
        HtmlTable,
        BannerAdvertisement,
    ],
    Field(discriminator="role"),
]


class AnfMetadata(_AnfModel):
    authors: Optional[List[str]] = None
    excerpt: Optional[str] = None
    canonical_url: Optional[UrlStr] = Field(default=None, alias="canonicalURL")
    thumbnail_url: Optional[UrlStr] = Field(default=None, alias="thumbnailURL")
    date_created: Optional[Timestamp] = None
    date_published: Optional[Timestamp] = None
    date_modified: Optional[Timestamp] = None


class AnfDocument(_AnfModel):
    version: NonEmptyStr
    identifier: Annotated[str, Field(min_length=1, max_length=64)]
    title: NonEmptyStr
    subtitle: Optional[str] = None
    language: NonEmptyStr
    layout: Layout
    components: Annotated[List[AnfComponent], Field(min_length=1)]
    component_text_styles: Dict[str, ComponentTextStyle]
    metadata: Optional[AnfMetadata] = None
