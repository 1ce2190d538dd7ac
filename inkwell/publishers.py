"""
Publisher configuration: which homepages to poll and which source parses them.

Loaded from `config/publishers.yaml` (path overridable with
INKWELL_PUBLISHERS_PATH) with `${ENV}` expansion; the built-in defaults apply
when the file does not exist.
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from inkwell.errors import InkwellError
from inkwell.schemas.models import NonEmptyStr, UrlStr

logger = logging.getLogger(__name__)

_ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class PublisherConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: NonEmptyStr
    name: NonEmptyStr
    source_id: NonEmptyStr
    homepage_url: UrlStr
    enabled: bool = Field(default=True, strict=True)


DEFAULT_PUBLISHERS: List[Dict[str, Any]] = [
    {
        "id": "404-media",
        "name": "404 Media",
        "sourceId": "ghost",
        "homepageUrl": "https://www.404media.co/",
        "enabled": True,
    },
    {
        "id": "itv-news",
        "name": "ITV News",
        "sourceId": "itv-news",
        "homepageUrl": "https://www.itv.com/news",
        "enabled": True,
    },
]


class PublisherConfigError(InkwellError):
    """The publisher configuration is malformed or contains duplicate ids."""


def _expand_env(data: Any) -> Any:
    if isinstance(data, str):
        return _ENV_RE.sub(lambda match: os.getenv(match.group(1), ""), data)
    if isinstance(data, dict):
        return {key: _expand_env(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env(item) for item in data]
    return data


def _config_path(path: Optional[Union[str, Path]]) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.getenv("INKWELL_PUBLISHERS_PATH") or Path("config") / "publishers.yaml")


def validate_publishers(entries: List[Dict[str, Any]]) -> List[PublisherConfig]:
    publishers: List[PublisherConfig] = []
    seen = set()
    for index, entry in enumerate(entries):
        try:
            config = PublisherConfig.model_validate(entry)
        except ValidationError as exc:
            raise PublisherConfigError(f"Invalid publisher entry #{index}: {exc}") from exc
        if config.id in seen:
            raise PublisherConfigError(f"Duplicate publisher ID: {config.id}")
        seen.add(config.id)
        publishers.append(config)
    return publishers


def load_publishers(path: Optional[Union[str, Path]] = None) -> List[PublisherConfig]:
    config_path = _config_path(path)
    if not config_path.exists():
        logger.debug("No publisher config at %s; using built-in defaults", config_path)
        return validate_publishers(DEFAULT_PUBLISHERS)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise PublisherConfigError(f"{config_path}: invalid YAML: {exc}") from exc
    entries = data.get("publishers") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise PublisherConfigError(f"{config_path}: expected a 'publishers' list")
    return validate_publishers(_expand_env(entries))


def get_all_publishers(path: Optional[Union[str, Path]] = None) -> List[PublisherConfig]:
    return load_publishers(path)


def get_enabled_publishers(path: Optional[Union[str, Path]] = None) -> List[PublisherConfig]:
    return [publisher for publisher in load_publishers(path) if publisher.enabled]


def get_publisher(publisher_id: str, path: Optional[Union[str, Path]] = None) -> Optional[PublisherConfig]:
    for publisher in load_publishers(path):
        if publisher.id == publisher_id:
            return publisher
    return None
