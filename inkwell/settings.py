"""
Centralised settings for inkwell (env-first, code-light).

Every value can be overridden with an `INKWELL_*` environment variable; the CLI
loads a `.env` file first so local overrides stay out of the shell profile.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from inkwell.infra.http import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_PUBLISHERS_PATH = Path("config") / "publishers.yaml"


@dataclass
class InkwellSettings:
    db_path: str
    output_dir: Path
    publishers_path: Path
    user_agent: str
    fetch_timeout: int
    min_delay: float
    max_retries: int
    headless: bool
    log_level: str


def _int_from_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
        return value if value > 0 else default
    except ValueError:
        logger.warning("Invalid int value for %s=%s; using default %s", key, raw, default)
        return default


def _float_from_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = float(raw)
        return value if value >= 0 else default
    except ValueError:
        logger.warning("Invalid number for %s=%s; using default %s", key, raw, default)
        return default


def _bool_from_env(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    token = raw.strip().lower()
    if token in ("1", "true", "yes", "on"):
        return True
    if token in ("0", "false", "no", "off"):
        return False
    logger.warning("Invalid boolean for %s=%s; using default %s", key, raw, default)
    return default


def load_settings() -> InkwellSettings:
    return InkwellSettings(
        db_path=os.getenv("INKWELL_DB_PATH") or "data/inkwell.db",
        output_dir=Path(os.getenv("INKWELL_OUTPUT_DIR") or "output"),
        publishers_path=Path(os.getenv("INKWELL_PUBLISHERS_PATH") or DEFAULT_PUBLISHERS_PATH),
        user_agent=os.getenv("INKWELL_USER_AGENT") or DEFAULT_USER_AGENT,
        fetch_timeout=_int_from_env("INKWELL_FETCH_TIMEOUT", 20),
        min_delay=_float_from_env("INKWELL_MIN_DELAY", 1.5),
        max_retries=_int_from_env("INKWELL_MAX_RETRIES", 3),
        headless=_bool_from_env("INKWELL_HEADLESS", True),
        log_level=(os.getenv("INKWELL_LOG_LEVEL") or "INFO").upper(),
    )
