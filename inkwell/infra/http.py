"""
Reusable HTTP fetching with polite defaults (per-domain delay, retries with backoff).
"""
from __future__ import annotations

import logging
import random
import threading
import time
from typing import Dict, Optional

import requests

from inkwell.errors import FetchError
from inkwell.utils.security import redact_secrets

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; InkwellBot/0.3)"


class HttpFetcher:
    """
    Thin wrapper over requests.Session with per-domain throttling.

    4xx responses other than 429 are not retried; they will not get better.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        min_delay: float = 1.5,
        max_retries: int = 3,
        timeout: int = 20,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-GB,en;q=0.8",
            }
        )
        self.min_delay = min_delay
        self.max_retries = max(1, max_retries)
        self.timeout = timeout
        self._last_hit: Dict[str, float] = {}
        self._lock = threading.RLock()

    def fetch(self, url: str) -> requests.Response:
        """
        Fetch a URL politely, retrying transient failures.

        Raises FetchError once retries are exhausted or on a non-retryable status.
        """
        last_error: Optional[str] = None
        status_code: Optional[int] = None
        for attempt in range(self.max_retries):
            self._respect_delay(url)
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as exc:
                last_error = str(exc)
                status_code = None
            else:
                if response.status_code < 400:
                    return response
                status_code = response.status_code
                last_error = f"HTTP {response.status_code} {response.reason or ''}".strip()
                if status_code < 500 and status_code != 429:
                    break
            if attempt + 1 < self.max_retries:
                sleep_for = min(60, self.min_delay * (2 ** attempt))
                logger.warning(
                    "Fetch of %s failed (%s); retry %s/%s in %.1fs",
                    redact_secrets(url),
                    redact_secrets(last_error or "unknown error"),
                    attempt + 1,
                    self.max_retries - 1,
                    sleep_for,
                )
                time.sleep(sleep_for + random.random())
        raise FetchError(
            f"Fetch failed for {redact_secrets(url)}: {redact_secrets(last_error or 'unknown error')}",
            url=url,
            status_code=status_code,
        )

    def fetch_text(self, url: str) -> str:
        response = self.fetch(url)
        if not response.encoding or response.encoding.lower() == "iso-8859-1":
            # requests defaults text/html to latin-1 when no charset is declared
            response.encoding = response.apparent_encoding or "utf-8"
        return response.text

    def close(self) -> None:
        self.session.close()

    def _respect_delay(self, url: str) -> None:
        domain = self._extract_domain(url)
        with self._lock:
            last = self._last_hit.get(domain)
            now = time.time()
            if last and now - last < self.min_delay:
                wait = self.min_delay - (now - last) + random.random()
                time.sleep(wait)
            self._last_hit[domain] = time.time()

    @staticmethod
    def _extract_domain(url: str) -> str:
        return url.split("/")[2] if "://" in url else url
