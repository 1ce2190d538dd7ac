"""
Headless-browser page fetching for sites that render their data client-side.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from playwright.sync_api import BrowserContext, Page, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from inkwell.errors import FetchError
from inkwell.utils.security import redact_secrets

logger = logging.getLogger(__name__)

OnLoad = Callable[[Page], None]


class BrowserCtx:
    """Context manager owning one Playwright driver, browser and context."""

    def __init__(self, engine: str = "chromium", headless: bool = True, user_agent: Optional[str] = None) -> None:
        self.engine = engine
        self.headless = headless
        self.user_agent = user_agent
        self._p = None
        self._browser = None
        self._ctx: Optional[BrowserContext] = None

    def __enter__(self) -> BrowserContext:
        self._p = sync_playwright().start()
        self._browser = getattr(self._p, self.engine).launch(headless=self.headless)
        if self.user_agent:
            self._ctx = self._browser.new_context(user_agent=self.user_agent)
        else:
            self._ctx = self._browser.new_context()
        return self._ctx

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._ctx:
            self._ctx.close()
        if self._browser:
            self._browser.close()
        if self._p:
            self._p.stop()
        self._ctx = self._browser = self._p = None


class BrowserFetcher:
    """
    Fetch fully rendered HTML with Playwright.

    Between `init()` and `dispose()` one browser context is shared across
    fetches; without `init()` each fetch launches and tears down its own browser.
    """

    def __init__(
        self,
        headless: bool = True,
        engine: str = "chromium",
        timeout_ms: int = 30000,
        user_agent: Optional[str] = None,
        on_load: Optional[OnLoad] = None,
    ) -> None:
        self.headless = headless
        self.engine = engine
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent
        self.on_load = on_load
        self._shared: Optional[BrowserCtx] = None
        self._context: Optional[BrowserContext] = None

    def init(self) -> None:
        if self._shared is not None:
            return
        self._shared = BrowserCtx(engine=self.engine, headless=self.headless, user_agent=self.user_agent)
        self._context = self._shared.__enter__()
        logger.debug("Started shared %s browser", self.engine)

    def dispose(self) -> None:
        if self._shared is None:
            return
        try:
            self._shared.__exit__(None, None, None)
        finally:
            self._shared = None
            self._context = None
        logger.debug("Closed shared %s browser", self.engine)

    def fetch_html(self, url: str, on_load: Optional[OnLoad] = None) -> str:
        hook = on_load or self.on_load
        if self._context is not None:
            return self._render(self._context, url, hook)
        with BrowserCtx(engine=self.engine, headless=self.headless, user_agent=self.user_agent) as context:
            return self._render(context, url, hook)

    def _render(self, context: BrowserContext, url: str, hook: Optional[OnLoad]) -> str:
        page = context.new_page()
        try:
            response = page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            if response is not None and response.status >= 400:
                raise FetchError(
                    f"Fetch failed for {redact_secrets(url)}: HTTP {response.status}",
                    url=url,
                    status_code=response.status,
                )
            if hook is not None:
                hook(page)
            return page.content()
        except PlaywrightError as exc:
            raise FetchError(f"Browser fetch failed for {redact_secrets(url)}: {redact_secrets(str(exc))}", url=url) from exc
        finally:
            page.close()
