"""
Playwright browser session shared by the analyzers.

A BrowserSession owns one browser process for the duration of one audit
batch. Contexts and pages are handed out as async context managers so they
are closed on every exit path:

    async with BrowserSession(config) as session:
        async with session.context() as context:
            async with session.page(context) as page:
                await page.goto(url)
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from dropurl.browser_config import BrowserConfig

logger = logging.getLogger(__name__)


async def safe_close(resource: Any, label: str) -> None:
    """Close a Playwright resource, logging instead of raising on failure."""
    if resource is None:
        return
    try:
        await resource.close()
    except Exception as e:
        logger.warning(f"Error closing {label}: {e}")


class BrowserSession:
    """
    Playwright browser launched for a single audit batch.

    Use as an async context manager; the browser and the Playwright driver
    are released on exit even when the batch raised.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        self._config = config or BrowserConfig.from_settings()
        self._playwright = None
        self._browser = None

    @property
    def config(self) -> BrowserConfig:
        return self._config

    async def __aenter__(self) -> "BrowserSession":
        """Enter async context manager, launching browser."""
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "Playwright is required for browser-based auditing. "
                "Install with: pip install playwright && playwright install"
            )

        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        self._playwright = await async_playwright().start()
        try:
            browser_launcher = getattr(self._playwright, self._config.browser_type)

            launch_options = {"headless": self._config.headless}
            if self._config.launch_args:
                launch_options["args"] = self._config.launch_args

            self._browser = await browser_launcher.launch(**launch_options)
        except Exception:
            await self._shutdown()
            raise

        logger.debug("Browser launched successfully")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager, closing browser."""
        await self._shutdown()

    async def _shutdown(self) -> None:
        await safe_close(self._browser, "browser")
        self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

        logger.debug("Browser closed")

    def _require_browser(self):
        if not self._browser:
            raise RuntimeError(
                "Browser is not running. Use BrowserSession as an async context manager: "
                "async with BrowserSession(config) as session:"
            )
        return self._browser

    @asynccontextmanager
    async def context(self) -> AsyncIterator[Any]:
        """Yield an isolated browsing context, closed on exit."""
        browser = self._require_browser()
        context = await browser.new_context(**self._config.context_options())
        try:
            yield context
        finally:
            await safe_close(context, "browser context")

    @asynccontextmanager
    async def page(self, context: Any) -> AsyncIterator[Any]:
        """Yield a new page in ``context``, closed on exit."""
        page = await context.new_page()
        try:
            yield page
        finally:
            await safe_close(page, "page")
