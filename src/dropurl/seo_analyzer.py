"""
SEO analyzer.

Each input URL is reduced to its root (``scheme://host/``), probed over plain
HTTP, and, when reachable, rendered in a browser page whose HTML is handed to
SeoExtractor together with robots.txt / sitemap.xml presence.
"""
import logging
from typing import Any, Callable, List, Optional

import httpx

from dropurl.browser import BrowserSession
from dropurl.browser_config import SEO_CONFIG, BrowserConfig
from dropurl.config import AuditConfig, AuditThresholds
from dropurl.models import SeoReport, SeoResult, SiteFiles
from dropurl.seo_extractor import SeoExtractor
from dropurl.urls import root_url

logger = logging.getLogger(__name__)


class SeoAnalyzer:
    """
    Produces one SeoResult per input URL.

    Args:
        config: Timeouts and user agent
        thresholds: Length bounds used by the heuristics
        browser_config: Browser used to render pages (Firefox with
            ``config.user_agent`` by default)
        session_factory: Callable returning an async context manager session
        transport: Optional httpx transport, used by tests to stub the network
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        thresholds: Optional[AuditThresholds] = None,
        browser_config: Optional[BrowserConfig] = None,
        session_factory: Optional[Callable[[], Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or AuditConfig()
        self.extractor = SeoExtractor(thresholds)
        self.browser_config = browser_config or SEO_CONFIG.model_copy(
            update={"user_agent": self.config.user_agent}
        )
        self._session_factory = session_factory or (
            lambda: BrowserSession(self.browser_config)
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        }
        return httpx.AsyncClient(
            timeout=self.config.probe_timeout_seconds,
            follow_redirects=True,
            headers=headers,
            transport=self._transport,
        )

    async def analyze(self, urls: List[str]) -> SeoReport:
        """
        Analyze the root of every input URL.

        Args:
            urls: Absolute target URLs

        Returns:
            SeoReport with one result per input URL, in input order
        """
        report = SeoReport()

        async with self._client() as client:
            async with self._session_factory() as session:
                async with session.context() as context:
                    for url in urls:
                        report.results.append(
                            await self._analyze_target(client, session, context, url)
                        )

        reachable = sum(1 for r in report.results if r.reachable)
        logger.info(f"SEO analysis complete: {len(report.results)} targets, {reachable} reachable")
        return report

    async def _analyze_target(self, client: httpx.AsyncClient, session: Any, context: Any, url: str) -> SeoResult:
        target = root_url(url)
        logger.info(f"Analyzing SEO: {target} (from {url})")

        if not await self.probe(client, target):
            logger.warning(f"Root URL not reachable: {target}")
            return SeoResult(
                original_url=url,
                root_url=target,
                reachable=False,
                error="URL not reachable",
            )

        try:
            site_files = await self.fetch_site_files(client, target)

            async with session.page(context) as page:
                try:
                    await page.goto(
                        target,
                        wait_until="domcontentloaded",
                        timeout=self.config.seo_timeout_ms,
                    )
                except Exception as e:
                    logger.warning(f"Navigation failed for {target}, using partial content: {e}")

                html = await page.content()
                page_url = page.url or target

            snapshot = self.extractor.extract(html, page_url, site_files)
            return SeoResult(original_url=url, root_url=target, reachable=True, snapshot=snapshot)

        except Exception as e:
            logger.error(f"SEO analysis failed for {target}: {e}")
            return SeoResult(
                original_url=url,
                root_url=target,
                reachable=True,
                error=str(e),
                skipped_reason="analyze_failed",
            )

    async def probe(self, client: httpx.AsyncClient, url: str) -> bool:
        """HEAD the URL, falling back to GET; reachable on a final 2xx."""
        status = None
        try:
            response = await client.head(url)
            status = response.status_code
        except httpx.HTTPError as e:
            logger.debug(f"HEAD failed for {url}: {e}")

        if status is None or status >= 400:
            try:
                response = await client.get(url)
                status = response.status_code
            except httpx.HTTPError as e:
                logger.debug(f"GET failed for {url}: {e}")
                return False

        return 200 <= status < 300

    async def fetch_site_files(self, client: httpx.AsyncClient, root: str) -> SiteFiles:
        """Check robots.txt and sitemap.xml at the site root."""
        robots_url = f"{root.rstrip('/')}/robots.txt"
        sitemap_url = f"{root.rstrip('/')}/sitemap.xml"
        return SiteFiles(
            robots_txt=await self._exists(client, robots_url),
            sitemap_xml=await self._exists(client, sitemap_url),
            robots_txt_url=robots_url,
            sitemap_xml_url=sitemap_url,
        )

    async def _exists(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Could not fetch {url}: {e}")
            return False
        if response.status_code == 200:
            logger.debug(f"Found {url}")
            return True
        logger.debug(f"No file at {url} (status: {response.status_code})")
        return False
