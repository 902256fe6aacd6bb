"""
Reachability checker: broken main documents and 404s inside embedded frames.

Each target gets its own page in a batch-wide browsing context. Responses are
queued by a FrameFailureCollector while the page navigates and classified
once navigation has settled.
"""
import logging
from typing import Any, Callable, List, Optional, Set

from dropurl.browser import BrowserSession
from dropurl.browser_config import BrowserConfig
from dropurl.config import AuditConfig
from dropurl.constants import DEFAULT_CATEGORY
from dropurl.models import (
    AssetFailure,
    FrameFailure,
    FrameInfo,
    ReachabilityReport,
    ReachabilityResult,
)

logger = logging.getLogger(__name__)


class FrameFailureCollector:
    """
    Accumulates network responses for one page load.

    ``record`` is the synchronous response callback; ``drain`` classifies
    everything recorded so far.
    """

    def __init__(self, page: Any):
        self._page = page
        self._pending: List[Any] = []
        self._failed_urls: Set[str] = set()
        self.main_status: Optional[int] = None
        self.frame_failures: List[FrameFailure] = []
        self.asset_failures: List[AssetFailure] = []

    def record(self, response: Any) -> None:
        self._pending.append(response)

    def drain(self) -> None:
        pending, self._pending = self._pending, []
        for response in pending:
            try:
                self._classify(response)
            except Exception as e:
                logger.debug(f"Could not classify response {getattr(response, 'url', '?')}: {e}")

    def _classify(self, response: Any) -> None:
        status = response.status
        resource_type = response.request.resource_type
        frame = response.frame

        if frame is self._page.main_frame:
            if resource_type == "document" and isinstance(status, int):
                self.main_status = status
            return

        if status != 404:
            return
        if frame is None or frame.parent_frame is None:
            return

        url = response.url
        if url in self._failed_urls:
            return
        self._failed_urls.add(url)

        if resource_type == "document":
            self.frame_failures.append(FrameFailure(frame_url=frame.url, status=status))
        else:
            self.asset_failures.append(AssetFailure(
                url=url,
                resource_type=resource_type,
                frame_url=frame.url,
                status=status,
            ))


class ReachabilityChecker:
    """
    Classifies targets and their child frames as OK or broken.

    Navigation failures are recorded as ``main_status=None``; per-target
    errors never abort the batch.
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        browser_config: Optional[BrowserConfig] = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self.config = config or AuditConfig()
        self._session_factory = session_factory or (
            lambda: BrowserSession(browser_config)
        )

    async def check(self, urls: List[str], category: Optional[str] = None) -> ReachabilityReport:
        """
        Check every URL in order.

        Args:
            urls: Absolute target URLs
            category: Optional label carried into the report

        Returns:
            ReachabilityReport with one result per URL
        """
        report = ReachabilityReport(category=category or DEFAULT_CATEGORY)

        async with self._session_factory() as session:
            async with session.context() as context:
                for url in urls:
                    report.results.append(await self._check_target(session, context, url))

        broken = sum(1 for r in report.results if r.is_problematic)
        logger.info(f"Reachability check complete: {len(report.results)} targets, {broken} problematic")
        return report

    async def _check_target(self, session: Any, context: Any, url: str) -> ReachabilityResult:
        logger.info(f"Checking reachability: {url}")
        try:
            async with session.page(context) as page:
                collector = FrameFailureCollector(page)
                page.on("response", collector.record)

                goto_status = None
                nav_error = None
                try:
                    response = await page.goto(
                        url,
                        wait_until="domcontentloaded",
                        timeout=self.config.reachability_timeout_ms,
                    )
                    if response is not None:
                        goto_status = response.status
                except Exception as e:
                    logger.warning(f"Navigation failed for {url} (marking unreachable): {e}")
                    nav_error = str(e)

                await page.wait_for_timeout(self.config.reachability_settle_ms)
                collector.drain()

                main_status = collector.main_status
                if main_status is None:
                    main_status = goto_status

                frames = await self._describe_frames(page, collector.frame_failures)

                return ReachabilityResult(
                    url=url,
                    main_status=main_status,
                    frame_failures=collector.frame_failures,
                    asset_failures=collector.asset_failures,
                    frames=frames,
                    error=nav_error,
                )
        except Exception as e:
            logger.error(f"Reachability check failed for {url}: {e}")
            return ReachabilityResult(url=url, main_status=None, error=str(e))

    async def _describe_frames(self, page: Any, failures: List[FrameFailure]) -> List[FrameInfo]:
        failed_frame_urls = {f.frame_url for f in failures}
        frames = []
        for frame in page.frames:
            if frame.parent_frame is None:
                continue  # main frame

            try:
                title = await frame.title()
            except Exception:
                title = ""

            frames.append(FrameInfo(
                url=frame.url,
                name=frame.name,
                title=title or "",
                has_error=frame.url in failed_frame_urls,
            ))
        return frames
