"""
Duplicate content detector.

Loads each target (and up to a handful of its iframe sources) in an isolated
browsing context, fingerprints every in-scope response and reports content
hashes served by more than one URL, both within each page load and across
the whole batch.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from dropurl.browser import BrowserSession
from dropurl.browser_config import BrowserConfig
from dropurl.config import AuditConfig
from dropurl.fingerprint import ContentFingerprinter, group_fingerprints, merge_fingerprints
from dropurl.models import DuplicateReport, DuplicateResult, DuplicateSummary
from dropurl.urls import primary_hosts, strip_cache_busting

logger = logging.getLogger(__name__)

_AUTO_SCROLL_JS = """
    async () => {
        await new Promise((resolve) => {
            let total = 0;
            const distance = 400;
            const timer = setInterval(() => {
                window.scrollBy(0, distance);
                total += distance;
                if (total >= document.body.scrollHeight) {
                    clearInterval(timer);
                    resolve();
                }
            }, 200);
        });
    }
"""

_IFRAME_SOURCES_JS = "frames => frames.map(f => f.src)"


class DuplicateContentDetector:
    """Groups same-content responses observed while loading each target."""

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

    async def check(self, urls: List[str]) -> DuplicateReport:
        """
        Scan every target for duplicated content.

        Only responses from hosts present in ``urls`` are fingerprinted.

        Args:
            urls: Absolute target URLs

        Returns:
            DuplicateReport with one result per URL and the batch-wide groups
        """
        hosts = primary_hosts(urls)
        logger.debug(f"Primary hosts: {sorted(hosts)}")

        report = DuplicateReport()
        batch_map: Dict[str, Set[str]] = {}

        async with self._session_factory() as session:
            for url in urls:
                result, fingerprinter = await self._check_target(session, url, hosts)
                report.results.append(result)
                if not result.error:
                    merge_fingerprints(batch_map, fingerprinter.hash_map)

        report.groups = group_fingerprints(batch_map)
        logger.info(
            f"Duplicate check complete: {len(report.results)} targets, "
            f"{len(report.groups)} duplicate groups across the batch"
        )
        return report

    async def _check_target(self, session: Any, url: str, hosts: Set[str]):
        logger.info(f"Checking duplicates: {url}")
        fingerprinter = ContentFingerprinter(hosts, max_body_bytes=self.config.max_body_bytes)
        iframe_sources: List[str] = []

        try:
            async with session.context() as context:
                async with session.page(context) as page:
                    page.on("response", fingerprinter.record)

                    await page.goto(
                        url,
                        wait_until="networkidle",
                        timeout=self.config.duplicate_timeout_ms,
                    )
                    await page.wait_for_timeout(self.config.duplicate_settle_ms)
                    await self._auto_scroll(page)
                    await page.wait_for_timeout(self.config.duplicate_scroll_settle_ms)
                    await fingerprinter.drain()

                    iframe_sources = await self._iframe_sources(page)

                for src in iframe_sources[: self.config.max_iframes]:
                    await self._load_frame(session, context, strip_cache_busting(src), fingerprinter)

        except Exception as e:
            logger.error(f"Duplicate check failed for {url}: {e}")
            result = DuplicateResult(
                url=url,
                iframe_sources=iframe_sources,
                response_count=fingerprinter.response_count,
                error=True,
                error_message=str(e),
            )
            return result, fingerprinter

        groups = fingerprinter.groups()
        logger.debug(
            f"{url}: {fingerprinter.response_count} responses, "
            f"{len(fingerprinter.hash_map)} fingerprints, {len(groups)} duplicate groups"
        )
        result = DuplicateResult(
            url=url,
            groups=groups,
            duplicates=[u for group in groups for u in group.urls],
            iframe_sources=iframe_sources,
            response_count=fingerprinter.response_count,
            fingerprint_count=len(fingerprinter.hash_map),
        )
        return result, fingerprinter

    async def _load_frame(
        self, session: Any, context: Any, src: str, fingerprinter: ContentFingerprinter
    ) -> None:
        """Load one iframe source in its own page, feeding the shared fingerprinter."""
        logger.debug(f"Loading iframe source: {src}")
        try:
            async with session.page(context) as frame_page:
                frame_page.on("response", fingerprinter.record)
                try:
                    await frame_page.goto(
                        src,
                        wait_until="networkidle",
                        timeout=self.config.frame_timeout_ms,
                    )
                except Exception as e:
                    logger.warning(f"Iframe navigation failed: {src}: {e}")
                await frame_page.wait_for_timeout(self.config.frame_settle_ms)
                await fingerprinter.drain()
        except Exception as e:
            logger.warning(f"Iframe processing error for {src}: {e}")

    async def _auto_scroll(self, page: Any) -> None:
        """Scroll to the bottom to trigger lazy-loaded content."""
        try:
            await page.evaluate(_AUTO_SCROLL_JS)
        except Exception as e:
            logger.debug(f"Auto-scroll failed: {e}")

    async def _iframe_sources(self, page: Any) -> List[str]:
        try:
            sources = await page.eval_on_selector_all("iframe[src]", _IFRAME_SOURCES_JS)
        except Exception as e:
            logger.debug(f"Could not read iframe sources: {e}")
            return []
        return [s for s in (sources or []) if s]


def duplicate_summary(report: DuplicateReport) -> DuplicateSummary:
    """Merge duplicate groups across every scanned target, keyed by hash.

    Args:
        report: Output of DuplicateContentDetector.check

    Returns:
        DuplicateSummary for the whole batch
    """
    merged: Dict[str, Set[str]] = {}
    merge_fingerprints(merged, {g.hash: g.urls for g in report.groups})
    for result in report.results:
        if result.error:
            continue
        for group in result.groups:
            merge_fingerprints(merged, {group.hash: group.urls})

    groups = group_fingerprints(merged)
    distinct_urls = {u for group in groups for u in group.urls}

    return DuplicateSummary(
        detected=bool(groups),
        items_count=len(distinct_urls),
        cross_page_duplicates=groups,
    )
