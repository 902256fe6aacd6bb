"""
Bounded breadth-first site crawler.

Starting from one URL, visits pages level by level up to a maximum depth,
capping the number of pages visited at each depth. URLs are compared with
their query string and fragment removed, so ``/a?x=1`` and ``/a#top`` are
the same page.
"""
import logging
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Tuple

from dropurl.browser import BrowserSession
from dropurl.browser_config import BrowserConfig
from dropurl.config import AuditConfig
from dropurl.constants import DEFAULT_MAX_DEPTH, LINK_WAIT_TIMEOUT_MS
from dropurl.models import CrawlNode, CrawlQueueEntry, CrawlResult, CrawlTreeNode
from dropurl.urls import (
    get_hostname,
    is_navigable_href,
    is_same_domain,
    strip_query_and_fragment,
)

logger = logging.getLogger(__name__)

_HREFS_JS = "els => els.map(a => a.getAttribute('href')).filter(Boolean)"


class BoundedCrawler:
    """Breadth-first crawler with per-depth visit quotas."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        browser_config: Optional[BrowserConfig] = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self.config = config or AuditConfig()
        self.depth_quotas: Dict[int, int] = dict(self.config.depth_quotas)
        self._session_factory = session_factory or (
            lambda: BrowserSession(browser_config)
        )

    async def crawl(
        self,
        start_url: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        same_domain_only: bool = True,
    ) -> CrawlResult:
        """
        Crawl from ``start_url``.

        Args:
            start_url: Absolute URL of the first page (depth 0)
            max_depth: Deepest level visited
            same_domain_only: Only follow links to the start host and its subdomains

        Returns:
            CrawlResult with one node per visited page, in visit order
        """
        async with self._session_factory() as session:
            async with session.context() as context:
                return await self._run(session, context, start_url, max_depth, same_domain_only)

    def _quota_met(self, depth: int, per_depth: Dict[int, int]) -> bool:
        quota = self.depth_quotas.get(depth)
        if quota is None:
            return False
        return per_depth.get(depth, 0) >= quota

    async def _run(
        self,
        session: Any,
        context: Any,
        start_url: str,
        max_depth: int,
        same_domain_only: bool,
    ) -> CrawlResult:
        start = strip_query_and_fragment(start_url) or start_url
        start_host = get_hostname(start) or ""

        queue: deque = deque([CrawlQueueEntry(url=start, depth=0, parent_url=None)])
        visited = set()
        per_depth: Dict[int, int] = {}
        nodes: List[CrawlNode] = []

        logger.info(f"Starting crawl of {start} (max_depth={max_depth}, same_domain_only={same_domain_only})")

        while queue:
            entry = queue.popleft()

            if entry.url in visited:
                continue
            if entry.depth > max_depth or self._quota_met(entry.depth, per_depth):
                logger.debug(f"Quota reached at depth {entry.depth}, skipping {entry.url}")
                continue

            visited.add(entry.url)
            per_depth[entry.depth] = per_depth.get(entry.depth, 0) + 1

            status, links, error = await self._visit(session, context, entry, max_depth)
            nodes.append(CrawlNode(
                url=entry.url,
                status=status,
                depth=entry.depth,
                parent_url=entry.parent_url,
                error=error,
            ))

            if error or entry.depth >= max_depth:
                continue

            child_depth = entry.depth + 1
            queued = 0
            for link in links:
                if not is_navigable_href(link):
                    continue
                child = strip_query_and_fragment(link, base=entry.url)
                if not child or not child.startswith(("http://", "https://")):
                    continue
                if same_domain_only and not is_same_domain(child, start_host):
                    continue
                if child in visited or self._quota_met(child_depth, per_depth):
                    continue
                queue.append(CrawlQueueEntry(url=child, depth=child_depth, parent_url=entry.url))
                queued += 1

            logger.debug(f"{entry.url}: {len(links)} links, {queued} queued at depth {child_depth}")

        logger.info(f"Crawl complete: {len(nodes)} pages visited")
        return CrawlResult(total_visited=len(nodes), nodes=nodes)

    async def _visit(
        self, session: Any, context: Any, entry: CrawlQueueEntry, max_depth: int
    ) -> Tuple[Optional[int], List[str], Optional[str]]:
        """Load one page.

        Returns:
            (status, raw hrefs, error); hrefs are only read when the page
            may still have children
        """
        logger.info(f"Crawling [{entry.depth}] {entry.url}")
        try:
            async with session.page(context) as page:
                response = await page.goto(
                    entry.url,
                    wait_until="domcontentloaded",
                    timeout=self.config.crawl_timeout_ms,
                )
                status = response.status if response is not None else None

                links: List[str] = []
                if entry.depth < max_depth:
                    links = await self._read_links(page)
                return status, links, None
        except Exception as e:
            logger.warning(f"Failed to crawl {entry.url}: {e}")
            return None, [], str(e)

    async def _read_links(self, page: Any) -> List[str]:
        try:
            await page.wait_for_selector("a[href]", timeout=LINK_WAIT_TIMEOUT_MS)
        except Exception:
            logger.debug(f"No anchors appeared on {page.url}")

        try:
            hrefs = await page.eval_on_selector_all("a[href]", _HREFS_JS)
        except Exception as e:
            logger.warning(f"Could not read links on {page.url}: {e}")
            return []

        # dedupe, preserving document order
        return list(dict.fromkeys(h for h in (hrefs or []) if h))


def build_crawl_tree(nodes: List[CrawlNode]) -> Optional[CrawlTreeNode]:
    """Rebuild the parent/child tree from flat crawl nodes.

    Args:
        nodes: CrawlResult.nodes, in visit order

    Returns:
        The root (the node with no parent), or None for an empty crawl
    """
    tree_nodes = {
        node.url: CrawlTreeNode(url=node.url, status=node.status, depth=node.depth, error=node.error)
        for node in nodes
    }

    root = None
    for node in nodes:
        tree_node = tree_nodes[node.url]
        if node.parent_url is None:
            if root is None:
                root = tree_node
            continue
        parent = tree_nodes.get(node.parent_url)
        if parent is not None:
            parent.children.append(tree_node)

    return root


def render_crawl_tree(root: Optional[CrawlTreeNode], indent: str = "  ") -> str:
    """Plain-text rendering of a crawl tree, one page per line."""
    if root is None:
        return ""

    lines = []

    def walk(node: CrawlTreeNode, level: int) -> None:
        status = node.status if node.status is not None else "ERR"
        line = f"{indent * level}[{status}] {node.url}"
        if node.error:
            line += f" ({node.error})"
        lines.append(line)
        for child in node.children:
            walk(child, level + 1)

    walk(root, 0)
    return "\n".join(lines)
