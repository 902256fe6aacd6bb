"""
Audit entry points.

``run_checks`` audits an explicit list of URLs with any combination of the
reachability, duplicate-content and SEO analyzers. ``crawl_and_check``
discovers URLs with the bounded crawler first and then audits the pages it
reached. Only malformed input raises; analyzer failures are reported inline
so one failing check never hides the others.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from dropurl.config import AuditConfig, AuditThresholds
from dropurl.constants import DEFAULT_MAX_DEPTH
from dropurl.duplicate import DuplicateContentDetector, duplicate_summary
from dropurl.exceptions import InputError
from dropurl.models import AuditTarget, CheckSelection
from dropurl.reachability import ReachabilityChecker
from dropurl.seo_analyzer import SeoAnalyzer
from dropurl.site_crawler import BoundedCrawler
from dropurl.urls import normalize_target

logger = logging.getLogger(__name__)


def validate_urls(urls: Any, category: Optional[str] = None) -> List[AuditTarget]:
    """Normalize an input batch into AuditTargets.

    Raises:
        InputError: If ``urls`` is not a non-empty list of usable URLs
    """
    if not isinstance(urls, list):
        raise InputError("urls must be a non-empty list", urls)
    if not urls:
        raise InputError("urls must be a non-empty list", urls)

    normalized = []
    for raw in urls:
        url = normalize_target(raw)
        if url is None:
            raise InputError(f"Invalid URL: {raw!r}", raw)
        normalized.append(AuditTarget(url=url, category=category))
    return normalized


async def _safe_run(label: str, fn: Callable[[], Awaitable[dict]]) -> dict:
    """Run one analyzer, turning any exception into an inline error record."""
    try:
        return await fn()
    except Exception as e:
        logger.exception(f"{label} check failed")
        return {
            "error": True,
            "error_message": f"{label} check failed.",
            "raw_error": str(e),
        }


async def run_checks(
    urls: Any,
    checks: Optional[Mapping[str, Any]] = None,
    category: Optional[str] = None,
    config: Optional[AuditConfig] = None,
    thresholds: Optional[AuditThresholds] = None,
) -> Dict[str, dict]:
    """
    Run the requested analyzers over a batch of URLs.

    Args:
        urls: List of target URLs; a missing scheme defaults to https
        checks: ``{check404, duplicate, seo, all}`` flags
        category: Label carried into the reachability report
        config: Audit configuration (defaults to AuditConfig.from_env())
        thresholds: SEO heuristic thresholds (defaults to AuditThresholds.from_env())

    Returns:
        Mapping with a ``check404``, ``duplicate`` and/or ``seo`` entry per
        requested analyzer

    Raises:
        InputError: If ``urls`` is not a non-empty list of valid URLs
    """
    targets = [t.url for t in validate_urls(urls, category)]
    selection = CheckSelection.from_mapping(checks)
    config = config or AuditConfig.from_env()
    thresholds = thresholds or AuditThresholds.from_env()

    logger.info(
        f"Running checks on {len(targets)} URLs "
        f"(check404={selection.check404}, duplicate={selection.duplicate}, seo={selection.seo})"
    )

    result: Dict[str, dict] = {}

    if selection.check404:
        async def reachability() -> dict:
            report = await ReachabilityChecker(config).check(targets, category)
            return report.to_dict()

        result["check404"] = await _safe_run("404", reachability)

    if selection.duplicate:
        async def duplicate() -> dict:
            report = await DuplicateContentDetector(config).check(targets)
            data = report.to_dict()
            data["summary"] = duplicate_summary(report).to_dict()
            return data

        result["duplicate"] = await _safe_run("duplicate", duplicate)

    if selection.seo:
        async def seo() -> dict:
            report = await SeoAnalyzer(config, thresholds).analyze(targets)
            return report.to_dict()

        result["seo"] = await _safe_run("seo", seo)

    return result


def _results_for(index: int, result: Dict[str, dict]) -> dict:
    """Slice per-URL entries out of batch check output."""
    per_node = {}
    for name, data in result.items():
        if data.get("error") is True:
            per_node[name] = data
            continue
        items = data.get("results", [])
        per_node[name] = items[index] if index < len(items) else None
    return per_node


async def crawl_and_check(
    start_url: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    same_domain_only: bool = True,
    checks: Optional[Mapping[str, Any]] = None,
    config: Optional[AuditConfig] = None,
    thresholds: Optional[AuditThresholds] = None,
) -> dict:
    """
    Crawl from ``start_url`` and optionally audit every page reached.

    Args:
        start_url: First page of the crawl
        max_depth: Deepest crawl level
        same_domain_only: Only follow links on the start host and its subdomains
        checks: Analyzers to run over visited pages; none runs when empty
        config: Audit configuration (defaults to AuditConfig.from_env())
        thresholds: SEO heuristic thresholds (defaults to AuditThresholds.from_env())

    Returns:
        ``{"total_visited", "results"}``; each node gains a ``checks`` entry
        when analyzers ran

    Raises:
        InputError: If ``start_url`` is missing or invalid
    """
    if not start_url:
        raise InputError("start_url is required", start_url)
    start = normalize_target(start_url)
    if start is None:
        raise InputError(f"Invalid URL: {start_url!r}", start_url)

    config = config or AuditConfig.from_env()
    thresholds = thresholds or AuditThresholds.from_env()
    crawl = await BoundedCrawler(config).crawl(start, max_depth, same_domain_only)

    selection = CheckSelection.from_mapping(checks)
    visited = [node.url for node in crawl.nodes if node.error is None]

    if selection.any and visited:
        result = await run_checks(
            visited,
            checks={
                "check404": selection.check404,
                "duplicate": selection.duplicate,
                "seo": selection.seo,
            },
            config=config,
            thresholds=thresholds,
        )
        for index, url in enumerate(visited):
            crawl.checks[url] = _results_for(index, result)

    return crawl.to_dict()
