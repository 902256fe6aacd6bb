"""DropURL: browser-driven web page auditing (404s, duplicate content, SEO, bounded crawling)."""

__version__ = "0.1.0"

from dropurl.api import crawl_and_check, run_checks
from dropurl.browser import BrowserSession
from dropurl.browser_config import BrowserConfig
from dropurl.config import AuditConfig, AuditThresholds, settings
from dropurl.duplicate import DuplicateContentDetector, duplicate_summary
from dropurl.exceptions import InputError
from dropurl.fingerprint import ContentFingerprinter, content_hash, normalize_html
from dropurl.models import (
    CrawlNode,
    CrawlResult,
    DuplicateGroup,
    DuplicateReport,
    ReachabilityReport,
    ReachabilityResult,
    SeoReport,
    SeoResult,
    SeoSnapshot,
)
from dropurl.reachability import ReachabilityChecker
from dropurl.seo_analyzer import SeoAnalyzer
from dropurl.seo_extractor import SeoExtractor
from dropurl.site_crawler import BoundedCrawler, build_crawl_tree

__all__ = [
    "run_checks",
    "crawl_and_check",
    "BrowserSession",
    "BrowserConfig",
    "AuditConfig",
    "AuditThresholds",
    "settings",
    "DuplicateContentDetector",
    "duplicate_summary",
    "InputError",
    "ContentFingerprinter",
    "content_hash",
    "normalize_html",
    "CrawlNode",
    "CrawlResult",
    "DuplicateGroup",
    "DuplicateReport",
    "ReachabilityReport",
    "ReachabilityResult",
    "SeoReport",
    "SeoResult",
    "SeoSnapshot",
    "ReachabilityChecker",
    "SeoAnalyzer",
    "SeoExtractor",
    "BoundedCrawler",
    "build_crawl_tree",
]
