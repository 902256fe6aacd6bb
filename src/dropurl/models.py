"""Data models for the audit engine."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from dropurl.constants import BROKEN_STATUSES, DEFAULT_CATEGORY


@dataclass(frozen=True)
class AuditTarget:
    """A single URL submitted for auditing."""

    url: str
    category: Optional[str] = None


@dataclass(frozen=True)
class CheckSelection:
    """Which analyzers a caller asked for."""

    check404: bool = False
    duplicate: bool = False
    seo: bool = False

    @classmethod
    def from_mapping(cls, checks: Optional[Mapping[str, Any]]) -> "CheckSelection":
        """Normalize a ``{check404, duplicate, seo, all}`` mapping.

        ``all`` switches every check on.
        """
        checks = checks or {}
        run_all = bool(checks.get("all"))
        return cls(
            check404=run_all or bool(checks.get("check404")),
            duplicate=run_all or bool(checks.get("duplicate")),
            seo=run_all or bool(checks.get("seo")),
        )

    @property
    def any(self) -> bool:
        return self.check404 or self.duplicate or self.seo


# ============================================================================
# Reachability Models
# ============================================================================

@dataclass
class FrameFailure:
    """A full-document 404 inside a child frame."""
    frame_url: str
    status: int


@dataclass
class AssetFailure:
    """A non-document 404 inside a child frame."""
    url: str
    resource_type: str
    frame_url: str
    status: int


@dataclass
class FrameInfo:
    """A child frame observed after navigation settled."""
    url: str
    name: str
    title: str
    has_error: bool = False


@dataclass
class ReachabilityResult:
    """Reachability of one target and its embedded frames."""

    url: str
    main_status: Optional[int] = None  # None: navigation failed outright
    frame_failures: List[FrameFailure] = field(default_factory=list)
    asset_failures: List[AssetFailure] = field(default_factory=list)
    frames: List[FrameInfo] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_problematic(self) -> bool:
        return (
            self.main_status is None
            or self.main_status in BROKEN_STATUSES
            or bool(self.frame_failures)
            or bool(self.asset_failures)
        )

    @property
    def ok(self) -> bool:
        return not self.is_problematic

    def to_dict(self) -> dict:
        data = asdict(self)
        data["is_problematic"] = self.is_problematic
        return data


@dataclass
class ReachabilityReport:
    """Batch output of the reachability checker."""

    category: str = DEFAULT_CATEGORY
    results: List[ReachabilityResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "results": [r.to_dict() for r in self.results],
        }


# ============================================================================
# Duplicate Content Models
# ============================================================================

@dataclass
class DuplicateGroup:
    """Distinct URLs that served the same normalized content."""
    hash: str
    urls: List[str] = field(default_factory=list)


@dataclass
class DuplicateResult:
    """Duplicate-content findings for one target page load."""

    url: str
    groups: List[DuplicateGroup] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)  # flattened group URLs
    iframe_sources: List[str] = field(default_factory=list)
    response_count: int = 0
    fingerprint_count: int = 0
    error: bool = False
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DuplicateReport:
    """Batch output of the duplicate detector."""

    results: List[DuplicateResult] = field(default_factory=list)
    # groups spanning every successfully scanned target
    groups: List[DuplicateGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "groups": [asdict(g) for g in self.groups],
        }


@dataclass
class DuplicateSummary:
    """Duplicate groups merged across every scanned target."""

    detected: bool = False
    items_count: int = 0
    cross_page_duplicates: List[DuplicateGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ============================================================================
# SEO Models
# ============================================================================

@dataclass
class BasicMeta:
    charset: Optional[str] = None
    viewport: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    robots: Optional[str] = None


@dataclass
class PresenceValue:
    """A raw value plus whether it was found at all."""
    value: Optional[str] = None
    present: bool = False


@dataclass
class HeadingStats:
    h1_count: int = 0
    h1_texts: List[str] = field(default_factory=list)
    h2_count: int = 0
    h3_count: int = 0


@dataclass
class ImageStats:
    total: int = 0
    with_alt: int = 0
    without_alt: int = 0


@dataclass
class LinkStats:
    total: int = 0
    internal: int = 0
    external: int = 0
    follow: int = 0
    nofollow: int = 0


@dataclass
class SiteFiles:
    """Presence of root-level crawler files."""
    robots_txt: bool = False
    sitemap_xml: bool = False
    robots_txt_url: Optional[str] = None
    sitemap_xml_url: Optional[str] = None


@dataclass
class SeoHeuristics:
    """Pass/fail checks derived from an extracted snapshot."""
    title_length: int = 0
    title_length_ok: bool = False
    description_length: int = 0
    description_length_ok: bool = False
    has_canonical: bool = False
    has_html_lang: bool = False
    has_h1: bool = False
    multiple_h1: bool = False
    has_open_graph: bool = False
    has_twitter_card: bool = False
    has_schema: bool = False
    image_alt_coverage: Optional[float] = None  # None when the page has no images


@dataclass
class SeoSnapshot:
    """Structured on-page metadata for one reachable target."""

    basic_meta: BasicMeta = field(default_factory=BasicMeta)
    open_graph: Dict[str, Optional[str]] = field(default_factory=dict)
    twitter_card: Dict[str, Optional[str]] = field(default_factory=dict)
    canonical: PresenceValue = field(default_factory=PresenceValue)
    html_lang: PresenceValue = field(default_factory=PresenceValue)
    headings: HeadingStats = field(default_factory=HeadingStats)
    images: ImageStats = field(default_factory=ImageStats)
    links: LinkStats = field(default_factory=LinkStats)
    structured_data_types: List[str] = field(default_factory=list)
    jsonld_block_count: int = 0
    other_meta: Dict[str, Optional[str]] = field(default_factory=dict)
    site_files: SiteFiles = field(default_factory=SiteFiles)
    heuristics: SeoHeuristics = field(default_factory=SeoHeuristics)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SeoResult:
    """SEO analysis outcome for one input URL."""

    original_url: str
    root_url: str
    reachable: bool = False
    snapshot: Optional[SeoSnapshot] = None
    error: Optional[str] = None
    skipped_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "original_url": self.original_url,
            "root_url": self.root_url,
            "reachable": self.reachable,
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "error": self.error,
            "skipped_reason": self.skipped_reason,
        }


@dataclass
class SeoReport:
    """Batch output of the SEO analyzer."""

    results: List[SeoResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"results": [r.to_dict() for r in self.results]}


# ============================================================================
# Crawl Models
# ============================================================================

@dataclass(frozen=True)
class CrawlQueueEntry:
    """Transient crawl work item."""
    url: str
    depth: int
    parent_url: Optional[str] = None


@dataclass(frozen=True)
class CrawlNode:
    """A page visited by the crawler. ``url`` has no query or fragment."""

    url: str
    status: Optional[int]
    depth: int
    parent_url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CrawlTreeNode:
    """A crawl node with its children attached."""
    url: str
    status: Optional[int]
    depth: int
    error: Optional[str] = None
    children: List["CrawlTreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CrawlResult:
    """Output of a bounded crawl."""

    total_visited: int = 0
    nodes: List[CrawlNode] = field(default_factory=list)
    # node url -> analyzer results attached to that node
    checks: Dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        results = []
        for node in self.nodes:
            item = node.to_dict()
            if node.url in self.checks:
                item["checks"] = self.checks[node.url]
            results.append(item)
        return {"total_visited": self.total_visited, "results": results}
