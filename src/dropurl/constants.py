# src/dropurl/constants.py
"""Centralized constants for the DropURL audit engine.

This module contains magic numbers and configuration values that are used
across multiple modules. For user-configurable values, see config.py,
AuditConfig and AuditThresholds.
"""

# =============================================================================
# Reachability Constants
# =============================================================================

# Navigation timeout for the 404 / reachability check (milliseconds)
REACHABILITY_TIMEOUT_MS = 15000

# Time to let late frame/asset responses arrive after navigation (milliseconds)
REACHABILITY_SETTLE_MS = 1200

# Main-document statuses that always mark a target as problematic
BROKEN_STATUSES = frozenset({0, 404, 500})

# Default category label for manually submitted targets
DEFAULT_CATEGORY = "Manual Input links"


# =============================================================================
# Duplicate Detection Constants
# =============================================================================

# Navigation timeout for the main page (milliseconds)
DUPLICATE_TIMEOUT_MS = 45000

# Navigation timeout for each embedded frame page (milliseconds)
FRAME_TIMEOUT_MS = 30000

# Settle delays around auto-scroll (milliseconds)
DUPLICATE_SETTLE_MS = 1500
DUPLICATE_SCROLL_SETTLE_MS = 1000
FRAME_SETTLE_MS = 800

# Maximum number of iframe sources loaded per target
MAX_IFRAMES = 6

# Response bodies above this size are not fingerprinted (bytes)
MAX_BODY_BYTES = 5 * 1024 * 1024

# URL fragments identifying framework-internal traffic
FRAMEWORK_INTERNAL_MARKERS = ("/_next/", "_rsc", "sockjs-node", "/api/")

# Query parameters added per request by frameworks to defeat caches
CACHE_BUSTING_PARAMS = ("_rsc",)


# =============================================================================
# SEO Constants
# =============================================================================

# Navigation timeout for the SEO page load (milliseconds)
SEO_TIMEOUT_MS = 20000

# Timeout for the plain HTTP probes (seconds)
PROBE_TIMEOUT_SECONDS = 10.0

# Recommended title / description lengths (characters)
TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 65
DESCRIPTION_MIN_LENGTH = 70
DESCRIPTION_MAX_LENGTH = 160

# Maximum nesting visited when collecting JSON-LD @type values
MAX_JSONLD_DEPTH = 32

OPEN_GRAPH_TAGS = ("og:title", "og:description", "og:image", "og:url", "og:type")
TWITTER_CARD_TAGS = ("twitter:card", "twitter:title", "twitter:description", "twitter:image")


# =============================================================================
# Crawler Constants
# =============================================================================

# Navigation timeout for each crawled page (milliseconds)
CRAWL_TIMEOUT_MS = 20000

# How long to wait for anchors to appear before reading links (milliseconds)
LINK_WAIT_TIMEOUT_MS = 5000

# Default maximum crawl depth (start page is depth 0)
DEFAULT_MAX_DEPTH = 1

# Maximum pages visited per depth; depths not listed are unbounded
DEFAULT_DEPTH_QUOTAS = {0: 1, 1: 20, 2: 50}

# href prefixes that never lead to a crawlable page
NON_NAVIGABLE_PREFIXES = ("mailto:", "tel:", "javascript:", "#")

# Ports dropped when normalizing crawl URLs
DEFAULT_PORTS = {"http": 80, "https": 443}


# =============================================================================
# Browser Constants
# =============================================================================

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DESKTOP_VIEWPORT_WIDTH = 1920
DESKTOP_VIEWPORT_HEIGHT = 1080
