from dotenv import load_dotenv
from dataclasses import dataclass, field, fields
from typing import Dict, List
import json
import logging
import os

from dropurl.constants import (
    CRAWL_TIMEOUT_MS,
    DEFAULT_DEPTH_QUOTAS,
    DEFAULT_USER_AGENT,
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    DUPLICATE_SCROLL_SETTLE_MS,
    DUPLICATE_SETTLE_MS,
    DUPLICATE_TIMEOUT_MS,
    FRAME_SETTLE_MS,
    FRAME_TIMEOUT_MS,
    MAX_BODY_BYTES,
    MAX_IFRAMES,
    PROBE_TIMEOUT_SECONDS,
    REACHABILITY_SETTLE_MS,
    REACHABILITY_TIMEOUT_MS,
    SEO_TIMEOUT_MS,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)

load_dotenv()  # Loads variables from .env file

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HEADLESS = _env_bool("HEADLESS", True)
    BROWSER_TYPE = os.getenv("BROWSER_TYPE", "chromium")


settings = Settings()


def parse_depth_quotas(raw: str) -> Dict[int, int]:
    """Parse a ``"0:1,1:20,2:50"`` style quota string.

    Args:
        raw: Comma-separated ``depth:quota`` pairs

    Returns:
        Mapping of depth to maximum pages visited at that depth

    Raises:
        ValueError: If a pair is malformed or holds a negative number
    """
    quotas: Dict[int, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        depth_str, sep, quota_str = pair.partition(":")
        if not sep:
            raise ValueError(f"Invalid depth quota entry: {pair!r}")
        depth, quota = int(depth_str), int(quota_str)
        if depth < 0 or quota < 0:
            raise ValueError(f"Depth quota entries must be non-negative: {pair!r}")
        quotas[depth] = quota
    return quotas


@dataclass
class AuditConfig:
    """Configuration for one audit invocation."""
    user_agent: str = DEFAULT_USER_AGENT

    # Navigation timeouts (milliseconds)
    reachability_timeout_ms: int = REACHABILITY_TIMEOUT_MS
    duplicate_timeout_ms: int = DUPLICATE_TIMEOUT_MS
    frame_timeout_ms: int = FRAME_TIMEOUT_MS
    seo_timeout_ms: int = SEO_TIMEOUT_MS
    crawl_timeout_ms: int = CRAWL_TIMEOUT_MS
    probe_timeout_seconds: float = PROBE_TIMEOUT_SECONDS

    # Settle delays after navigation (milliseconds)
    reachability_settle_ms: int = REACHABILITY_SETTLE_MS
    duplicate_settle_ms: int = DUPLICATE_SETTLE_MS
    duplicate_scroll_settle_ms: int = DUPLICATE_SCROLL_SETTLE_MS
    frame_settle_ms: int = FRAME_SETTLE_MS

    # Duplicate detection limits
    max_iframes: int = MAX_IFRAMES
    max_body_bytes: int = MAX_BODY_BYTES

    # Crawler fan-out policy
    depth_quotas: Dict[int, int] = field(
        default_factory=lambda: dict(DEFAULT_DEPTH_QUOTAS)
    )

    @classmethod
    def from_env(cls) -> "AuditConfig":
        """Load configuration from environment variables.

        Returns:
            AuditConfig: Configuration instance with values from environment
        """
        quotas_raw = os.getenv("DROPURL_DEPTH_QUOTAS")
        return cls(
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            reachability_timeout_ms=int(os.getenv("DROPURL_REACHABILITY_TIMEOUT_MS", str(REACHABILITY_TIMEOUT_MS))),
            duplicate_timeout_ms=int(os.getenv("DROPURL_DUPLICATE_TIMEOUT_MS", str(DUPLICATE_TIMEOUT_MS))),
            frame_timeout_ms=int(os.getenv("DROPURL_FRAME_TIMEOUT_MS", str(FRAME_TIMEOUT_MS))),
            seo_timeout_ms=int(os.getenv("DROPURL_SEO_TIMEOUT_MS", str(SEO_TIMEOUT_MS))),
            crawl_timeout_ms=int(os.getenv("DROPURL_CRAWL_TIMEOUT_MS", str(CRAWL_TIMEOUT_MS))),
            probe_timeout_seconds=float(os.getenv("DROPURL_PROBE_TIMEOUT_SECONDS", str(PROBE_TIMEOUT_SECONDS))),
            max_iframes=int(os.getenv("DROPURL_MAX_IFRAMES", str(MAX_IFRAMES))),
            max_body_bytes=int(os.getenv("DROPURL_MAX_BODY_BYTES", str(MAX_BODY_BYTES))),
            depth_quotas=(
                parse_depth_quotas(quotas_raw) if quotas_raw else dict(DEFAULT_DEPTH_QUOTAS)
            ),
        )


@dataclass
class AuditThresholds:
    """Configurable thresholds for the SEO heuristics."""

    title_min: int = TITLE_MIN_LENGTH
    title_max: int = TITLE_MAX_LENGTH
    description_min: int = DESCRIPTION_MIN_LENGTH
    description_max: int = DESCRIPTION_MAX_LENGTH

    def _update(self, values: Dict[str, object], source: str) -> "AuditThresholds":
        for name in _field_names(self):
            if name not in values:
                continue
            try:
                setattr(self, name, int(values[name]))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid threshold {name}={values[name]!r} from {source}")
        return self

    @classmethod
    def from_env(cls) -> "AuditThresholds":
        """Read ``DROPURL_THRESHOLD_<NAME>`` overrides, e.g. ``DROPURL_THRESHOLD_TITLE_MAX=70``."""
        prefix = "DROPURL_THRESHOLD_"
        values = {
            name: os.environ[prefix + name.upper()]
            for name in _field_names(cls)
            if prefix + name.upper() in os.environ
        }
        return cls()._update(values, "environment")

    @classmethod
    def from_file(cls, path: str) -> "AuditThresholds":
        """Load thresholds from a JSON file, layered over the environment.

        The file holds either the threshold names at top level or under a
        ``thresholds`` key.

        Raises:
            OSError: If the file cannot be read
            ValueError: If it is not a JSON object
        """
        with open(path) as f:
            data = json.load(f)
        values = data.get("thresholds", data) if isinstance(data, dict) else None
        if not isinstance(values, dict):
            raise ValueError(f"Thresholds file {path} must hold a JSON object")
        return cls.from_env()._update(values, path)


def _field_names(cls_or_obj) -> List[str]:
    return [f.name for f in fields(cls_or_obj)]


# Global default thresholds instance
default_thresholds = AuditThresholds()
