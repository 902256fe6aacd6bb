"""
Content fingerprinting for duplicate detection.

HTML responses are normalized before hashing so that build timestamps,
per-request nonces and framework hydration noise do not make identical
pages look different. Other responses are hashed byte for byte.
"""
import hashlib
import logging
import re
from typing import Any, Dict, Iterable, List, Set, Tuple

from dropurl.constants import FRAMEWORK_INTERNAL_MARKERS, MAX_BODY_BYTES
from dropurl.models import DuplicateGroup
from dropurl.urls import get_hostname

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_SCRIPT_RE = re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?>[\s\S]*?</style>", re.IGNORECASE)
_META_RE = re.compile(r"<meta[^>]*>", re.IGNORECASE)
_HINT_LINK_RE = re.compile(
    r"<link[^>]+rel=[\"']?(?:preconnect|preload|prefetch|modulepreload|dns-prefetch)[\"']?[^>]*>",
    re.IGNORECASE,
)
_HYDRATION_ATTR_RE = re.compile(
    r"\s(?:data-rsc|data-nextjs|nonce|data-?ssr|data-?props)=[\"'][^\"']*[\"']",
    re.IGNORECASE,
)
_CACHE_BUST_RE = re.compile(r"[?&]_rsc=[^\"'\s>&]+", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

_PASSES = (
    _COMMENT_RE,
    _SCRIPT_RE,
    _HINT_LINK_RE,
    _STYLE_RE,
    _META_RE,
    _HYDRATION_ATTR_RE,
    _CACHE_BUST_RE,
)


def _normalize_once(html: str) -> str:
    for pattern in _PASSES:
        html = pattern.sub("", html)
    return _WHITESPACE_RE.sub(" ", html).strip()


def normalize_html(html: str) -> str:
    """Strip volatile markup from an HTML document and collapse whitespace.

    Every pass only removes text, so repeating until nothing changes
    terminates and makes the result a fixpoint: normalizing normalized HTML
    returns it unchanged.
    """
    if not html:
        return ""
    current = _normalize_once(html)
    while True:
        again = _normalize_once(current)
        if again == current:
            return current
        current = again


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def is_framework_internal(url: str) -> bool:
    """True for build-tool assets, SSR payloads, live-reload sockets and API calls."""
    return any(marker in url for marker in FRAMEWORK_INTERNAL_MARKERS)


class ContentFingerprinter:
    """
    Response collector that maps content hashes to the URLs serving them.

    One instance is shared by the main page and the frame pages of a target
    so that grouping spans all of them. ``record`` only queues the response;
    ``drain`` reads bodies and hashes them once navigation has settled.
    """

    def __init__(self, primary_hosts: Iterable[str], max_body_bytes: int = MAX_BODY_BYTES):
        self.primary_hosts: Set[str] = {h.lower() for h in primary_hosts}
        self.max_body_bytes = max_body_bytes
        self.hash_map: Dict[str, Set[str]] = {}
        self.response_count = 0
        self._seen: Set[Tuple[str, int]] = set()
        self._pending: List[Any] = []

    def record(self, response: Any) -> None:
        self.response_count += 1
        self._pending.append(response)

    async def drain(self) -> None:
        pending, self._pending = self._pending, []
        for response in pending:
            try:
                await self._process(response)
            except Exception as e:
                logger.debug(f"Skipping response {getattr(response, 'url', '?')}: {e}")

    def accepts(self, url: str) -> bool:
        """Whether a response URL is in scope for fingerprinting."""
        if is_framework_internal(url):
            return False
        host = get_hostname(url)
        return bool(host) and host in self.primary_hosts

    async def _process(self, response: Any) -> None:
        url = response.url
        status = response.status

        if not self.accepts(url):
            return

        key = (url, status)
        if key in self._seen:
            return
        self._seen.add(key)

        if status < 200 or status >= 400:
            return

        content_type = (response.headers.get("content-type") or "").lower()
        if "text/html" in content_type:
            try:
                text = await response.text()
            except Exception:
                return
            if not text:
                return
            digest = content_hash(normalize_html(text).encode("utf-8"))
        else:
            try:
                body = await response.body()
            except Exception:
                return
            if not body or len(body) > self.max_body_bytes:
                return
            digest = content_hash(body)

        self.hash_map.setdefault(digest, set()).add(url)

    def groups(self) -> List[DuplicateGroup]:
        """Fingerprints shared by at least two distinct URLs."""
        return group_fingerprints(self.hash_map)


def merge_fingerprints(target: Dict[str, Set[str]], source: Dict[str, Iterable[str]]) -> None:
    """Fold ``source`` hash -> URLs entries into ``target`` in place."""
    for digest, urls in source.items():
        target.setdefault(digest, set()).update(urls)


def group_fingerprints(hash_map: Dict[str, Set[str]]) -> List[DuplicateGroup]:
    """DuplicateGroups for every hash with at least two member URLs."""
    return [
        DuplicateGroup(hash=digest, urls=sorted(urls))
        for digest, urls in sorted(hash_map.items())
        if len(urls) > 1
    ]
