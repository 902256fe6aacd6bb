"""
On-page SEO metadata extraction.

Parses rendered HTML with BeautifulSoup and produces a SeoSnapshot. Every
field is extracted independently: a failure while reading one field is
logged and leaves that field empty without affecting the others.
"""
import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from dropurl.config import AuditThresholds, default_thresholds
from dropurl.constants import MAX_JSONLD_DEPTH, OPEN_GRAPH_TAGS, TWITTER_CARD_TAGS
from dropurl.models import (
    BasicMeta,
    HeadingStats,
    ImageStats,
    LinkStats,
    PresenceValue,
    SeoHeuristics,
    SeoSnapshot,
    SiteFiles,
)
from dropurl.urls import origin

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WHITESPACE_RE = re.compile(r"\s+")
_CHARSET_RE = re.compile(r"charset=([\w-]+)", re.IGNORECASE)


def _collapse(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return _WHITESPACE_RE.sub(" ", text).strip()


def collect_jsonld_types(data: Any, types: List[str], depth: int = 0) -> None:
    """Recursively collect ``@type`` values from parsed JSON-LD.

    Nested objects, lists and ``@graph`` arrays are all visited; values are
    appended to ``types`` once, in the order they are first seen. Recursion
    stops at MAX_JSONLD_DEPTH.
    """
    if depth > MAX_JSONLD_DEPTH:
        return

    if isinstance(data, dict):
        type_val = data.get("@type")
        if isinstance(type_val, str):
            if type_val not in types:
                types.append(type_val)
        elif isinstance(type_val, list):
            for t in type_val:
                if isinstance(t, str) and t not in types:
                    types.append(t)

        # @graph is an ordinary list value, so the generic walk covers it
        for key, value in data.items():
            if key == "@type":
                continue
            if isinstance(value, (dict, list)):
                collect_jsonld_types(value, types, depth + 1)

    elif isinstance(data, list):
        for item in data:
            collect_jsonld_types(item, types, depth + 1)


class SeoExtractor:
    """Builds SeoSnapshots from rendered HTML."""

    def __init__(self, thresholds: Optional[AuditThresholds] = None):
        self.thresholds = thresholds or default_thresholds

    def extract(
        self,
        html: str,
        page_url: str,
        site_files: Optional[SiteFiles] = None,
    ) -> SeoSnapshot:
        """Extract SEO metadata from a page.

        Args:
            html: Rendered HTML of the page
            page_url: URL the HTML was loaded from, used to classify links
            site_files: robots.txt / sitemap.xml presence probed by the caller

        Returns:
            SeoSnapshot with heuristics already computed
        """
        soup = BeautifulSoup(html or "", "lxml")

        snapshot = SeoSnapshot(
            basic_meta=self._safe("basic_meta", lambda: self._basic_meta(soup), BasicMeta),
            open_graph=self._safe("open_graph", lambda: self._meta_group(soup, OPEN_GRAPH_TAGS), dict),
            twitter_card=self._safe("twitter_card", lambda: self._meta_group(soup, TWITTER_CARD_TAGS), dict),
            canonical=self._safe("canonical", lambda: self._canonical(soup), PresenceValue),
            html_lang=self._safe("html_lang", lambda: self._html_lang(soup), PresenceValue),
            headings=self._safe("headings", lambda: self._headings(soup), HeadingStats),
            images=self._safe("images", lambda: self._images(soup), ImageStats),
            links=self._safe("links", lambda: self._links(soup, page_url), LinkStats),
            other_meta=self._safe("other_meta", lambda: self._other_meta(soup, page_url), dict),
            site_files=site_files or SiteFiles(),
        )

        types, block_count = self._safe(
            "structured_data", lambda: self._structured_data(soup), lambda: ([], 0)
        )
        snapshot.structured_data_types = types
        snapshot.jsonld_block_count = block_count

        snapshot.heuristics = self._safe(
            "heuristics", lambda: self.heuristics(snapshot), SeoHeuristics
        )
        return snapshot

    def heuristics(self, snapshot: SeoSnapshot) -> SeoHeuristics:
        """Derive pass/fail checks from raw extracted values."""
        t = self.thresholds
        title_len = len(snapshot.basic_meta.title or "")
        desc_len = len(snapshot.basic_meta.description or "")
        images = snapshot.images

        return SeoHeuristics(
            title_length=title_len,
            title_length_ok=t.title_min <= title_len <= t.title_max,
            description_length=desc_len,
            description_length_ok=t.description_min <= desc_len <= t.description_max,
            has_canonical=snapshot.canonical.present,
            has_html_lang=snapshot.html_lang.present,
            has_h1=snapshot.headings.h1_count > 0,
            multiple_h1=snapshot.headings.h1_count > 1,
            has_open_graph=any(v for v in snapshot.open_graph.values()),
            has_twitter_card=any(v for v in snapshot.twitter_card.values()),
            has_schema=snapshot.jsonld_block_count > 0,
            image_alt_coverage=(images.with_alt / images.total) if images.total else None,
        )

    def _safe(self, name: str, fn: Callable[[], T], default: Callable[[], T]) -> T:
        try:
            return fn()
        except Exception as e:
            logger.warning(f"Failed to extract {name}: {e}")
            return default()

    def _meta_content(self, soup: BeautifulSoup, key: str) -> Optional[str]:
        """Content of ``<meta name=key>``, falling back to ``property=key``."""
        tag = soup.find("meta", attrs={"name": key}) or soup.find("meta", attrs={"property": key})
        if not tag:
            return None
        return tag.get("content")

    def _basic_meta(self, soup: BeautifulSoup) -> BasicMeta:
        charset = None
        charset_tag = soup.find("meta", attrs={"charset": True})
        if charset_tag:
            charset = charset_tag.get("charset")
        else:
            http_equiv = soup.find(
                "meta", attrs={"http-equiv": lambda v: v and v.lower() == "content-type"}
            )
            if http_equiv:
                match = _CHARSET_RE.search(http_equiv.get("content", ""))
                if match:
                    charset = match.group(1)

        title_tag = soup.find("title")
        title = _collapse(title_tag.get_text()) if title_tag else None

        return BasicMeta(
            charset=charset,
            viewport=self._meta_content(soup, "viewport"),
            title=title,
            description=self._meta_content(soup, "description"),
            robots=self._meta_content(soup, "robots"),
        )

    def _meta_group(self, soup: BeautifulSoup, keys) -> Dict[str, Optional[str]]:
        return {key: self._meta_content(soup, key) for key in keys}

    def _canonical(self, soup: BeautifulSoup) -> PresenceValue:
        tag = soup.find("link", rel="canonical")
        href = tag.get("href") if tag else None
        return PresenceValue(value=href, present=bool(href))

    def _html_lang(self, soup: BeautifulSoup) -> PresenceValue:
        html_tag = soup.find("html")
        lang = html_tag.get("lang") if html_tag else None
        return PresenceValue(value=lang, present=bool(lang and lang.strip()))

    def _headings(self, soup: BeautifulSoup) -> HeadingStats:
        h1_tags = [h1.get_text(strip=True) for h1 in soup.find_all("h1")]
        return HeadingStats(
            h1_count=len(h1_tags),
            h1_texts=h1_tags,
            h2_count=len(soup.find_all("h2")),
            h3_count=len(soup.find_all("h3")),
        )

    def _images(self, soup: BeautifulSoup) -> ImageStats:
        all_images = soup.find_all("img")
        with_alt = sum(1 for img in all_images if (img.get("alt") or "").strip())
        return ImageStats(
            total=len(all_images),
            with_alt=with_alt,
            without_alt=len(all_images) - with_alt,
        )

    def _links(self, soup: BeautifulSoup, page_url: str) -> LinkStats:
        stats = LinkStats()
        page_origin = origin(page_url)

        for link in soup.find_all("a", href=True):
            stats.total += 1

            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "nofollow" in [r.lower() for r in rel]:
                stats.nofollow += 1
            else:
                stats.follow += 1

            try:
                absolute_url = urljoin(page_url, link["href"])
                link_origin = origin(absolute_url)
            except ValueError:
                logger.debug(f"Unresolvable href on {page_url}: {link['href'][:100]}")
                continue
            if urlparse(absolute_url).scheme not in ("http", "https"):
                continue
            if link_origin == page_origin:
                stats.internal += 1
            else:
                stats.external += 1

        return stats

    def _structured_data(self, soup: BeautifulSoup):
        types: List[str] = []
        block_count = 0

        for script in soup.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.debug(f"Ignoring malformed JSON-LD block: {str(e)[:100]}")
                continue
            block_count += 1
            collect_jsonld_types(data, types)

        return types, block_count

    def _other_meta(self, soup: BeautifulSoup, page_url: str) -> Dict[str, Optional[str]]:
        favicon = None
        icon = soup.find(
            "link", rel=lambda r: r and "icon" in [v.lower() for v in (r if isinstance(r, list) else r.split())]
        )
        if icon and icon.get("href"):
            favicon = urljoin(page_url, icon["href"])

        content_type = None
        http_equiv = soup.find(
            "meta", attrs={"http-equiv": lambda v: v and v.lower() == "content-type"}
        )
        if http_equiv:
            content_type = http_equiv.get("content")

        return {
            "favicon": favicon,
            "theme_color": self._meta_content(soup, "theme-color"),
            "author": self._meta_content(soup, "author"),
            "content_type": content_type,
        }
