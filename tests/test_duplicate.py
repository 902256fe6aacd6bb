"""Tests for the duplicate content detector."""

import pytest

from conftest import AssetSpec, PageSpec
from dropurl.config import AuditConfig
from dropurl.duplicate import DuplicateContentDetector, duplicate_summary
from dropurl.models import DuplicateGroup, DuplicateReport, DuplicateResult

SAME_PAGE = "<html><body><h1>Example Domain</h1><p>Shared copy.</p></body></html>"


@pytest.fixture
def detector(session_factory):
    return DuplicateContentDetector(AuditConfig(), session_factory=session_factory)


class TestDuplicateContentDetector:
    """Test cases for DuplicateContentDetector.check."""

    @pytest.mark.asyncio
    async def test_identical_pages_form_one_group(self, detector, site):
        site["https://example.com/a"] = PageSpec(html=SAME_PAGE)
        site["https://example.com/b"] = PageSpec(
            html=SAME_PAGE.replace("<body>", "<body><script>var build = 42;</script>")
        )
        site["https://example.com/c"] = PageSpec(html="<html><body><p>Unique.</p></body></html>")

        report = await detector.check([
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/c",
        ])

        assert len(report.results) == 3
        assert not any(r.error for r in report.results)
        assert len(report.groups) == 1
        assert report.groups[0].urls == ["https://example.com/a", "https://example.com/b"]

        summary = duplicate_summary(report)
        assert summary.detected is True
        assert summary.items_count == 2
        assert "https://example.com/c" not in summary.cross_page_duplicates[0].urls

    @pytest.mark.asyncio
    async def test_unique_pages_have_no_groups(self, detector, site):
        site["https://example.com/a"] = PageSpec(html="<p>one</p>")
        site["https://example.com/b"] = PageSpec(html="<p>two</p>")

        report = await detector.check(["https://example.com/a", "https://example.com/b"])

        assert report.groups == []
        assert duplicate_summary(report).detected is False

    @pytest.mark.asyncio
    async def test_duplicate_assets_within_a_page(self, detector, site):
        site["https://example.com/"] = PageSpec(assets=[
            AssetSpec(url="https://example.com/a.css", body=b"body{}"),
            AssetSpec(url="https://example.com/b.css", body=b"body{}"),
            AssetSpec(url="https://cdn.example.net/c.css", body=b"body{}"),
        ])

        result = (await detector.check(["https://example.com/"])).results[0]

        assert len(result.groups) == 1
        assert result.duplicates == ["https://example.com/a.css", "https://example.com/b.css"]
        assert result.response_count == 4

    @pytest.mark.asyncio
    async def test_iframe_sources_loaded_and_capped(self, site, session):
        frame_html = "<p>embedded</p>"
        iframes = [f"https://example.com/embed/{i}?_rsc=abc" for i in range(8)]
        site["https://example.com/"] = PageSpec(html="<p>host</p>", iframes=iframes)
        for i in range(8):
            site[f"https://example.com/embed/{i}"] = PageSpec(html=frame_html)

        detector = DuplicateContentDetector(AuditConfig(max_iframes=3), session_factory=lambda: session)
        result = (await detector.check(["https://example.com/"])).results[0]

        assert result.iframe_sources == iframes
        visited = [url for page in session.pages for url in page.visited]
        assert visited == [
            "https://example.com/",
            "https://example.com/embed/0",
            "https://example.com/embed/1",
            "https://example.com/embed/2",
        ]
        assert result.groups[0].urls == [
            "https://example.com/embed/0",
            "https://example.com/embed/1",
            "https://example.com/embed/2",
        ]
        assert all(page.closed for page in session.pages)

    @pytest.mark.asyncio
    async def test_navigation_failure_reported_per_target(self, detector, site, session):
        site["https://example.com/ok"] = PageSpec(html=SAME_PAGE)

        report = await detector.check(["https://example.com/down", "https://example.com/ok"])

        failed, ok = report.results
        assert failed.error is True
        assert "ERR_NAME_NOT_RESOLVED" in failed.error_message
        assert failed.groups == []
        assert ok.error is False
        assert all(context.closed for context in session.contexts)


class TestDuplicateSummary:
    """Test cases for merging groups across targets."""

    def test_merges_groups_by_hash(self):
        report = DuplicateReport(results=[
            DuplicateResult(url="https://a.com/1", groups=[
                DuplicateGroup(hash="h1", urls=["https://a.com/x", "https://a.com/y"]),
            ]),
            DuplicateResult(url="https://a.com/2", groups=[
                DuplicateGroup(hash="h1", urls=["https://a.com/y", "https://a.com/z"]),
                DuplicateGroup(hash="h2", urls=["https://a.com/p", "https://a.com/q"]),
            ]),
            DuplicateResult(url="https://a.com/3", error=True, error_message="boom"),
        ])

        summary = duplicate_summary(report)

        assert summary.detected is True
        assert [g.hash for g in summary.cross_page_duplicates] == ["h1", "h2"]
        assert summary.cross_page_duplicates[0].urls == ["https://a.com/x", "https://a.com/y", "https://a.com/z"]
        assert summary.items_count == 5

    def test_empty_report(self):
        summary = duplicate_summary(DuplicateReport())
        assert summary.to_dict() == {"detected": False, "items_count": 0, "cross_page_duplicates": []}
