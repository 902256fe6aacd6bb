"""Tests for the SEO analyzer."""

import httpx
import pytest

from conftest import PageSpec
from dropurl.browser_config import SEO_CONFIG, BrowserConfig
from dropurl.config import AuditConfig
from dropurl.seo_analyzer import SeoAnalyzer

HOME = (
    '<html lang="en"><head><title>Example Domain for Testing SEO Checks</title>'
    '<link rel="canonical" href="https://example.com/"></head>'
    "<body><h1>Example</h1></body></html>"
)


def transport_for(routes):
    """MockTransport answering ``(method, url) -> status``; unknown routes fail to connect."""
    def handler(request: httpx.Request) -> httpx.Response:
        key = (request.method, str(request.url))
        if key not in routes:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(routes[key], text="ok")

    return httpx.MockTransport(handler)


def make_analyzer(session_factory, routes):
    return SeoAnalyzer(
        AuditConfig(),
        session_factory=session_factory,
        transport=transport_for(routes),
    )


class TestSeoAnalyzer:
    """Test cases for SeoAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_unreachable_root(self, session_factory):
        analyzer = make_analyzer(session_factory, {})

        report = await analyzer.analyze(["https://down.example/page"])

        result = report.results[0]
        assert result.reachable is False
        assert result.root_url == "https://down.example/"
        assert result.original_url == "https://down.example/page"
        assert result.error == "URL not reachable"
        assert result.snapshot is None

    @pytest.mark.asyncio
    async def test_reachable_root_analyzed(self, session_factory, site, session):
        site["https://example.com/"] = PageSpec(html=HOME)
        analyzer = make_analyzer(session_factory, {
            ("HEAD", "https://example.com/"): 200,
            ("GET", "https://example.com/robots.txt"): 200,
            ("GET", "https://example.com/sitemap.xml"): 404,
        })

        report = await analyzer.analyze(["https://example.com/blog/post"])

        result = report.results[0]
        assert result.reachable is True
        assert result.root_url == "https://example.com/"
        snapshot = result.snapshot
        assert snapshot.basic_meta.title == "Example Domain for Testing SEO Checks"
        assert snapshot.heuristics.has_canonical is True
        assert snapshot.site_files.robots_txt is True
        assert snapshot.site_files.sitemap_xml is False
        assert session.pages[0].visited == ["https://example.com/"]

    @pytest.mark.asyncio
    async def test_head_rejected_falls_back_to_get(self, session_factory, site):
        site["https://example.com/"] = PageSpec(html=HOME)
        analyzer = make_analyzer(session_factory, {
            ("HEAD", "https://example.com/"): 405,
            ("GET", "https://example.com/"): 200,
        })

        result = (await analyzer.analyze(["https://example.com/"])).results[0]

        assert result.reachable is True
        assert result.snapshot is not None

    @pytest.mark.asyncio
    async def test_navigation_failure_tolerated(self, session_factory, site):
        site["https://example.com/"] = PageSpec(html=HOME, goto_error="Timeout 20000ms exceeded")
        analyzer = make_analyzer(session_factory, {("HEAD", "https://example.com/"): 200})

        result = (await analyzer.analyze(["https://example.com/"])).results[0]

        assert result.reachable is True
        assert result.snapshot is not None
        assert result.skipped_reason is None

    @pytest.mark.asyncio
    async def test_analysis_crash_marks_skipped(self, session_factory, site, monkeypatch):
        site["https://example.com/"] = PageSpec(html=HOME)
        analyzer = make_analyzer(session_factory, {("HEAD", "https://example.com/"): 200})

        def boom(*args, **kwargs):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(analyzer.extractor, "extract", boom)

        result = (await analyzer.analyze(["https://example.com/"])).results[0]

        assert result.reachable is True
        assert result.snapshot is None
        assert result.skipped_reason == "analyze_failed"
        assert result.to_dict()["snapshot"] is None

    @pytest.mark.asyncio
    async def test_one_result_per_input(self, session_factory, site):
        site["https://example.com/"] = PageSpec(html=HOME)
        analyzer = make_analyzer(session_factory, {("HEAD", "https://example.com/"): 200})

        report = await analyzer.analyze(["https://example.com/a", "https://example.com/b"])

        assert [r.original_url for r in report.results] == ["https://example.com/a", "https://example.com/b"]
        assert all(r.reachable for r in report.results)


class TestSeoBrowserConfig:
    def test_firefox_with_configured_user_agent(self):
        analyzer = SeoAnalyzer(AuditConfig(user_agent="AuditBot/2.0"))

        assert analyzer.browser_config.browser_type == "firefox"
        assert analyzer.browser_config.context_options()["user_agent"] == "AuditBot/2.0"
        assert SEO_CONFIG.user_agent is None

    def test_explicit_browser_config_kept(self):
        custom = BrowserConfig(browser_type="webkit")
        assert SeoAnalyzer(AuditConfig(), browser_config=custom).browser_config is custom
