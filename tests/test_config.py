"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from dropurl.browser_config import SEO_CONFIG, BrowserConfig
from dropurl.config import AuditConfig, AuditThresholds, parse_depth_quotas
from dropurl.constants import DEFAULT_DEPTH_QUOTAS


class TestParseDepthQuotas:
    def test_parses_pairs(self):
        assert parse_depth_quotas("0:1, 1:20,2:50") == {0: 1, 1: 20, 2: 50}

    @pytest.mark.parametrize("raw", ["0-1", "a:b", "1:-3"])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            parse_depth_quotas(raw)


class TestAuditConfig:
    """Test cases for AuditConfig."""

    def test_defaults(self):
        config = AuditConfig()
        assert config.reachability_timeout_ms == 15000
        assert config.duplicate_timeout_ms == 45000
        assert config.max_iframes == 6
        assert config.depth_quotas == DEFAULT_DEPTH_QUOTAS
        assert config.depth_quotas is not DEFAULT_DEPTH_QUOTAS

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DROPURL_MAX_IFRAMES", "2")
        monkeypatch.setenv("DROPURL_SEO_TIMEOUT_MS", "5000")
        monkeypatch.setenv("DROPURL_DEPTH_QUOTAS", "0:1,1:5")

        config = AuditConfig.from_env()

        assert config.max_iframes == 2
        assert config.seo_timeout_ms == 5000
        assert config.depth_quotas == {0: 1, 1: 5}


class TestAuditThresholds:
    """Test cases for AuditThresholds."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DROPURL_THRESHOLD_TITLE_MAX", "70")
        monkeypatch.setenv("DROPURL_THRESHOLD_DESCRIPTION_MIN", "not-a-number")

        thresholds = AuditThresholds.from_env()

        assert thresholds.title_max == 70
        assert thresholds.description_min == 70

    def test_from_file(self, tmp_path):
        path = tmp_path / "thresholds.json"
        path.write_text(json.dumps({"thresholds": {"title_min": 10}}))

        thresholds = AuditThresholds.from_file(str(path))

        assert thresholds.title_min == 10
        assert thresholds.title_max == 65

    def test_file_layers_over_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DROPURL_THRESHOLD_TITLE_MAX", "90")
        path = tmp_path / "thresholds.json"
        path.write_text(json.dumps({"description_max": 200}))

        thresholds = AuditThresholds.from_file(str(path))

        assert thresholds.title_max == 90
        assert thresholds.description_max == 200

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            AuditThresholds.from_file(str(tmp_path / "nope.json"))

    @pytest.mark.parametrize("content", ["[1, 2]", '{"thresholds": 5}', "not json"])
    def test_non_object_file_raises(self, tmp_path, content):
        path = tmp_path / "thresholds.json"
        path.write_text(content)
        with pytest.raises(ValueError):
            AuditThresholds.from_file(str(path))


class TestBrowserConfig:
    """Test cases for the pydantic browser config."""

    def test_context_options(self):
        options = BrowserConfig(user_agent="UA/1.0").context_options()
        assert options["user_agent"] == "UA/1.0"
        assert options["viewport"] == {"width": 1920, "height": 1080}

    def test_no_user_agent_by_default(self):
        assert "user_agent" not in BrowserConfig().context_options()

    def test_invalid_browser_type(self):
        with pytest.raises(ValidationError):
            BrowserConfig(browser_type="netscape")

    def test_validate_assignment(self):
        config = BrowserConfig()
        with pytest.raises(ValidationError):
            config.viewport_width = 10

    def test_seo_uses_firefox(self):
        assert SEO_CONFIG.browser_type == "firefox"
