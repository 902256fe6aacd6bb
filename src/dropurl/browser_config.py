"""
Browser configuration for Playwright-based auditing.

This module provides a validated Pydantic configuration model for the
browser session shared by every analyzer.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from dropurl.config import settings
from dropurl.constants import DESKTOP_VIEWPORT_HEIGHT, DESKTOP_VIEWPORT_WIDTH


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-backed BrowserSession.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to launch"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="User agent for new contexts. None keeps the engine default."
    )

    locale: str = Field(
        default="en-US",
        description="Locale reported by new contexts"
    )

    viewport_width: int = Field(default=DESKTOP_VIEWPORT_WIDTH, ge=320, le=7680)
    viewport_height: int = Field(default=DESKTOP_VIEWPORT_HEIGHT, ge=240, le=4320)

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments (e.g., '--disable-http2')"
    )

    model_config = {"validate_assignment": True}

    @classmethod
    def from_settings(cls) -> "BrowserConfig":
        """Build a config from environment-backed settings."""
        return cls(
            headless=settings.HEADLESS,
            browser_type=settings.BROWSER_TYPE,
            user_agent=settings.USER_AGENT,
        )

    def context_options(self) -> dict:
        """Keyword arguments for ``Browser.new_context``."""
        options = {
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "locale": self.locale,
            "java_script_enabled": True,
        }
        if self.user_agent:
            options["user_agent"] = self.user_agent
        return options


# --- Pre-configured Instances ---

SEO_CONFIG = BrowserConfig(browser_type="firefox")
"""Firefox configuration used by the SEO analyzer."""
