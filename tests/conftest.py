"""Shared fakes standing in for Playwright browser objects.

A FakeSite maps URLs to PageSpecs. Navigating a FakePage to a URL replays
the responses its PageSpec describes through the registered ``response``
handlers, the same way Playwright emits them during ``page.goto``.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pytest


@dataclass
class FrameSpec:
    """A child frame embedded in a page."""
    url: str
    status: int = 200
    name: str = ""
    title: str = ""
    # (url, resource_type, status) loaded inside the frame
    assets: List[Tuple[str, str, int]] = field(default_factory=list)


@dataclass
class AssetSpec:
    """A subresource loaded by the main frame."""
    url: str
    status: int = 200
    content_type: str = "text/css"
    body: bytes = b""
    resource_type: str = "stylesheet"


@dataclass
class PageSpec:
    status: int = 200
    html: str = "<html><head><title>Page</title></head><body></body></html>"
    content_type: str = "text/html; charset=utf-8"
    links: List[str] = field(default_factory=list)
    iframes: List[str] = field(default_factory=list)
    frames: List[FrameSpec] = field(default_factory=list)
    assets: List[AssetSpec] = field(default_factory=list)
    # when False the main document response event is not emitted
    emit_main_document: bool = True
    goto_error: Optional[str] = None


class FakeRequest:
    def __init__(self, resource_type: str):
        self.resource_type = resource_type


class FakeFrame:
    def __init__(self, url: str, name: str = "", title: str = "", parent_frame=None):
        self.url = url
        self.name = name
        self._title = title
        self.parent_frame = parent_frame

    async def title(self) -> str:
        return self._title


class FakeResponse:
    def __init__(self, url, status, frame=None, resource_type="document",
                 headers=None, body=b""):
        self.url = url
        self.status = status
        self.frame = frame
        self.request = FakeRequest(resource_type)
        self.headers = headers or {}
        self._body = body

    async def body(self) -> bytes:
        return self._body

    async def text(self) -> str:
        return self._body.decode("utf-8")


class FakePage:
    def __init__(self, site: Dict[str, PageSpec]):
        self.site = site
        self.url = "about:blank"
        self.main_frame = FakeFrame("about:blank")
        self.frames = [self.main_frame]
        self.handlers = []
        self.visited: List[str] = []
        self.closed = False
        self._spec: Optional[PageSpec] = None

    def on(self, event: str, handler):
        if event == "response":
            self.handlers.append(handler)

    def _emit(self, response):
        for handler in self.handlers:
            handler(response)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        spec = self.site.get(url)
        if spec is None:
            raise Exception(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if spec.goto_error:
            raise Exception(spec.goto_error)

        self._spec = spec
        self.url = url
        self.main_frame.url = url

        main = FakeResponse(
            url, spec.status, frame=self.main_frame,
            headers={"content-type": spec.content_type},
            body=spec.html.encode("utf-8"),
        )
        if spec.emit_main_document:
            self._emit(main)

        for asset in spec.assets:
            self._emit(FakeResponse(
                asset.url, asset.status, frame=self.main_frame,
                resource_type=asset.resource_type,
                headers={"content-type": asset.content_type},
                body=asset.body,
            ))

        for frame_spec in spec.frames:
            frame = FakeFrame(frame_spec.url, frame_spec.name, frame_spec.title, self.main_frame)
            self.frames.append(frame)
            self._emit(FakeResponse(frame_spec.url, frame_spec.status, frame=frame))
            for asset_url, resource_type, status in frame_spec.assets:
                self._emit(FakeResponse(asset_url, status, frame=frame, resource_type=resource_type))

        return main

    async def wait_for_timeout(self, ms):
        return None

    async def evaluate(self, script):
        return None

    async def wait_for_selector(self, selector, timeout=None):
        if not (self._spec and self._spec.links):
            raise TimeoutError(f"Timeout waiting for {selector}")

    async def eval_on_selector_all(self, selector, script):
        if self._spec is None:
            return []
        if selector.startswith("iframe"):
            return list(self._spec.iframes)
        if selector.startswith("a"):
            return list(self._spec.links)
        return []

    async def content(self) -> str:
        return self._spec.html if self._spec else ""

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, site):
        self.site = site
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self):
        page = FakePage(self.site)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeSession:
    """Drop-in for BrowserSession backed by a FakeSite."""

    def __init__(self, site):
        self.site = site
        self.contexts: List[FakeContext] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    @asynccontextmanager
    async def context(self):
        context = FakeContext(self.site)
        self.contexts.append(context)
        try:
            yield context
        finally:
            await context.close()

    @asynccontextmanager
    async def page(self, context):
        page = await context.new_page()
        try:
            yield page
        finally:
            await page.close()

    @property
    def pages(self) -> List[FakePage]:
        return [p for c in self.contexts for p in c.pages]


@pytest.fixture
def site():
    """Mutable URL -> PageSpec mapping for the fake browser."""
    return {}


@pytest.fixture
def session(site):
    return FakeSession(site)


@pytest.fixture
def session_factory(session):
    return lambda: session
