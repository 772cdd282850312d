import asyncio
import base64
from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error

IMAGE = b"\x89PNG-fake-image"


class FakeCDP:
    def __init__(self, harness):
        self.harness = harness
        self.calls = []
        self.listeners = {}
        self.detached = 0
        self.handlers = []
        self.cancelled = 0

    async def send(self, method, params=None):
        self.calls.append((method, params))
        if method in self.harness.fail:
            raise Error(self.harness.fail[method])
        if method in self.harness.hang:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if method == "Page.captureScreenshot":
            return {"data": base64.b64encode(IMAGE).decode()}
        if method == "Page.getLayoutMetrics":
            return self.harness.layout
        return {}

    def on(self, event, handler):
        self.handlers.append(handler)
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, params):
        for handler in list(self.listeners.get(event, [])):
            handler(params)

    async def detach(self):
        self.detached += 1

    def sent(self, method):
        return [params for name, params in self.calls if name == method]


class FakePage:
    def __init__(self, harness):
        self.harness = harness
        self.visited = []
        self.selectors = []
        self.default_timeout = None
        self.navigation_timeout = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    async def goto(self, url, wait_until=None):
        self.visited.append(url)
        if self.harness.navigation_error:
            raise Error(self.harness.navigation_error)
        for index, asset in enumerate(self.harness.assets):
            self.harness.cdp.emit("Fetch.requestPaused", {
                "requestId": f"interception-{index}",
                "request": {"url": asset},
            })
        await asyncio.sleep(0)

    async def wait_for_selector(self, selector, state=None):
        self.selectors.append((selector, state))
        if selector in self.harness.missing:
            await asyncio.sleep(3600)


class FakeContext:
    def __init__(self, harness):
        self.harness = harness
        self.closed = 0

    async def new_page(self):
        return self.harness.page

    async def new_cdp_session(self, page):
        return self.harness.cdp

    async def close(self):
        self.closed += 1


class FakeBrowser:
    def __init__(self, harness):
        self.harness = harness
        self.context_options = None
        self.closed = 0

    async def new_context(self, **kwargs):
        self.context_options = kwargs
        return self.harness.context

    async def close(self):
        self.closed += 1


class FakeChromium:
    def __init__(self, harness):
        self.harness = harness
        self.launch_options = None

    async def launch(self, **kwargs):
        self.launch_options = kwargs
        if self.harness.launch_error:
            raise Error(self.harness.launch_error)
        return self.harness.browser


class Harness:
    """Stands in for the Playwright driver and records what a session did."""

    def __init__(self):
        self.fail = {}
        self.hang = set()
        self.layout = {"cssContentSize": {"x": 0, "y": 0, "width": 1280, "height": 3000}}
        self.assets = []
        self.missing = set()
        self.navigation_error = None
        self.launch_error = None
        self.cdp = FakeCDP(self)
        self.page = FakePage(self)
        self.context = FakeContext(self)
        self.browser = FakeBrowser(self)
        self.chromium = FakeChromium(self)
        self.started = 0
        self.stopped = 0

    @asynccontextmanager
    async def driver(self):
        self.started += 1
        try:
            yield self
        finally:
            self.stopped += 1


@pytest.fixture
def harness():
    return Harness()
