# backend/browser.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Set, Tuple

from playwright.async_api import Error, async_playwright

from backend import config
from backend.capture import capture, content_type
from backend.errors import CaptureError
from backend.request import CaptureRequest
from backend.rewrite import RewriteRule

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-sync",
    "--disable-translate",
    "--hide-scrollbars",
    "--metrics-recording-only",
    "--mute-audio",
    "--no-first-run",
    "--safebrowsing-disable-auto-update",
]


def launch_args(request: CaptureRequest) -> list:
    return CHROMIUM_ARGS + [f"--window-size={request.width},{request.height}"]


class CaptureSession:
    """One page of one browser, driven for a single screenshot request."""

    def __init__(self, page, cdp, request: CaptureRequest, rule: Optional[RewriteRule] = None):
        self.page = page
        self.cdp = cdp
        self.request = request
        self.rule = rule
        self._interceptions: Set[asyncio.Future] = set()
        self._closed = False

    async def apply_headers(self):
        headers = self.request.extra_headers()
        if not headers:
            return
        await self.cdp.send("Network.enable")
        await self.cdp.send("Network.setExtraHTTPHeaders", {"headers": headers})

    async def emulate_device(self):
        orientation = "landscapePrimary" if self.request.landscape else "portraitPrimary"
        await self.cdp.send("Emulation.setDeviceMetricsOverride", {
            "width": self.request.width,
            "height": self.request.height,
            "deviceScaleFactor": self.request.device_scale,
            "mobile": self.request.mobile,
            "screenOrientation": {"type": orientation, "angle": 0},
        })

    async def install_rewrite(self):
        if self.rule is None:
            return
        self.cdp.on("Fetch.requestPaused", self._on_request_paused)
        await self.cdp.send("Fetch.enable", {"patterns": [{"urlPattern": "*"}]})

    def _on_request_paused(self, event):
        if self._closed:
            return
        task = asyncio.ensure_future(self._continue_request(event))
        self._interceptions.add(task)
        task.add_done_callback(self._interceptions.discard)

    async def _continue_request(self, event):
        url = event["request"]["url"]
        params = {"requestId": event["requestId"]}
        target = self.rule.rewrite(url)
        if target is not None:
            logger.debug("Rewriting %s -> %s", url, target)
            params["url"] = target
        try:
            await self.cdp.send("Fetch.continueRequest", params)
        except Error as e:
            # the sub-resource fails on its own once the page moves on
            logger.warning("Failed to continue request %s: %s", url, e.message)

    async def navigate(self):
        await self.page.goto(self.request.url, wait_until="load")

    async def wait(self):
        if self.request.wait_for:
            await self.page.wait_for_selector(self.request.wait_for, state="visible")
        if self.request.wait_time_ms > 0:
            await asyncio.sleep(self.request.wait_time_ms / 1000)

    async def close(self):
        if self._closed:
            return
        self._closed = True
        if self.rule is not None:
            self.cdp.remove_listener("Fetch.requestPaused", self._on_request_paused)
        pending = list(self._interceptions)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        try:
            await self.cdp.detach()
        except Error as e:
            logger.debug("CDP session already detached: %s", e.message)


@asynccontextmanager
async def open_session(browser, request: CaptureRequest, rule: Optional[RewriteRule] = None):
    # no_viewport leaves device metrics entirely to the CDP emulation calls
    context = await browser.new_context(no_viewport=True)
    session = None
    try:
        page = await context.new_page()
        timeout_ms = request.timeout_seconds * 1000
        page.set_default_timeout(timeout_ms)
        page.set_default_navigation_timeout(timeout_ms)
        cdp = await context.new_cdp_session(page)
        session = CaptureSession(page, cdp, request, rule)
        yield session
    finally:
        if session is not None:
            await session.close()
        await context.close()


async def _run_session(browser, request: CaptureRequest, rule: Optional[RewriteRule]) -> bytes:
    async with open_session(browser, request, rule) as session:
        await session.apply_headers()
        await session.emulate_device()
        await session.install_rewrite()
        await session.navigate()
        await session.wait()
        return await capture(session.cdp, request)


async def take_screenshot(request: CaptureRequest, rule: Optional[RewriteRule] = None,
                          driver=async_playwright) -> Tuple[bytes, str]:
    """Render ``request.url`` in a fresh Chromium and return (image bytes, MIME type).

    Every failure, including the ``timeout_seconds`` deadline running out, is
    raised as CaptureError after the browser has been shut down.
    """
    try:
        async with driver() as p:
            browser = await p.chromium.launch(
                headless=True,
                timeout=request.timeout_seconds * 1000,
                chromium_sandbox=config.CHROMIUM_SANDBOX,
                args=launch_args(request),
            )
            try:
                data = await asyncio.wait_for(
                    _run_session(browser, request, rule),
                    timeout=request.timeout_seconds,
                )
            finally:
                await browser.close()
    except asyncio.TimeoutError as e:
        raise CaptureError(f"timed out after {request.timeout_seconds}s") from e
    except Error as e:
        raise CaptureError(e.message) from e
    except Exception as e:
        raise CaptureError(str(e) or type(e).__name__) from e
    return data, content_type(request.format)
