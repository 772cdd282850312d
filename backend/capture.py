# backend/capture.py
import base64
from typing import Any, Dict

from backend.request import CaptureRequest, ClipRegion, FullPage, Viewport

# Chromium refuses to composite surfaces taller than this.
MAX_FULL_PAGE_HEIGHT = 16384

CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def content_type(image_format: str) -> str:
    return CONTENT_TYPES.get(image_format, "image/png")


def screenshot_params(request: CaptureRequest) -> Dict[str, Any]:
    params: Dict[str, Any] = {"format": request.format}
    if request.format in ("jpeg", "webp"):
        params["quality"] = request.quality
    return params


async def _capture(cdp, params: Dict[str, Any]) -> bytes:
    result = await cdp.send("Page.captureScreenshot", params)
    return base64.b64decode(result["data"])


async def capture_viewport(cdp, request: CaptureRequest) -> bytes:
    return await _capture(cdp, screenshot_params(request))


async def capture_full_page(cdp, request: CaptureRequest) -> bytes:
    metrics = await cdp.send("Page.getLayoutMetrics")
    size = metrics.get("cssContentSize") or metrics["contentSize"]
    width = int(size["width"])
    height = min(int(size["height"]), MAX_FULL_PAGE_HEIGHT)

    await cdp.send("Emulation.setDeviceMetricsOverride", {
        "width": width,
        "height": height,
        "deviceScaleFactor": 1,
        "mobile": False,
    })

    params = screenshot_params(request)
    params["captureBeyondViewport"] = True
    return await _capture(cdp, params)


async def capture_clip(cdp, request: CaptureRequest) -> bytes:
    params = screenshot_params(request)
    params["clip"] = dict(request.mode.as_dict(), scale=1)
    return await _capture(cdp, params)


STRATEGIES = {
    Viewport: capture_viewport,
    FullPage: capture_full_page,
    ClipRegion: capture_clip,
}


async def capture(cdp, request: CaptureRequest) -> bytes:
    strategy = STRATEGIES[type(request.mode)]
    return await strategy(cdp, request)
