# frontend/client.py
import json
import os

import requests

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8080")


def build_query(url, width=None, height=None, image_format="png", quality=None,
                full_page=False, clip=None, headers=None, wait_for="", wait_time=0,
                user_agent="", device_scale=None, mobile=False, landscape=False, timeout=None):
    params = {"url": url, "format": image_format}
    optional = {
        "width": width,
        "height": height,
        "quality": quality,
        "wait_time": wait_time or None,
        "wait_for": wait_for or None,
        "user_agent": user_agent or None,
        "device_scale": device_scale,
        "timeout": timeout,
    }
    params.update({k: v for k, v in optional.items() if v is not None})
    for flag, value in (("full_page", full_page), ("mobile", mobile), ("landscape", landscape)):
        if value:
            params[flag] = "true"
    # headers and clip travel as JSON text in the query string
    if headers:
        params["headers"] = json.dumps(headers)
    if clip:
        params["clip"] = json.dumps(clip)
    return params


def fetch_screenshot(params, backend_url=BACKEND_URL, timeout=150):
    """Returns (image bytes, None) on success or (None, error message)."""
    resp = requests.get(f"{backend_url}/screenshot", params=params, timeout=timeout)
    if resp.status_code == 200:
        return resp.content, None
    try:
        error = resp.json().get("error", resp.text)
    except ValueError:
        error = resp.text
    return None, f"{resp.status_code}: {error}"
