# backend/request.py
import json
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as SchemaError

from backend.errors import ParseError, ValidationError

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FORMAT = "png"
DEFAULT_QUALITY = 90
DEFAULT_DEVICE_SCALE = 1.0
DEFAULT_TIMEOUT = 30
MAX_TIMEOUT = 120

WIDTH_RANGE = (100, 4096)
HEIGHT_RANGE = (100, 10000)

FORMATS = ("png", "jpeg", "webp")
FORMAT_ALIASES = {"jpg": "jpeg"}

# what a client is told when a field cannot be read at all
FIELD_MESSAGES = {
    "url": "must be a string",
    "width": "must be an integer",
    "height": "must be an integer",
    "format": "must be a string",
    "quality": "must be an integer",
    "wait_time": "must be an integer",
    "wait_for": "must be a string",
    "full_page": "must be a boolean",
    "user_agent": "must be a string",
    "device_scale": "must be a number",
    "mobile": "must be a boolean",
    "landscape": "must be a boolean",
    "timeout": "must be an integer",
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


# --- Capture modes ---
class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)


class FullPage(BaseModel):
    model_config = ConfigDict(frozen=True)


class ClipRegion(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    def as_dict(self) -> Dict[str, float]:
        return self.model_dump()


CaptureMode = Union[Viewport, FullPage, ClipRegion]


class CaptureRequest(BaseModel):
    """A validated screenshot request.

    Built from query-string or JSON-body fields; ``headers`` and ``clip`` may
    be JSON text or native values. Optional numbers that are unset or out of
    range fall back to their defaults silently; url, format, width and height
    are rejected with a field-tagged ValidationError.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    format: str = DEFAULT_FORMAT
    quality: int = DEFAULT_QUALITY
    wait_time_ms: int = Field(0, alias="wait_time")
    wait_for: Optional[str] = None
    full_page: bool = False
    clip: Optional[ClipRegion] = None
    headers: Tuple[Tuple[str, str], ...] = ()
    user_agent: Optional[str] = None
    device_scale: float = DEFAULT_DEVICE_SCALE
    mobile: bool = False
    landscape: bool = False
    timeout_seconds: int = Field(DEFAULT_TIMEOUT, alias="timeout")

    # --- raw input ---
    @field_validator("url", "format", mode="before")
    @classmethod
    def _strip(cls, value):
        if _blank(value):
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("wait_for", "user_agent", mode="before")
    @classmethod
    def _optional_text(cls, value):
        if _blank(value):
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("width", "height", "quality", "wait_time_ms", "timeout_seconds", "device_scale", mode="before")
    @classmethod
    def _number(cls, value):
        # blank means unset; zero falls through to the defaults below
        if _blank(value):
            return 0
        if isinstance(value, bool):
            raise ValueError("booleans are not numbers")
        return value.strip() if isinstance(value, str) else value

    @field_validator("full_page", "mobile", "landscape", mode="before")
    @classmethod
    def _flag(cls, value):
        if _blank(value):
            return False
        return value.strip() if isinstance(value, str) else value

    @field_validator("headers", mode="before")
    @classmethod
    def _headers(cls, value):
        if _blank(value):
            return ()
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ParseError("invalid headers JSON")
            if value is None:
                return ()
        if isinstance(value, (tuple, list)) and all(isinstance(pair, (tuple, list)) and len(pair) == 2 for pair in value):
            value = dict(value)
        if not isinstance(value, dict):
            raise ParseError("invalid headers JSON")
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
            raise ParseError("invalid headers JSON")
        return tuple(value.items())

    @field_validator("clip", mode="before")
    @classmethod
    def _clip(cls, value):
        if _blank(value):
            return None
        if isinstance(value, ClipRegion):
            return value
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ParseError("invalid clip JSON")
            if value is None:
                return None
        if not isinstance(value, dict):
            raise ParseError("invalid clip JSON")
        for key in ("x", "y", "width", "height"):
            member = value.get(key, 0)
            if isinstance(member, bool) or not isinstance(member, (int, float)):
                raise ParseError("invalid clip JSON")
        return value

    # --- defaults ---
    @field_validator("width")
    @classmethod
    def _default_width(cls, value):
        return value if value > 0 else DEFAULT_WIDTH

    @field_validator("height")
    @classmethod
    def _default_height(cls, value):
        return value if value > 0 else DEFAULT_HEIGHT

    @field_validator("format")
    @classmethod
    def _canonical_format(cls, value):
        value = value.lower() or DEFAULT_FORMAT
        return FORMAT_ALIASES.get(value, value)

    @field_validator("quality")
    @classmethod
    def _default_quality(cls, value):
        return value if 1 <= value <= 100 else DEFAULT_QUALITY

    @field_validator("wait_time_ms")
    @classmethod
    def _no_negative_wait(cls, value):
        return max(value, 0)

    @field_validator("device_scale")
    @classmethod
    def _default_scale(cls, value):
        return value if value > 0 else DEFAULT_DEVICE_SCALE

    @field_validator("timeout_seconds")
    @classmethod
    def _clamp_timeout(cls, value):
        if value <= 0:
            return DEFAULT_TIMEOUT
        return min(value, MAX_TIMEOUT)

    # --- validation ---
    @model_validator(mode="after")
    def _check(self):
        if not self.url:
            raise ValidationError("url", "is required")
        if self.format not in FORMATS:
            raise ValidationError("format", "must be png, jpeg, or webp")
        _check_range("width", self.width, WIDTH_RANGE)
        _check_range("height", self.height, HEIGHT_RANGE)
        return self

    @property
    def mode(self) -> CaptureMode:
        if self.full_page:
            return FullPage()
        if self.clip is not None:
            return self.clip
        return Viewport()

    def extra_headers(self) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    def as_fields(self) -> Dict[str, Any]:
        """Render the request as a POST body that normalizes back to itself."""
        fields = self.model_dump(by_alias=True)
        fields["headers"] = dict(self.headers)
        return fields


def _check_range(name: str, value: int, bounds) -> None:
    low, high = bounds
    if value < low or value > high:
        raise ValidationError(name, f"must be between {low} and {high}")


def normalize(fields: Union[CaptureRequest, Mapping[str, Any]]) -> CaptureRequest:
    """Turn raw query/body fields into a validated CaptureRequest.

    Raises ParseError for malformed ``headers``/``clip`` values and
    ValidationError, tagged with the offending field, for everything else.
    An already normalized request is returned unchanged.
    """
    if isinstance(fields, CaptureRequest):
        return fields
    try:
        return CaptureRequest.model_validate(fields)
    except SchemaError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "request"
        if error["type"] == "missing":
            raise ValidationError(field, "is required") from None
        raise ValidationError(field, FIELD_MESSAGES.get(field, error["msg"])) from None
