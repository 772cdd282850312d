# backend/errors.py


class ScreenshotError(Exception):
    pass


class ValidationError(ScreenshotError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ParseError(ScreenshotError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CaptureError(ScreenshotError):
    """Anything that went wrong while a browser session was running.

    Launch, navigation, deadline and capture failures all surface as this one
    type; the underlying exception is kept as ``__cause__`` for the logs.
    """

    def __init__(self, detail: str):
        super().__init__(f"screenshot failed: {detail}")
        self.detail = detail
