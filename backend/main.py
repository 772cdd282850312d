# backend/main.py
import logging

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from backend import config
from backend.browser import take_screenshot
from backend.errors import CaptureError, ParseError, ValidationError
from backend.request import normalize
from backend.rewrite import RewriteRule

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

RULE = RewriteRule.from_config()

app = FastAPI(title="Screenshot service")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.exception_handler(RequestValidationError)
async def bad_body(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "request body must be a JSON object"}, status_code=400)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/screenshot")
async def screenshot_get(request: Request):
    return await process_screenshot(dict(request.query_params))


@app.post("/screenshot")
async def screenshot_post(payload: dict = Body(...)):
    return await process_screenshot(payload)


async def process_screenshot(fields: dict):
    try:
        req = normalize(fields)
    except (ValidationError, ParseError) as e:
        logger.info("Rejected screenshot request %r: %s", fields.get("url"), e)
        return JSONResponse({"error": str(e)}, status_code=400)

    try:
        data, content_type = await take_screenshot(req, RULE)
    except CaptureError as e:
        logger.error("Screenshot failed for URL: %s, Error: %s, Req: %r", req.url, e, req,
                     exc_info=e.__cause__ or e)
        return JSONResponse({"error": str(e)}, status_code=500)

    return Response(
        content=data,
        media_type=content_type,
        headers={
            "Cache-Control": "public, max-age=86400",
            "Content-Disposition": f'inline; filename="screenshot.{req.format}"',
        },
    )


def run():
    import uvicorn

    logger.info("Server starting on port %s", config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
