"""FastMCP server: MCP tools plus the JSON HTTP routes used by the web UI."""

import logging

from fastmcp import FastMCP
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse

from tubescout.config import settings
from tubescout.ratelimit import SlidingWindowRateLimiter
from tubescout.service import InvalidRequestError, TubeScoutService
from tubescout.storage.sqlite import SQLiteAnalysisRepository

logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"

mcp = FastMCP(
    name="tubescout",
    instructions=(
        "tubescout extracts YouTube metadata, statistics and transcripts for "
        "competitor research. Use extract_video for one video, analyze_videos "
        "for a list of videos and list_channel_videos for a whole channel."
    ),
)

_service: TubeScoutService | None = None

extract_limiter = SlidingWindowRateLimiter(
    max_requests=settings.extract_rate_limit,
    window_seconds=settings.rate_limit_window,
    max_keys=settings.rate_limit_max_callers,
)
history_limiter = SlidingWindowRateLimiter(
    max_requests=settings.history_rate_limit,
    window_seconds=settings.rate_limit_window,
    max_keys=settings.rate_limit_max_callers,
)


def _get_service() -> TubeScoutService:
    """Lazy-initialise the service singleton with default dependencies."""
    global _service
    if _service is None:
        settings.ensure_dirs()
        _service = TubeScoutService(repository=SQLiteAnalysisRepository())
    return _service


# ----------------------------------------------------------------------
# MCP tools
# ----------------------------------------------------------------------

@mcp.tool(annotations={"readOnlyHint": True})
def extract_video(url: str, options: dict | None = None) -> dict:
    """Extract metadata and transcript for one YouTube video.

    Args:
        url: YouTube video URL (watch, youtu.be, shorts, embed).
        options: Optional flags title/description/thumbnail/transcript/metadata;
                 each is included unless set to false.
    """
    body, _ = _get_service().extract({"type": "video", "url": url, "options": options})
    return body


@mcp.tool(annotations={"readOnlyHint": True})
def analyze_videos(urls: list[str], options: dict | None = None) -> dict:
    """Analyze several videos: stats, views per day, engagement, transcript.

    Args:
        urls: YouTube video URLs, processed one at a time.
        options: Optional field-selection flags (see extract_video).
    """
    body, _ = _get_service().extract({"type": "bulk_analyze", "urls": urls, "options": options})
    return body


@mcp.tool(annotations={"readOnlyHint": True})
def list_channel_videos(url: str) -> dict:
    """List every long-form upload of a channel (needs a Data API key).

    Args:
        url: Channel URL (youtube.com/channel/UC..., /@handle, /user/, /c/).
    """
    body, _ = _get_service().extract({"type": "channel_list", "url": url})
    return body


# ----------------------------------------------------------------------
# HTTP routes
# ----------------------------------------------------------------------

def _caller_key(request: Request) -> str:
    """Identity for rate limiting: the session user if known, else the address."""
    user_id = request.headers.get(USER_HEADER)
    if user_id:
        return f"user:{user_id}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def _rate_limited(limiter: SlidingWindowRateLimiter, request: Request) -> JSONResponse | None:
    decision = limiter.take(_caller_key(request))
    if decision.allowed:
        return None
    return JSONResponse(
        {"error": "Rate limit exceeded"},
        status_code=429,
        headers={"Retry-After": str(decision.retry_after_seconds)},
    )


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


@mcp.custom_route("/api/extract", methods=["POST"])
async def extract_route(request: Request) -> JSONResponse:
    """POST {url, type, options, urls} -> {data} | {data, meta} | {error}."""
    limited = _rate_limited(extract_limiter, request)
    if limited is not None:
        return limited

    payload = await _json_body(request)
    try:
        body, status = await run_in_threadpool(_get_service().extract, payload)
    except Exception as e:
        logger.exception("Extraction error")
        return JSONResponse({"error": str(e) or "Internal Server Error"}, status_code=500)
    return JSONResponse(body, status_code=status)


@mcp.custom_route("/api/history", methods=["GET", "POST"])
async def history_route(request: Request) -> JSONResponse:
    """GET ?type= lists the caller's analyses; POST saves one."""
    user_id = request.headers.get(USER_HEADER)
    if not user_id:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    svc = _get_service()
    if request.method == "GET":
        analyses = await run_in_threadpool(
            svc.list_history, user_id, request.query_params.get("type"),
        )
        return JSONResponse({"data": [a.model_dump(mode="json") for a in analyses]})

    limited = _rate_limited(history_limiter, request)
    if limited is not None:
        return limited

    payload = await _json_body(request)
    try:
        saved = await run_in_threadpool(svc.save_analysis, user_id, payload)
    except InvalidRequestError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return JSONResponse({"data": saved.model_dump(mode="json")})

