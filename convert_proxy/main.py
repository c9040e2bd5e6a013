"""
FastAPI conversion proxy
Single endpoint that converts YouTube links to audio/video download URLs
through the upstream conversion service
"""

import time
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from . import config
from .models import (
    ConversionRequest,
    FormatsResponse,
    HealthResponse,
    HealthStats,
)
from .converter import converter

# Logging configuration
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# App metadata
VERSION = "1.0.0"
start_time = time.time()

# Statistics tracking
stats = {
    "total_requests": 0,
    "active_requests": 0,
    "failed_requests": 0,
}


# Create FastAPI app
app = FastAPI(
    title="Conversion Proxy",
    description="Converts YouTube videos to MP3/MP4 download links via an upstream converter",
    version=VERSION,
)

# CORS configuration
CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


def _allowed_origin(origin: Optional[str]) -> Optional[str]:
    if "*" in config.ALLOWED_ORIGINS:
        return "*"
    if origin and origin in config.ALLOWED_ORIGINS:
        return origin
    return None


@app.middleware("http")
async def cors_headers(request: Request, call_next) -> Response:
    """
    Attach CORS headers to every response. Preflights are answered by the
    routes themselves (OPTIONS /api is always an empty 200).
    """
    response = await call_next(request)
    allow_origin = _allowed_origin(request.headers.get("origin"))
    if allow_origin:
        response.headers["Access-Control-Allow-Origin"] = allow_origin
        if allow_origin != "*":
            response.headers["Vary"] = "Origin"
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    return response


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "code": status_code, "message": message, **extra},
    )


async def _read_params(request: Request) -> Dict[str, Any]:
    """Query string for GET, JSON (or form) body for POST."""
    if request.method == "GET":
        return dict(request.query_params)

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        return dict(form)

    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def _convert(params: Dict[str, Any]) -> Response:
    try:
        conversion = ConversionRequest.model_validate(params)
    except PydanticValidationError as e:
        return _error(400, f"Invalid parameters: {e.errors()[0]['msg']}")

    if not conversion.url:
        return _error(400, "URL parameter is required")

    logger.info(f"📥 Conversion request: {conversion.url} (type={conversion.type}, format={conversion.format})")

    stats["active_requests"] += 1
    try:
        result = await converter.download(conversion.url, conversion.format, conversion.type)
    except Exception as e:
        stats["failed_requests"] += 1
        logger.exception(f"💥 Unexpected error during conversion: {e}")
        return _error(500, "Server error", error=str(e))
    finally:
        stats["active_requests"] -= 1

    stats["total_requests"] += 1
    if not result.status:
        stats["failed_requests"] += 1
        logger.error(f"❌ Conversion failed ({result.code}): {result.message}")
    else:
        logger.info(f"✅ Conversion ready: {result.result.title}")

    return JSONResponse(
        status_code=200 if result.status else result.code,
        content=result.to_response(),
    )


# ============================================================================
# API ENDPOINTS
# ============================================================================


@app.get("/api")
async def convert_get(request: Request) -> Response:
    """
    Convert a YouTube link (query parameters)

    **Parameters:** `url` (required), `format` (optional), `type` (video|audio, default video)
    """
    return await _convert(await _read_params(request))


@app.post("/api")
async def convert_post(request: Request) -> Response:
    """
    Convert a YouTube link (JSON body with the same fields as GET)
    """
    return await _convert(await _read_params(request))


@app.options("/api")
async def convert_preflight() -> Response:
    """CORS preflight"""
    return Response(status_code=200)


@app.get("/api/formats", response_model=FormatsResponse)
async def list_formats():
    """List accepted quality values per output type and the defaults used when none is given."""
    return FormatsResponse(
        formats={kind: list(values) for kind, values in config.FORMATS.items()},
        defaults=dict(config.DEFAULT_FORMATS),
    )


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring
    """
    return HealthResponse(
        status="healthy",
        version=VERSION,
        uptime_seconds=time.time() - start_time,
        stats=HealthStats(
            total_requests=stats["total_requests"],
            active_requests=stats["active_requests"],
            failed_requests=stats["failed_requests"],
        ),
    )


@app.get("/")
async def root():
    """Root endpoint with service info"""
    return {
        "service": "Conversion Proxy",
        "version": VERSION,
        "status": "running",
        "endpoints": {
            "convert": "/api",
            "formats": "/api/formats",
            "health": "/api/health",
        },
        "docs": "/docs",
    }


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Custom 404 handler"""
    return JSONResponse(
        status_code=404,
        content={"detail": "Endpoint not found. See /docs for API documentation."}
    )


@app.exception_handler(405)
async def method_not_allowed_handler(request, exc):
    """Custom 405 handler"""
    return _error(405, "Method not allowed")


@app.exception_handler(500)
async def server_error_handler(request, exc):
    """Custom 500 handler"""
    logger.exception("Internal server error")
    return _error(500, "Server error")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
