"""
CORS handling for the mobile client.

Preflight requests on any path are answered with 204 directly, and every
other response is stamped with the configured allowed origin.
"""

from fastapi import FastAPI, Request
from fastapi.responses import Response
from finchat.config.settings import settings


def preflight_headers(allow_origin: str) -> dict:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": "authorization, content-type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


def configure_cors(app: FastAPI, allow_origin: str = None) -> None:
    """
    Apply CORS handling to the app.

    Args:
        app: FastAPI application instance
        allow_origin: Value for Access-Control-Allow-Origin (defaults to settings)
    """
    allow_origin = allow_origin or settings.CORS_ORIGIN

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=preflight_headers(allow_origin))

        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", allow_origin)
        return response
