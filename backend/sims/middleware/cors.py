"""
CORS handling for the browser clients of the sync endpoint.
"""

from typing import Dict

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

from sims.core.config import Settings


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose accepted preflights answer 200 with an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response

        headers = {
            key: value for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def cors_headers(settings: Settings) -> Dict[str, str]:
    """CORS headers for OPTIONS requests that are not browser preflights."""
    headers = {
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": ", ".join(settings.CORS_ALLOW_HEADERS),
    }
    if "*" in settings.CORS_ALLOW_ORIGINS:
        headers["Access-Control-Allow-Origin"] = "*"
    return headers
