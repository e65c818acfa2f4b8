"""
CORS middleware.

Allows any origin and lets browsers cache preflight results for a day.
"""

from aiohttp import web
from aiohttp.typedefs import Handler

CORS_MAX_AGE_SECONDS = 86400

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": str(CORS_MAX_AGE_SECONDS),
}


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Answer preflights directly; tag every other response."""
    if request.method == "OPTIONS":
        return web.Response(status=200, headers=PREFLIGHT_HEADERS)

    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response
