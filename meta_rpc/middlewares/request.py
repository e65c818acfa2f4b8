"""
Request middleware.

Intercepts the health check path and any custom REST paths; every
other request is forwarded unmodified.
"""

from collections.abc import Callable

from aiohttp import web
from aiohttp.typedefs import Handler, Middleware
from loguru import logger

HEALTH_PATH = "/health"

# path -> body producer
RestRoutes = dict[str, Callable[[], str]]


def health_check() -> str:
    response = "ok"
    logger.info(f"health check: {response}")
    return response


def process_rest(path: str, routes: RestRoutes) -> str | None:
    route = routes.get(path)
    if route is None:
        return None
    return route()


def create_request_middleware(routes: RestRoutes | None = None) -> Middleware:
    """
    Build the request middleware.

    Args:
        routes: Extra REST paths answered with 200 and the producer's text

    Returns:
        aiohttp middleware
    """
    custom_routes: RestRoutes = dict(routes or {})

    @web.middleware
    async def request_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        logger.trace(f"request uri: {request.rel_url}")

        result = process_rest(request.path, custom_routes)
        if result is not None:
            return web.Response(status=200, text=result)
        if request.path == HEALTH_PATH:
            return web.Response(status=200, text=health_check())
        return await handler(request)

    return request_middleware


def create_body_limit_middleware(max_request_body_size: int) -> Middleware:
    """Reject bodies whose declared length exceeds the limit before reading them."""

    @web.middleware
    async def body_limit_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        length = request.content_length
        if length is not None and length > max_request_body_size:
            logger.warning(
                f"Request body too large: {length} > {max_request_body_size}"
            )
            raise web.HTTPRequestEntityTooLarge(
                max_size=max_request_body_size, actual_size=length
            )
        return await handler(request)

    return body_limit_middleware
