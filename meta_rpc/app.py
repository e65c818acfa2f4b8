"""
aiohttp application for the JSON-RPC endpoint.

Builds the method table (minimal set always, full set when enabled),
installs middlewares and exposes a single POST endpoint.
"""

import json

from aiohttp import web
from loguru import logger

from meta_rpc.dispatcher import MethodTable
from meta_rpc.errors import JsonRpcError
from meta_rpc.handlers import FullRpc, MinimalRpc
from meta_rpc.middlewares import (
    cors_middleware,
    create_body_limit_middleware,
    create_request_middleware,
)
from meta_rpc.middlewares.request import RestRoutes
from meta_rpc.request_processor import JsonRpcRequestProcessor

METHOD_TABLE_KEY = web.AppKey("method_table", MethodTable)


def build_method_table(
    processor: JsonRpcRequestProcessor, full_api: bool
) -> MethodTable:
    """
    Build the dispatch table.

    Args:
        processor: Request processor shared by all handlers
        full_api: Also register the full method set

    Returns:
        Method table
    """
    table = MethodTable()
    table.extend_with(MinimalRpc(processor).methods())
    if full_api:
        table.extend_with(FullRpc(processor).methods())
    return table


async def rpc_handler(request: web.Request) -> web.Response:
    """
    JSON-RPC endpoint.

    Returns:
        JSON response, or an empty 204 when only notifications were sent
    """
    table = request.app[METHOD_TABLE_KEY]

    body = await request.read()
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        logger.debug(f"Failed to parse request body: {e}")
        return web.json_response(
            {"jsonrpc": "2.0", "error": JsonRpcError.parse_error().to_dict(), "id": None}
        )

    result = await table.handle_payload(payload)
    if result is None:
        return web.Response(status=204)
    return web.json_response(result)


def create_app(
    processor: JsonRpcRequestProcessor,
    rest_routes: RestRoutes | None = None,
) -> web.Application:
    """
    Create the aiohttp application.

    Args:
        processor: Request processor
        rest_routes: Custom REST paths served by the request middleware

    Returns:
        Configured application
    """
    config = processor.config
    max_request_body_size = config.request_body_limit

    app = web.Application(
        client_max_size=max_request_body_size,
        middlewares=[
            cors_middleware,
            create_body_limit_middleware(max_request_body_size),
            create_request_middleware(rest_routes),
        ],
    )
    app[METHOD_TABLE_KEY] = build_method_table(processor, config.full_api)
    app.router.add_post("/", rpc_handler)

    logger.debug(f"Registered RPC methods: {', '.join(app[METHOD_TABLE_KEY].names())}")
    return app
