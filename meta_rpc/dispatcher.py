"""
JSON-RPC 2.0 dispatch.

Name-keyed method table built once at startup, plus request/batch
envelope handling.
"""

import asyncio
import inspect
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from meta_rpc.errors import JsonRpcError

Handler = Callable[..., Any]


def format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as a single invalid-params message."""
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        details.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "Invalid params: " + "; ".join(details)


def _response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


def _error_response(request_id: Any, error: JsonRpcError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": error.to_dict(), "id": request_id}


class MethodTable:
    """
    Method name to handler mapping.

    Handlers take positional parameters and return either a value or an
    awaitable; parameter validation errors become ``-32602``.
    """

    def __init__(self) -> None:
        self._methods: dict[str, Handler] = {}

    def extend_with(self, methods: Mapping[str, Handler]) -> None:
        self._methods.update(methods)

    def names(self) -> list[str]:
        return sorted(self._methods)

    def __contains__(self, method: str) -> bool:
        return method in self._methods

    async def call(self, method: str, params: Any = None) -> Any:
        """
        Invoke a method with positional parameters.

        Raises:
            JsonRpcError: Unknown method or invalid parameters
        """
        handler = self._methods.get(method)
        if handler is None:
            raise JsonRpcError.method_not_found()

        if params is None:
            args: list[Any] = []
        elif isinstance(params, list):
            args = params
        else:
            raise JsonRpcError.invalid_params(
                "Invalid params: expected a positional parameter array"
            )

        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                result = await result
        except ValidationError as e:
            raise JsonRpcError.invalid_params(format_validation_error(e)) from e
        return result

    async def handle_request(self, request: Any) -> dict[str, Any] | None:
        """
        Process one request object.

        Returns:
            Response object, or None for a notification
        """
        if not isinstance(request, dict):
            return _error_response(None, JsonRpcError.invalid_request())

        request_id = request.get("id")
        if (
            request.get("jsonrpc") != "2.0"
            or not isinstance(request.get("method"), str)
            or not isinstance(request_id, str | int | float | None)
            or isinstance(request_id, bool)
        ):
            return _error_response(None, JsonRpcError.invalid_request())

        is_notification = "id" not in request
        method = request["method"]
        try:
            result = await self.call(method, request.get("params"))
        except JsonRpcError as e:
            response = _error_response(request_id, e)
        except Exception as e:
            logger.exception(f"Unhandled error in {method}: {e}")
            response = _error_response(request_id, JsonRpcError.internal_error())
        else:
            response = _response(request_id, result)

        return None if is_notification else response

    async def handle_payload(self, payload: Any) -> Any | None:
        """
        Process a single request or a batch.

        Returns:
            Response object, list of responses, or None if nothing is owed
        """
        if isinstance(payload, list):
            if not payload:
                return _error_response(None, JsonRpcError.invalid_request())
            responses = await asyncio.gather(
                *(self.handle_request(item) for item in payload)
            )
            return [r for r in responses if r is not None] or None
        return await self.handle_request(payload)
