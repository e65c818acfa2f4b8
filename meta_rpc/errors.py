"""
JSON-RPC error types.

Standard JSON-RPC 2.0 errors plus the custom server errors this
service reports for storage lookups.
"""

from typing import Any

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

JSON_RPC_SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED = -32009
JSON_RPC_SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED = -32016
JSON_RPC_MYSQL_ERROR = -32017


class JsonRpcError(Exception):
    """Raised when an RPC request cannot be satisfied."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    def __repr__(self) -> str:
        return f"JsonRpcError(code={self.code}, message={self.message!r})"

    @classmethod
    def parse_error(cls) -> "JsonRpcError":
        return cls(PARSE_ERROR, "Parse error")

    @classmethod
    def invalid_request(cls) -> "JsonRpcError":
        return cls(INVALID_REQUEST, "Invalid request")

    @classmethod
    def method_not_found(cls) -> "JsonRpcError":
        return cls(METHOD_NOT_FOUND, "Method not found")

    @classmethod
    def invalid_params(cls, message: str) -> "JsonRpcError":
        return cls(INVALID_PARAMS, message)

    @classmethod
    def internal_error(cls) -> "JsonRpcError":
        return cls(INTERNAL_ERROR, "Internal error")


class RpcCustomError:
    """Builders for the service-specific server errors."""

    @staticmethod
    def long_term_storage_slot_skipped(slot: int) -> JsonRpcError:
        return JsonRpcError(
            JSON_RPC_SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED,
            f"Slot {slot} was skipped, or missing in long-term storage",
        )

    @staticmethod
    def min_context_slot_not_reached(context_slot: int) -> JsonRpcError:
        return JsonRpcError(
            JSON_RPC_SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED,
            "Minimum context slot has not been reached",
            data={"contextSlot": context_slot},
        )

    @staticmethod
    def mysql_error(message: str) -> JsonRpcError:
        return JsonRpcError(JSON_RPC_MYSQL_ERROR, message)
