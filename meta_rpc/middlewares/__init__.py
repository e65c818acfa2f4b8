"""
HTTP middlewares.

Order matters: CORS is outermost so every response carries its headers.
"""

from meta_rpc.middlewares.cors import cors_middleware
from meta_rpc.middlewares.request import (
    create_body_limit_middleware,
    create_request_middleware,
)

__all__ = [
    "cors_middleware",
    "create_body_limit_middleware",
    "create_request_middleware",
]
