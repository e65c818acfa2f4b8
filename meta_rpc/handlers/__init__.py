"""
RPC method sets.

``MinimalRpc`` is always registered; ``FullRpc`` only with the full API.
"""

from meta_rpc.handlers.full import FullRpc
from meta_rpc.handlers.minimal import MinimalRpc

__all__ = ["FullRpc", "MinimalRpc"]
