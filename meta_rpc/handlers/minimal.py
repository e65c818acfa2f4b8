"""
Minimal RPC method set.

Always exposed: health, current slot, block height and version.
"""

import zlib
from typing import Any

from loguru import logger
from pydantic import validate_call

from blockmeta import __version__
from blockmeta.models.params import RpcContextConfig, Slot
from meta_rpc.request_processor import JsonRpcRequestProcessor


def version_info() -> dict[str, Any]:
    """Version payload returned by getVersion."""
    return {
        "solana-core": __version__,
        "feature-set": zlib.crc32(__version__.encode()),
    }


class MinimalRpc:
    """Thin adapters from wire parameters to the request processor."""

    def __init__(self, processor: JsonRpcRequestProcessor) -> None:
        self.processor = processor

    def methods(self) -> dict[str, Any]:
        return {
            "getHealth": self.get_health,
            "getSlot": self.get_slot,
            "getBlockHeight": self.get_block_height,
            "getVersion": self.get_version,
        }

    @validate_call
    def get_health(self) -> str:
        return "ok"

    @validate_call
    async def get_slot(self, config: RpcContextConfig | None = None) -> Slot:
        logger.debug("get_slot rpc request received")
        return await self.processor.get_slot(config or RpcContextConfig())

    @validate_call
    async def get_block_height(self, config: RpcContextConfig | None = None) -> int:
        logger.debug("get_block_height rpc request received")
        return await self.processor.get_block_height(config or RpcContextConfig())

    @validate_call
    def get_version(self) -> dict[str, Any]:
        logger.debug("get_version rpc request received")
        return version_info()
