"""
Full RPC method set.

Block time, block range listings and first available block. Exposed
only when the service runs with the full API enabled.
"""

from typing import Any

from loguru import logger
from pydantic import validate_call

from blockmeta.models.params import (
    CommitmentConfig,
    EndSlotOrConfig,
    Limit,
    RpcContextConfig,
    Slot,
    UnixTimestamp,
    unzip_blocks_config,
)
from meta_rpc.request_processor import JsonRpcRequestProcessor


class FullRpc:
    """Thin adapters from wire parameters to the request processor."""

    def __init__(self, processor: JsonRpcRequestProcessor) -> None:
        self.processor = processor

    def methods(self) -> dict[str, Any]:
        return {
            "getBlockTime": self.get_block_time,
            "getBlocks": self.get_blocks,
            "getBlocksWithLimit": self.get_blocks_with_limit,
            "getFirstAvailableBlock": self.get_first_available_block,
        }

    @validate_call
    async def get_blocks(
        self,
        start_slot: Slot,
        wrapper: EndSlotOrConfig | None = None,
        config: RpcContextConfig | None = None,
    ) -> list[Slot]:
        end_slot, maybe_config = unzip_blocks_config(wrapper)
        logger.debug(f"get_blocks rpc request received: {start_slot}-{end_slot}")
        return await self.processor.get_blocks(
            start_slot, end_slot, config or maybe_config
        )

    @validate_call
    async def get_blocks_with_limit(
        self,
        start_slot: Slot,
        limit: Limit,
        commitment: CommitmentConfig | None = None,
    ) -> list[Slot]:
        logger.debug(
            f"get_blocks_with_limit rpc request received: {start_slot}-{limit}"
        )
        return await self.processor.get_blocks_with_limit(start_slot, limit, commitment)

    @validate_call
    async def get_block_time(self, slot: Slot) -> UnixTimestamp | None:
        return await self.processor.get_block_time(slot)

    @validate_call
    async def get_first_available_block(self) -> Slot:
        logger.debug("get_first_available_block rpc request received")
        return await self.processor.get_first_available_block()
