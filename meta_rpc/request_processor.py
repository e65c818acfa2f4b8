"""
JSON-RPC request processor.

Validates parameters, applies commitment policy, queries the optional
metadata store and decides, per method, whether a storage failure
reaches the caller or is replaced by a default value.
"""

import os
from dataclasses import dataclass, field

from loguru import logger

from blockmeta.config.constants import (
    GENESIS_CREATION_TIME,
    MAX_GET_CONFIRMED_BLOCKS_RANGE,
    MAX_REQUEST_BODY_SIZE,
    U64_MAX,
)
from blockmeta.config.database import StoreConnectionParams
from blockmeta.models.params import (
    CommitmentConfig,
    RpcContextConfig,
    Slot,
    UnixTimestamp,
)
from blockmeta.services.meta_storage import BlockMetadataSource
from blockmeta.utils.datetime_utils import to_unix_timestamp
from blockmeta.utils.exceptions import BlockNotFoundError, MetaStorageError
from meta_rpc.errors import JsonRpcError, RpcCustomError


def _default_rpc_threads() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class JsonRpcConfig:
    """
    Service configuration, built once at startup.

    Attributes:
        store_params: MySQL connection parameters, storage disabled if None
        rpc_threads: Worker threads servicing requests
        rpc_niceness_adj: Niceness added to every worker thread
        full_api: Expose the full method set, not only the minimal one
        obsolete_v1_7_api: Accepted for compatibility, no methods attached
        max_request_body_size: Body size cap in bytes, 50 KiB if None
    """

    store_params: StoreConnectionParams | None = None
    rpc_threads: int = field(default_factory=_default_rpc_threads)
    rpc_niceness_adj: int = 0
    full_api: bool = False
    obsolete_v1_7_api: bool = False
    max_request_body_size: int | None = None

    @classmethod
    def default_for_storage_rpc(cls, **overrides) -> "JsonRpcConfig":
        return cls(**{"full_api": True, **overrides})

    @property
    def request_body_limit(self) -> int:
        if self.max_request_body_size is None:
            return MAX_REQUEST_BODY_SIZE
        return self.max_request_body_size


def check_is_at_least_confirmed(commitment: CommitmentConfig) -> None:
    if not commitment.is_at_least_confirmed():
        raise JsonRpcError.invalid_params(
            "Method does not support commitment below `confirmed`"
        )


class JsonRpcRequestProcessor:
    """
    One method per supported RPC call.

    Shared by every request; holds only immutable config and the store
    handle, so no locking is needed.
    """

    def __init__(
        self,
        config: JsonRpcConfig,
        metadata_storage: BlockMetadataSource | None = None,
    ) -> None:
        """
        Initialize processor.

        Args:
            config: Service configuration
            metadata_storage: Metadata store, None when storage is not configured
        """
        self.config = config
        self.metadata_storage = metadata_storage

    def genesis_creation_time(self) -> UnixTimestamp:
        return GENESIS_CREATION_TIME

    def _storage_error(self, error: MetaStorageError) -> JsonRpcError:
        logger.info(f"Block error: {error}")
        if isinstance(error, BlockNotFoundError):
            return RpcCustomError.long_term_storage_slot_skipped(error.slot)
        return RpcCustomError.mysql_error(str(error))

    async def get_blocks(
        self,
        start_slot: Slot,
        end_slot: Slot | None = None,
        config: RpcContextConfig | None = None,
    ) -> list[Slot]:
        """
        List slots with a block in ``[start_slot, end_slot]``.

        Without ``end_slot`` the widest allowed range is used.
        """
        config = config or RpcContextConfig()
        check_is_at_least_confirmed(config.commitment_or_default())

        if end_slot is None:
            end_slot = min(start_slot + MAX_GET_CONFIRMED_BLOCKS_RANGE, U64_MAX)

        if end_slot < start_slot:
            return []
        if end_slot - start_slot > MAX_GET_CONFIRMED_BLOCKS_RANGE:
            raise JsonRpcError.invalid_params(
                f"Slot range too large; max {MAX_GET_CONFIRMED_BLOCKS_RANGE}"
            )

        if self.metadata_storage is None:
            return []

        # one extra so the range stays inclusive of end_slot
        limit = end_slot - start_slot + 1
        try:
            blocks = await self.metadata_storage.get_confirmed_blocks(start_slot, limit)
        except MetaStorageError as e:
            logger.warning(f"get_blocks storage query failed: {e}")
            raise JsonRpcError.invalid_params(
                "MySQL query failed (maybe timeout due to too large range?)"
            ) from e

        return [slot for slot in blocks if slot <= end_slot]

    async def get_blocks_with_limit(
        self,
        start_slot: Slot,
        limit: int,
        commitment: CommitmentConfig | None = None,
    ) -> list[Slot]:
        """
        List up to ``limit`` slots with a block, starting at ``start_slot``.

        Storage failures yield an empty list rather than an error.
        """
        check_is_at_least_confirmed(commitment or CommitmentConfig())

        if limit > MAX_GET_CONFIRMED_BLOCKS_RANGE:
            raise JsonRpcError.invalid_params(
                f"Limit too large; max {MAX_GET_CONFIRMED_BLOCKS_RANGE}"
            )

        if self.metadata_storage is None:
            return []

        try:
            return await self.metadata_storage.get_confirmed_blocks(start_slot, limit)
        except MetaStorageError as e:
            logger.warning(f"get_blocks_with_limit storage query failed: {e}")
            return []

    async def get_block_time(self, slot: Slot) -> UnixTimestamp | None:
        if slot == 0:
            return self.genesis_creation_time()

        if self.metadata_storage is None:
            return None

        try:
            block_time = await self.metadata_storage.get_block_time(slot)
        except MetaStorageError as e:
            raise self._storage_error(e) from e
        return to_unix_timestamp(block_time)

    async def get_block_height(self, config: RpcContextConfig | None = None) -> int:
        if self.metadata_storage is None:
            return 0

        config = config or RpcContextConfig()
        try:
            if config.min_context_slot is not None:
                context_slot = await self.metadata_storage.get_slot() or 0
                if context_slot < config.min_context_slot:
                    raise RpcCustomError.min_context_slot_not_reached(context_slot)
            return await self.metadata_storage.get_block_height()
        except MetaStorageError as e:
            raise self._storage_error(e) from e

    async def get_first_available_block(self) -> Slot:
        if self.metadata_storage is None:
            return 0

        try:
            first_slot = await self.metadata_storage.get_first_available_block()
        except MetaStorageError as e:
            logger.warning(f"get_first_available_block storage query failed: {e}")
            return 0
        return first_slot or 0

    async def get_slot(self, config: RpcContextConfig | None = None) -> Slot:
        if self.metadata_storage is None:
            return 0

        try:
            last_slot = await self.metadata_storage.get_slot()
        except MetaStorageError as e:
            logger.warning(f"get_slot storage query failed: {e}")
            return 0
        return last_slot or 0
