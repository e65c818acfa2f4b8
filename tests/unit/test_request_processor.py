"""
Tests for the JSON-RPC request processor.

Covers:
- Commitment gate on block listings
- Range and limit caps
- Storage-absent defaults
- Which storage failures reach the caller and which become defaults
- min_context_slot enforcement on getBlockHeight
"""

from datetime import UTC, datetime

import pytest

from blockmeta.config.constants import MAX_GET_CONFIRMED_BLOCKS_RANGE, U64_MAX
from blockmeta.models.params import CommitmentConfig, CommitmentLevel, RpcContextConfig
from blockmeta.utils.exceptions import (
    BackendTimeoutError,
    BlockNotFoundError,
    StorageBackendError,
)
from meta_rpc.errors import (
    INVALID_PARAMS,
    JSON_RPC_MYSQL_ERROR,
    JSON_RPC_SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED,
    JSON_RPC_SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED,
    JsonRpcError,
)
from meta_rpc.request_processor import JsonRpcConfig, JsonRpcRequestProcessor


class TestJsonRpcConfig:
    """Test service configuration defaults."""

    def test_storage_rpc_defaults(self):
        config = JsonRpcConfig.default_for_storage_rpc()

        assert config.full_api is True
        assert config.store_params is None
        assert config.rpc_threads >= 1
        assert config.request_body_limit == 50 * 1024

    def test_plain_default_is_minimal(self):
        assert JsonRpcConfig().full_api is False

    def test_body_limit_override(self):
        config = JsonRpcConfig(max_request_body_size=1024)

        assert config.request_body_limit == 1024


class TestGetBlocks:
    """Test getBlocks."""

    @pytest.mark.asyncio
    async def test_inclusive_range(self, processor, mock_storage):
        """Only slots within [start, end] are returned."""
        result = await processor.get_blocks(100, 105)

        assert result == [100, 101, 105]
        mock_storage.get_confirmed_blocks.assert_awaited_once_with(100, 6)

    @pytest.mark.asyncio
    async def test_end_before_start(self, processor, mock_storage):
        """An inverted range is empty without a storage query."""
        assert await processor.get_blocks(110, 100) == []
        mock_storage.get_confirmed_blocks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_slot_range(self, processor, mock_storage):
        mock_storage.get_confirmed_blocks.return_value = [105]

        assert await processor.get_blocks(105, 105) == [105]
        mock_storage.get_confirmed_blocks.assert_awaited_once_with(105, 1)

    @pytest.mark.asyncio
    async def test_range_at_cap(self, processor, mock_storage):
        """A range spanning exactly the cap is accepted."""
        await processor.get_blocks(0, MAX_GET_CONFIRMED_BLOCKS_RANGE)

        mock_storage.get_confirmed_blocks.assert_awaited_once_with(
            0, MAX_GET_CONFIRMED_BLOCKS_RANGE + 1
        )

    @pytest.mark.asyncio
    async def test_range_too_large(self, processor, mock_storage):
        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_blocks(0, MAX_GET_CONFIRMED_BLOCKS_RANGE + 1)

        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.message == "Slot range too large; max 500000"
        mock_storage.get_confirmed_blocks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_absent_end_uses_widest_range(self, processor, mock_storage):
        await processor.get_blocks(100)

        mock_storage.get_confirmed_blocks.assert_awaited_once_with(
            100, MAX_GET_CONFIRMED_BLOCKS_RANGE + 1
        )

    @pytest.mark.asyncio
    async def test_absent_end_near_max_slot(self, processor, mock_storage):
        """The implicit end never passes the largest slot."""
        start = U64_MAX - 10
        mock_storage.get_confirmed_blocks.return_value = []

        await processor.get_blocks(start)

        mock_storage.get_confirmed_blocks.assert_awaited_once_with(start, 11)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [CommitmentLevel.CONFIRMED, CommitmentLevel.FINALIZED])
    async def test_commitment_accepted(self, processor, level):
        config = RpcContextConfig(commitment=level)

        assert await processor.get_blocks(100, 110, config) == [100, 101, 105, 110]

    @pytest.mark.asyncio
    async def test_processed_commitment_rejected(self, processor, mock_storage):
        config = RpcContextConfig(commitment=CommitmentLevel.PROCESSED)

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_blocks(100, 110, config)

        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.message == (
            "Method does not support commitment below `confirmed`"
        )
        mock_storage.get_confirmed_blocks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_absent(self, storageless_processor):
        assert await storageless_processor.get_blocks(100, 110) == []

    @pytest.mark.asyncio
    async def test_storage_failure_is_invalid_params(self, processor, mock_storage):
        """Listing failures reach the caller."""
        mock_storage.get_confirmed_blocks.side_effect = BackendTimeoutError()

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_blocks(100, 110)

        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.message == (
            "MySQL query failed (maybe timeout due to too large range?)"
        )


class TestGetBlocksWithLimit:
    """Test getBlocksWithLimit."""

    @pytest.mark.asyncio
    async def test_returns_store_result(self, processor, mock_storage):
        mock_storage.get_confirmed_blocks.return_value = [100, 101, 105]

        assert await processor.get_blocks_with_limit(100, 3) == [100, 101, 105]
        mock_storage.get_confirmed_blocks.assert_awaited_once_with(100, 3)

    @pytest.mark.asyncio
    async def test_limit_at_cap(self, processor, mock_storage):
        await processor.get_blocks_with_limit(0, MAX_GET_CONFIRMED_BLOCKS_RANGE)

        mock_storage.get_confirmed_blocks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_limit_too_large(self, processor):
        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_blocks_with_limit(0, MAX_GET_CONFIRMED_BLOCKS_RANGE + 1)

        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.message == "Limit too large; max 500000"

    @pytest.mark.asyncio
    async def test_processed_commitment_rejected(self, processor):
        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_blocks_with_limit(100, 3, CommitmentConfig.processed())

        assert exc_info.value.code == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_storage_failure_is_empty(self, processor, mock_storage):
        """
        Listing failures are swallowed here, unlike getBlocks.

        getBlocks reports the same failure as invalid params.
        """
        mock_storage.get_confirmed_blocks.side_effect = BackendTimeoutError()

        assert await processor.get_blocks_with_limit(100, 3) == []

    @pytest.mark.asyncio
    async def test_storage_absent(self, storageless_processor):
        assert await storageless_processor.get_blocks_with_limit(100, 3) == []


class TestGetBlockTime:
    """Test getBlockTime."""

    @pytest.mark.asyncio
    async def test_genesis(self, processor, mock_storage):
        """Slot 0 never queries storage."""
        assert await processor.get_block_time(0) == 0
        mock_storage.get_block_time.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unix_seconds(self, processor, mock_storage):
        """Sub-second part is floored away."""
        mock_storage.get_block_time.return_value = datetime(
            2024, 1, 1, 0, 0, 45, 999999, tzinfo=UTC
        )

        assert await processor.get_block_time(105) == 1704067245

    @pytest.mark.asyncio
    async def test_skipped_slot(self, processor, mock_storage):
        mock_storage.get_block_time.side_effect = BlockNotFoundError(102)

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_block_time(102)

        assert exc_info.value.code == JSON_RPC_SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED
        assert exc_info.value.message == (
            "Slot 102 was skipped, or missing in long-term storage"
        )

    @pytest.mark.asyncio
    async def test_backend_failure(self, processor, mock_storage):
        mock_storage.get_block_time.side_effect = StorageBackendError(Exception("gone"))

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_block_time(105)

        assert exc_info.value.code == JSON_RPC_MYSQL_ERROR
        assert exc_info.value.message == "Storage Error: gone"

    @pytest.mark.asyncio
    async def test_storage_absent(self, storageless_processor):
        assert await storageless_processor.get_block_time(105) is None
        assert await storageless_processor.get_block_time(0) == 0


class TestGetBlockHeight:
    """Test getBlockHeight."""

    @pytest.mark.asyncio
    async def test_latest_height(self, processor):
        assert await processor.get_block_height() == 98

    @pytest.mark.asyncio
    async def test_storage_absent(self, storageless_processor):
        assert await storageless_processor.get_block_height() == 0

    @pytest.mark.asyncio
    async def test_missing_height(self, processor, mock_storage):
        mock_storage.get_block_height.side_effect = BlockNotFoundError(110)

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_block_height()

        assert exc_info.value.code == JSON_RPC_SERVER_ERROR_LONG_TERM_STORAGE_SLOT_SKIPPED
        assert "Slot 110" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_backend_failure(self, processor, mock_storage):
        mock_storage.get_block_height.side_effect = BackendTimeoutError()

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_block_height()

        assert exc_info.value.code == JSON_RPC_MYSQL_ERROR

    @pytest.mark.asyncio
    async def test_min_context_slot_reached(self, processor):
        config = RpcContextConfig(min_context_slot=110)

        assert await processor.get_block_height(config) == 98

    @pytest.mark.asyncio
    async def test_min_context_slot_not_reached(self, processor, mock_storage):
        config = RpcContextConfig(min_context_slot=111)

        with pytest.raises(JsonRpcError) as exc_info:
            await processor.get_block_height(config)

        assert exc_info.value.code == JSON_RPC_SERVER_ERROR_MIN_CONTEXT_SLOT_NOT_REACHED
        assert exc_info.value.data == {"contextSlot": 110}
        mock_storage.get_block_height.assert_not_awaited()


class TestSlotQueries:
    """Test getSlot and getFirstAvailableBlock, which never fail."""

    @pytest.mark.asyncio
    async def test_values(self, processor):
        assert await processor.get_slot() == 110
        assert await processor.get_first_available_block() == 100

    @pytest.mark.asyncio
    async def test_empty_store(self, processor, mock_storage):
        mock_storage.get_slot.return_value = None
        mock_storage.get_first_available_block.return_value = None

        assert await processor.get_slot() == 0
        assert await processor.get_first_available_block() == 0

    @pytest.mark.asyncio
    async def test_failures_default_to_zero(self, processor, mock_storage):
        mock_storage.get_slot.side_effect = BackendTimeoutError()
        mock_storage.get_first_available_block.side_effect = StorageBackendError(
            Exception("gone")
        )

        assert await processor.get_slot() == 0
        assert await processor.get_first_available_block() == 0

    @pytest.mark.asyncio
    async def test_storage_absent(self, storageless_processor):
        assert await storageless_processor.get_slot() == 0
        assert await storageless_processor.get_first_available_block() == 0


class TestProcessorWithStore:
    """Processor over the seeded SQLite store."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, rpc_config, meta_storage):
        processor = JsonRpcRequestProcessor(rpc_config, meta_storage)

        assert await processor.get_blocks(100, 105) == [100, 101, 105]
        assert await processor.get_blocks(102, 104) == []
        assert await processor.get_blocks_with_limit(101, 2) == [101, 105]
        assert await processor.get_block_time(100) == 1704067240
        assert await processor.get_slot() == 110
        assert await processor.get_first_available_block() == 100
        assert await processor.get_block_height() == 98
