"""
Metadata store.

Translates slot-domain questions (first/last slot, confirmed blocks,
block time, block height) into storage client calls and classifies
failures into ``MetaStorageError`` subclasses.
"""

from collections.abc import Awaitable
from concurrent.futures import BrokenExecutor
from datetime import datetime
from typing import Any, Protocol, TypeVar

from loguru import logger
from sqlalchemy.engine import Engine

from blockmeta.config.constants import BLOCK_HEIGHT_TABLE, BLOCK_TABLE
from blockmeta.config.database import StoreConnectionParams, create_storage_engine
from blockmeta.models.params import Slot
from blockmeta.repositories.base import StorageClient
from blockmeta.utils.datetime_utils import assume_utc
from blockmeta.utils.exceptions import (
    BlockNotFoundError,
    MetaStorageError,
    RowNotFoundError,
    StorageBackendError,
    StorageClientError,
    TaskJoinError,
    from_client_error,
)

T = TypeVar("T")


def slot_to_key(slot: Slot) -> str:
    return str(slot)


def key_to_slot(key: Any) -> Slot | None:
    """
    Parse a stored key back into a slot.

    Returns:
        The slot, or None if the key is not a non-negative integer
    """
    try:
        slot = int(key)
    except (TypeError, ValueError) as e:
        # table data is probably corrupt
        logger.warning(f"Failed to parse object key as a slot: {key}: {e}")
        return None
    if slot < 0:
        logger.warning(f"Failed to parse object key as a slot: {key}: negative")
        return None
    return slot


class BlockMetadataSource(Protocol):
    """Capabilities the request processor needs from a metadata backend."""

    async def get_first_available_block(self) -> Slot | None: ...

    async def get_slot(self) -> Slot | None: ...

    async def get_confirmed_blocks(self, start_slot: Slot, limit: int) -> list[Slot]: ...

    async def get_block_time(self, slot: Slot) -> datetime: ...

    async def get_block_height(self) -> int: ...


class MetaStorage:
    """
    MySQL-backed block metadata store.

    One instance is shared by all concurrent requests; the underlying
    engine pool is thread-safe.
    """

    def __init__(self, client: StorageClient) -> None:
        """
        Initialize store.

        Args:
            client: Storage client over the metadata database
        """
        self.client = client

    @classmethod
    async def connect(cls, params: StoreConnectionParams) -> "MetaStorage":
        """
        Build the store and verify the backend is reachable.

        Args:
            params: Connection parameters

        Returns:
            Connected store

        Raises:
            MetaStorageError: Backend unreachable or misconfigured
        """
        logger.info("Creating MySQL connection")
        try:
            engine = create_storage_engine(params)
        except Exception as e:
            raise StorageBackendError(e) from e

        storage = cls.from_engine(engine, timeout=params.timeout)
        try:
            await storage._call(storage.client.ping())
        except MetaStorageError:
            storage.close()
            raise
        return storage

    @classmethod
    def from_engine(cls, engine: Engine, timeout: float | None = None) -> "MetaStorage":
        return cls(StorageClient(engine, timeout=timeout))

    async def _call(self, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except RowNotFoundError:
            raise
        except StorageClientError as e:
            raise from_client_error(e) from e
        except (BrokenExecutor, RuntimeError) as e:
            raise TaskJoinError(e) from e

    async def get_first_available_block(self) -> Slot | None:
        """Return the lowest slot that contains a block."""
        logger.debug("MetaStorage::get_first_available_block request received")

        first_block = await self._call(self.client.get_first_key(BLOCK_TABLE, "id"))
        return None if first_block is None else key_to_slot(first_block)

    async def get_slot(self) -> Slot | None:
        """Return the highest slot that contains a block."""
        logger.debug("MetaStorage::get_last_available_block request received")

        last_block = await self._call(self.client.get_last_key(BLOCK_TABLE, "id"))
        return None if last_block is None else key_to_slot(last_block)

    async def get_confirmed_blocks(self, start_slot: Slot, limit: int) -> list[Slot]:
        """
        Fetch the slots at or after ``start_slot`` that contain a block.

        Args:
            start_slot: Slot to start the search from (inclusive)
            limit: Stop after this many slots have been found

        Returns:
            Ascending slots
        """
        logger.debug(
            f"MetaStorage::get_confirmed_blocks request received: "
            f"start_slot = {start_slot}, limit = {limit}"
        )

        try:
            keys = await self._call(
                self.client.get_row_keys(BLOCK_TABLE, start_slot, None, limit)
            )
        except RowNotFoundError as e:
            raise StorageBackendError(e) from e

        slots = []
        for key in keys:
            slot = key_to_slot(key)
            if slot is not None:
                slots.append(slot)
        return slots

    async def get_block_time(self, slot: Slot) -> datetime:
        """
        Get the UTC time of the block at ``slot``.

        Raises:
            BlockNotFoundError: No block row for the slot
        """
        logger.debug(f"MetaStorage::get_block_time request received: slot = {slot}")

        try:
            block_time = await self._call(
                self.client.get_single_value(BLOCK_TABLE, "block_time", "id", slot)
            )
        except RowNotFoundError:
            raise BlockNotFoundError(slot) from None

        if not isinstance(block_time, datetime):
            logger.warning(f"Unexpected block_time value for slot {slot}: {block_time!r}")
            raise BlockNotFoundError(slot)
        return assume_utc(block_time)

    async def get_block_height(self) -> int:
        """
        Get the height of the latest known block.

        Raises:
            BlockNotFoundError: No blocks, or the latest one has no height
        """
        logger.debug(
            "MetaStorage::get_block_height request received to fetch the latest block height"
        )

        latest_block_id = await self._call(
            self.client.get_last_key(BLOCK_HEIGHT_TABLE, "id")
        )
        if latest_block_id is None:
            raise BlockNotFoundError(0)

        logger.debug(f"Latest block ID fetched: {latest_block_id}")

        try:
            block_height = await self._call(
                self.client.get_single_value(
                    BLOCK_HEIGHT_TABLE, "block_height", "id", latest_block_id
                )
            )
        except RowNotFoundError:
            raise BlockNotFoundError(latest_block_id) from None

        logger.debug(f"Latest block Height fetched: {block_height}")
        return int(block_height)

    def close(self) -> None:
        """Release pooled connections."""
        self.client.dispose()
        logger.info("MySQL metadata storage closed")
