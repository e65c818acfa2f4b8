"""
Block metadata tables.

Both tables are keyed by slot and written by an external indexer; this
service only reads them.
"""

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from blockmeta.config.constants import BLOCK_HEIGHT_TABLE, BLOCK_TABLE
from blockmeta.models.base import Base
from blockmeta.models.types import BlockTimeType, SlotType


class MainnetBlock(Base):
    """
    One row per confirmed block.

    Used for slot listings, first/last slot and block time lookups.
    """

    __tablename__ = BLOCK_TABLE

    # Slot
    id: Mapped[int] = mapped_column(
        SlotType, primary_key=True, autoincrement=False
    )

    block_time: Mapped[datetime | None] = mapped_column(
        BlockTimeType, nullable=True
    )


class BlockHeight(Base):
    """Block height per slot."""

    __tablename__ = BLOCK_HEIGHT_TABLE

    id: Mapped[int] = mapped_column(
        SlotType, primary_key=True, autoincrement=False
    )
    block_height: Mapped[int | None] = mapped_column(
        SlotType, nullable=True
    )
