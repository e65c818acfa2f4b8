"""
Database models.

Exports table models and request parameter types for easy imports.
"""

from blockmeta.models.base import Base
from blockmeta.models.block import BlockHeight, MainnetBlock
from blockmeta.models.params import (
    CommitmentConfig,
    CommitmentLevel,
    RpcContextConfig,
    Slot,
    UnixTimestamp,
)

__all__ = [
    "Base",
    "BlockHeight",
    "CommitmentConfig",
    "CommitmentLevel",
    "MainnetBlock",
    "RpcContextConfig",
    "Slot",
    "UnixTimestamp",
]
