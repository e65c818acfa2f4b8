"""Pydantic models for RPC request parameters.

Commitment and context configs accepted by the block metadata methods.
Field names are camelCase on the wire.
"""

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from blockmeta.config.constants import U64_MAX

# Block index; unsigned 64-bit
Slot = Annotated[int, Field(strict=True, ge=0, le=U64_MAX)]

# Row count requested by a caller
Limit = Annotated[int, Field(strict=True, ge=0, le=U64_MAX)]

# Seconds since the unix epoch
UnixTimestamp = int


class CommitmentLevel(StrEnum):
    """How finalized a block must be before it is reported."""

    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


class CommitmentConfig(BaseModel):
    """Caller's required confidence level.

    Defaults to ``finalized`` when the caller does not send one.
    """

    model_config = ConfigDict(frozen=True)

    commitment: CommitmentLevel = Field(
        default=CommitmentLevel.FINALIZED, description="Commitment level"
    )

    @classmethod
    def processed(cls) -> "CommitmentConfig":
        return cls(commitment=CommitmentLevel.PROCESSED)

    @classmethod
    def confirmed(cls) -> "CommitmentConfig":
        return cls(commitment=CommitmentLevel.CONFIRMED)

    @classmethod
    def finalized(cls) -> "CommitmentConfig":
        return cls(commitment=CommitmentLevel.FINALIZED)

    def is_at_least_confirmed(self) -> bool:
        return self.commitment in (
            CommitmentLevel.CONFIRMED,
            CommitmentLevel.FINALIZED,
        )


class RpcContextConfig(BaseModel):
    """Per-request commitment and minimum context slot.

    The commitment level is flattened into this object on the wire:
    ``{"commitment": "confirmed", "minContextSlot": 100}``.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    commitment: CommitmentLevel | None = Field(
        default=None, description="Commitment level, finalized if omitted"
    )
    min_context_slot: Slot | None = Field(
        default=None, description="Lowest slot the request may be evaluated at"
    )

    def commitment_or_default(self) -> CommitmentConfig:
        if self.commitment is None:
            return CommitmentConfig()
        return CommitmentConfig(commitment=self.commitment)


# getBlocks second parameter: an end slot or a context config
EndSlotOrConfig = Slot | RpcContextConfig


def unzip_blocks_config(
    wrapper: EndSlotOrConfig | None,
) -> tuple[int | None, RpcContextConfig | None]:
    """
    Split the getBlocks second parameter into its end slot and config.

    Args:
        wrapper: End slot, context config, or nothing

    Returns:
        Tuple of (end_slot, config); at most one of them is set
    """
    if wrapper is None:
        return None, None
    if isinstance(wrapper, RpcContextConfig):
        return None, wrapper
    return wrapper, None
