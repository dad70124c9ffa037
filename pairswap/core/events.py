"""Observable events emitted by the pool engine after each committed operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique


@unique
class PoolEvent(Enum):
    LIQUIDITY_ADDED = "LiquidityAdded"
    LIQUIDITY_REMOVED = "LiquidityRemoved"
    SWAP_EXECUTED = "SwapExecuted"
    SYNCED = "Synced"
    SKIMMED = "Skimmed"


@dataclass(frozen=True)
class PoolEffect:
    """Post-commit observables. Unused amount fields default to 0."""

    event: PoolEvent
    actor: str | None = None
    recipient: str | None = None
    amount_a: int = 0
    amount_b: int = 0
    shares: int = 0
    token_in: str | None = None
    token_out: str | None = None
    amount_in: int = 0
    amount_out: int = 0
    reserve_a_after: int = 0
    reserve_b_after: int = 0
