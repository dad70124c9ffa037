"""Invariant checkers for the pool engine.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant ids (empty = all pass).

`inv_empty_together` is the strict `reserve_a == 0 <=> reserve_b == 0 <=>
total_shares == 0` equivalence. Out-of-band deposits never reach the reserves
of a share-less pool: `sync` leaves them at zero, and the last share burn pays
out the whole balance.
"""

from __future__ import annotations

from typing import Callable

from ..state.pool import PoolState


def inv_reserves_fit(s: PoolState, total_shares: int, reserve_bits: int) -> bool:
    limit = (1 << reserve_bits) - 1
    return 0 <= s.reserve_a <= limit and 0 <= s.reserve_b <= limit


def inv_shares_non_negative(s: PoolState, total_shares: int, reserve_bits: int) -> bool:
    return total_shares >= 0


def inv_empty_together(s: PoolState, total_shares: int, reserve_bits: int) -> bool:
    return (s.reserve_a == 0) == (s.reserve_b == 0) == (total_shares == 0)


_ALL: dict[str, Callable[[PoolState, int, int], bool]] = {
    "reserves_fit": inv_reserves_fit,
    "shares_non_negative": inv_shares_non_negative,
    "empty_together": inv_empty_together,
}


def check_all(s: PoolState, total_shares: int, reserve_bits: int = 112) -> list[str]:
    return [name for name, fn in _ALL.items() if not fn(s, total_shares, reserve_bits)]


def k_non_decreasing(before: PoolState, after: PoolState) -> bool:
    """Constant product must not shrink across a swap (fees stay in the pool)."""
    return after.reserve_a * after.reserve_b >= before.reserve_a * before.reserve_b
