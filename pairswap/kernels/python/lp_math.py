"""
Liquidity math kernel.

Pure functions with explicit rounding rules:
- ratio-preserving contribution selection (two-branch, never above desired),
- share minting (geometric mean on first deposit, proportional minimum after),
- share burning (floor, so rounding dust stays with the pool).
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InsufficientLiquidity, InvalidInputs, InvalidLiquidity, Slippage, SlippageA, SlippageB


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount_a: int
    amount_b: int
    amount_a_refund: int
    amount_b_refund: int


@dataclass(frozen=True)
class BurnLiquidityResult:
    amount_a: int
    amount_b: int


def isqrt(y: int) -> int:
    """
    Integer square root (floor) by Babylonian iteration.

    Starts from `y // 2 + 1` for `y > 3`; returns 1 for `1 <= y <= 3` and 0 for 0.
    """
    _require_int("y", y)
    if y < 0:
        raise InvalidInputs(f"isqrt of negative value: {y}")
    if y > 3:
        z = y
        x = y // 2 + 1
        while x < z:
            z = x
            x = (y // x + x) // 2
        return z
    if y != 0:
        return 1
    return 0


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B proportionally equivalent to `amount_a` at the current ratio (floor)."""
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_int(name, v)
    if amount_a <= 0:
        raise InvalidInputs("amount_a must be positive")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InvalidInputs("reserves must be positive")
    return (amount_a * reserve_b) // reserve_a


def optimal_liquidity(
    *,
    reserve_a: int,
    reserve_b: int,
    amount_a_desired: int,
    amount_b_desired: int,
    amount_a_min: int = 0,
    amount_b_min: int = 0,
) -> OptimalLiquidityResult:
    """
    Pick the largest contribution that respects the current ratio.

    For an empty pool (either reserve zero) the desired amounts are used as-is
    and set the initial price.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
        ("amount_a_min", amount_a_min),
        ("amount_b_min", amount_b_min),
    ):
        _require_int(name, v)

    if reserve_a < 0 or reserve_b < 0:
        raise InvalidInputs("reserves must be non-negative")
    if amount_a_desired <= 0 or amount_b_desired <= 0:
        raise InvalidInputs("desired amounts must be positive")
    if amount_a_min < 0 or amount_b_min < 0:
        raise InvalidInputs("minimum amounts must be non-negative")

    if reserve_a == 0 or reserve_b == 0:
        return OptimalLiquidityResult(
            amount_a=amount_a_desired,
            amount_b=amount_b_desired,
            amount_a_refund=0,
            amount_b_refund=0,
        )

    amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
    if amount_b_optimal <= amount_b_desired:
        if amount_b_optimal < amount_b_min:
            raise SlippageB(f"amount_b ({amount_b_optimal}) < amount_b_min ({amount_b_min})")
        amount_a, amount_b = amount_a_desired, amount_b_optimal
    else:
        amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
        if amount_a_optimal > amount_a_desired:
            raise AssertionError("amount_a_optimal exceeds amount_a_desired")
        if amount_a_optimal < amount_a_min:
            raise SlippageA(f"amount_a ({amount_a_optimal}) < amount_a_min ({amount_a_min})")
        amount_a, amount_b = amount_a_optimal, amount_b_desired

    return OptimalLiquidityResult(
        amount_a=amount_a,
        amount_b=amount_b,
        amount_a_refund=amount_a_desired - amount_a,
        amount_b_refund=amount_b_desired - amount_b,
    )


def mint_shares(*, amount_a: int, amount_b: int, reserve_a: int, reserve_b: int, total_shares: int) -> int:
    """
    Shares to issue for a deposit of `(amount_a, amount_b)` already delivered.

    First deposit: `isqrt(amount_a * amount_b)`.
    Afterwards: `min(amount_a * total // reserve_a, amount_b * total // reserve_b)`,
    so a depositor is credited only for their weaker-covered side.
    """
    for name, v in (
        ("amount_a", amount_a),
        ("amount_b", amount_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)
    if amount_a < 0 or amount_b < 0:
        raise InvalidInputs("deposit amounts must be non-negative")
    if total_shares < 0:
        raise InvalidInputs("total_shares must be non-negative")

    if total_shares == 0:
        shares = isqrt(amount_a * amount_b)
    else:
        if reserve_a <= 0 or reserve_b <= 0:
            raise InvalidInputs("cannot mint proportional shares against an empty reserve")
        shares = min(
            (amount_a * total_shares) // reserve_a,
            (amount_b * total_shares) // reserve_b,
        )

    if shares <= 0:
        raise InsufficientLiquidity("shares minted would be zero (deposit too small)")
    return shares


def burn_shares(
    *,
    shares: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    amount_a_min: int = 0,
    amount_b_min: int = 0,
) -> BurnLiquidityResult:
    """Assets owed for burning `shares` (floor rounding on both sides)."""
    for name, v in (
        ("shares", shares),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
        ("amount_a_min", amount_a_min),
        ("amount_b_min", amount_b_min),
    ):
        _require_int(name, v)

    if shares <= 0:
        raise InvalidLiquidity("shares must be positive")
    if shares > total_shares:
        raise InvalidLiquidity(f"cannot burn more than total_shares: {shares} > {total_shares}")
    if reserve_a < 0 or reserve_b < 0:
        raise InvalidInputs("reserves must be non-negative")

    amount_a = (shares * reserve_a) // total_shares
    amount_b = (shares * reserve_b) // total_shares
    if amount_a < amount_a_min or amount_b < amount_b_min:
        raise Slippage(
            f"outputs ({amount_a}, {amount_b}) below minimums ({amount_a_min}, {amount_b_min})"
        )
    return BurnLiquidityResult(amount_a=amount_a, amount_b=amount_b)
