"""
Constant-product swap kernel (0.3% input-side fee).

Semantics:
- The fee is taken from the input side as a numerator/denominator pair
  (997/1000 by default): `amount_in_with_fee = amount_in * 997`.
- Output is floored: `amount_out = with_fee * reserve_out // (reserve_in * 1000 + with_fee)`.
- The fee stays in the pool, so `k` never decreases across a swap.

Python ints are arbitrary-precision, so the wide intermediate products never
overflow. Inputs are still range-checked as unsigned 256-bit integers so the
kernel rejects the same domain an on-chain implementation would.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InvalidInputs


FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000
UINT256_MAX = (1 << 256) - 1


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > UINT256_MAX:
        raise InvalidInputs(f"{name} must be in [0, 2**256 - 1]: {value}")


def _check_fee(fee_numerator: int, fee_denominator: int) -> None:
    _require_uint("fee_numerator", fee_numerator)
    _require_uint("fee_denominator", fee_denominator)
    if not (0 < fee_numerator <= fee_denominator):
        raise InvalidInputs("fee must satisfy 0 < fee_numerator <= fee_denominator")


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    *,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """
    Output amount for an exact input against `(reserve_in, reserve_out)`.

    Monotonically non-decreasing in `amount_in` and always strictly below
    `reserve_out`, so one side of the pool can never be drained.

    Raises InvalidInputs if any argument is zero.
    """
    for name, v in (
        ("amount_in", amount_in),
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
    ):
        _require_uint(name, v)
    _check_fee(fee_numerator, fee_denominator)

    if amount_in == 0:
        raise InvalidInputs("amount_in must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise InvalidInputs("reserves must be positive")

    amount_in_with_fee = amount_in * fee_numerator
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * fee_denominator + amount_in_with_fee
    return numerator // denominator


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    *,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """
    Smallest-safe input for an exact output (rounds up by one unit).

    The result always satisfies `get_amount_out(result, ...) >= amount_out`.
    """
    for name, v in (
        ("amount_out", amount_out),
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
    ):
        _require_uint(name, v)
    _check_fee(fee_numerator, fee_denominator)

    if amount_out == 0:
        raise InvalidInputs("amount_out must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise InvalidInputs("reserves must be positive")
    if amount_out >= reserve_out:
        raise InvalidInputs(f"cannot drain full reserve: {amount_out} >= {reserve_out}")

    numerator = reserve_in * amount_out * fee_denominator
    denominator = (reserve_out - amount_out) * fee_numerator
    return numerator // denominator + 1


def quote_swap(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    *,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> SwapQuote:
    """Exact-in quote plus the post-swap reserves it implies (nominal, no transfer fees)."""
    amount_out = get_amount_out(
        amount_in,
        reserve_in,
        reserve_out,
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
    )
    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out
    if new_reserve_out <= 0:
        raise AssertionError("amount_out drained reserve_out")

    return SwapQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
