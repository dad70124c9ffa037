# [TESTER] v1

from __future__ import annotations

import pytest

from pairswap.errors import InvalidInputs
from pairswap.kernels.python.cpmm_swap import UINT256_MAX, get_amount_in, get_amount_out, quote_swap


def test_get_amount_out_reference_value() -> None:
    # floor(1000*997*10000 / (10000*1000 + 1000*997)) = floor(9970000000 / 10997000)
    assert get_amount_out(1000, 10_000, 10_000) == 906


def test_get_amount_out_rejects_zero_inputs() -> None:
    with pytest.raises(InvalidInputs):
        get_amount_out(0, 10_000, 10_000)
    with pytest.raises(InvalidInputs):
        get_amount_out(1000, 0, 10_000)
    with pytest.raises(InvalidInputs):
        get_amount_out(1000, 10_000, 0)


def test_get_amount_out_rejects_non_int_and_out_of_range() -> None:
    with pytest.raises(TypeError):
        get_amount_out(True, 10_000, 10_000)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        get_amount_out(1.5, 10_000, 10_000)  # type: ignore[arg-type]
    with pytest.raises(InvalidInputs):
        get_amount_out(UINT256_MAX + 1, 10_000, 10_000)


def test_get_amount_out_never_drains_full_reserve() -> None:
    reserve_max = (1 << 112) - 1
    out = get_amount_out(UINT256_MAX, 1, reserve_max)
    assert 0 < out < reserve_max


def test_get_amount_out_full_width_reserves_are_exact() -> None:
    # Intermediate products here exceed 2**224; the result must still be exact floor division.
    r = (1 << 112) - 1
    amount_in = 1 << 100
    expected = (amount_in * 997 * r) // (r * 1000 + amount_in * 997)
    assert get_amount_out(amount_in, r, r) == expected


def test_get_amount_out_respects_custom_fee() -> None:
    # Zero fee (1/1) is plain constant product.
    assert get_amount_out(1000, 10_000, 10_000, fee_numerator=1, fee_denominator=1) == 909
    with pytest.raises(InvalidInputs):
        get_amount_out(1000, 10_000, 10_000, fee_numerator=1001, fee_denominator=1000)


def test_get_amount_in_covers_requested_output() -> None:
    amount_in = get_amount_in(906, 10_000, 10_000)
    assert get_amount_out(amount_in, 10_000, 10_000) >= 906
    assert amount_in == 1000
    assert get_amount_out(amount_in - 1, 10_000, 10_000) < 906


def test_get_amount_in_rejects_draining_output() -> None:
    with pytest.raises(InvalidInputs, match="drain"):
        get_amount_in(10_000, 10_000, 10_000)


def test_quote_swap_keeps_k_non_decreasing() -> None:
    q = quote_swap(1000, 10_000, 10_000)
    assert q.amount_out == 906
    assert q.new_reserve_in == 11_000
    assert q.new_reserve_out == 9094
    assert q.k_after >= q.k_before
