# [TESTER] v1

from __future__ import annotations

import pytest

from pairswap.core import check_all, k_non_decreasing
from pairswap.state import PoolState


def _s(ra: int, rb: int) -> PoolState:
    return PoolState(asset_a="A", asset_b="B", reserve_a=ra, reserve_b=rb)


@pytest.mark.parametrize(
    "ra,rb,total",
    [(0, 0, 0), (100, 400, 200), (1, 1, 1)],
)
def test_consistent_states_pass(ra: int, rb: int, total: int) -> None:
    assert check_all(_s(ra, rb), total) == []


@pytest.mark.parametrize(
    "ra,rb,total",
    [(5, 0, 0), (0, 5, 0), (5, 5, 0), (0, 0, 10), (5, 0, 10)],
)
def test_reserves_and_shares_must_be_empty_together(ra: int, rb: int, total: int) -> None:
    assert check_all(_s(ra, rb), total) == ["empty_together"]


def test_reserve_width_and_negative_shares() -> None:
    assert check_all(_s(256, 1), 1, reserve_bits=8) == ["reserves_fit"]
    assert "shares_non_negative" in check_all(_s(1, 1), -1)


def test_k_non_decreasing() -> None:
    assert k_non_decreasing(_s(100, 100), _s(110, 91))
    assert not k_non_decreasing(_s(100, 100), _s(110, 90))
