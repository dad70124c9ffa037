"""Tests for pairswap/core/engine.py: provide, remove, swap, price, and rollback."""

from __future__ import annotations

import logging

import pytest

from pairswap.core import PoolConfig, PoolEngine, PoolEvent
from pairswap.errors import (
    Expired,
    IdenticalAssets,
    InsufficientLiquidity,
    InsufficientOutput,
    InvalidInputs,
    InvalidLiquidity,
    InvalidPair,
    InvalidRecipient,
    InvalidTokenPair,
    ReserveOverflow,
    Slippage,
    SlippageA,
    SlippageB,
    ZeroAmountIn,
)
from pairswap.integration import InMemoryAssetLedger, ManualClock
from pairswap.state import ShareTable

A, B = "A", "B"
DEADLINE = 1_000


def _make_engine(*, config: PoolConfig | None = None, fees: dict | None = None):
    ledger = InMemoryAssetLedger(transfer_fee_bps=fees)
    shares = ShareTable()
    clock = ManualClock(now=0)
    engine = PoolEngine(A, B, transfers=ledger, shares=shares, clock=clock, config=config)
    for who in ("alice", "bob"):
        ledger.credit(who, A, 10**12)
        ledger.credit(who, B, 10**12)
    return engine, ledger, shares, clock


def _seeded(amount_a: int = 100, amount_b: int = 400, **kwargs):
    engine, ledger, shares, clock = _make_engine(**kwargs)
    engine.provide_liquidity("alice", "alice", amount_a, amount_b, 0, 0, DEADLINE)
    return engine, ledger, shares, clock


def _fingerprint(engine: PoolEngine, ledger: InMemoryAssetLedger, shares: ShareTable):
    return engine.state, ledger.balances.as_dict(), shares.get_all_balances(), shares.total_shares()


# ---------------------------------------------------------------------------
# construction
# ---------------------------------------------------------------------------

def test_identical_assets_rejected() -> None:
    with pytest.raises(IdenticalAssets):
        PoolEngine(A, A, transfers=InMemoryAssetLedger(), shares=ShareTable(), clock=ManualClock())


def test_new_pool_is_empty() -> None:
    engine, *_ = _make_engine()
    assert engine.get_reserves() == (0, 0)
    assert engine.total_shares() == 0
    assert engine.events == ()


# ---------------------------------------------------------------------------
# provide_liquidity
# ---------------------------------------------------------------------------

class TestProvideLiquidity:
    def test_initial_provision_sets_price_and_geometric_mean_shares(self):
        engine, ledger, shares, _ = _make_engine()
        result = engine.provide_liquidity("alice", "alice", 100, 400, 0, 0, DEADLINE)
        assert result == (100, 400, 200)
        assert engine.get_reserves() == (100, 400)
        assert shares.balance_of("alice") == 200
        assert ledger.balance_of(A, "pool") == 100
        assert ledger.balance_of(B, "pool") == 400

    def test_subsequent_provision_keeps_ratio(self):
        engine, ledger, shares, _ = _seeded()
        result = engine.provide_liquidity("bob", "bob", 10, 1000, 0, 0, DEADLINE)
        assert result == (10, 40, 20)
        assert engine.get_reserves() == (110, 440)
        assert shares.balance_of("bob") == 20
        # Only the ratio-respecting amount was pulled.
        assert ledger.balance_of(B, "bob") == 10**12 - 40

    def test_a_side_branch(self):
        engine, _, _, _ = _seeded()
        assert engine.provide_liquidity("bob", "bob", 100, 40, 0, 0, DEADLINE) == (10, 40, 20)

    def test_shares_can_go_to_another_recipient(self):
        engine, _, shares, _ = _seeded()
        engine.provide_liquidity("bob", "carol", 10, 40, 0, 0, DEADLINE)
        assert shares.balance_of("carol") == 20
        assert shares.balance_of("bob") == 0

    def test_slippage_errors_leave_state_untouched(self):
        engine, ledger, shares, _ = _seeded()
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(SlippageB):
            engine.provide_liquidity("bob", "bob", 10, 1000, 0, 41, DEADLINE)
        with pytest.raises(SlippageA):
            engine.provide_liquidity("bob", "bob", 100, 40, 11, 0, DEADLINE)
        assert _fingerprint(engine, ledger, shares) == before

    def test_zero_share_mint_rolls_back_transfers(self):
        engine, ledger, shares, _ = _seeded(100, 100)
        # Out-of-band deposits absorbed by sync dilute the share price.
        ledger.donate("bob", A, 10_000)
        ledger.donate("bob", B, 10_000)
        engine.sync()
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(InsufficientLiquidity):
            engine.provide_liquidity("bob", "bob", 50, 50, 0, 0, DEADLINE)
        assert _fingerprint(engine, ledger, shares) == before

    def test_insufficient_balance_propagates_and_rolls_back(self):
        engine, ledger, shares, _ = _seeded()
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(ValueError, match="Insufficient balance"):
            engine.provide_liquidity("carol", "carol", 10, 40, 0, 0, DEADLINE)
        assert _fingerprint(engine, ledger, shares) == before

    def test_emits_event(self):
        engine, _, _, _ = _seeded()
        (effect,) = engine.events
        assert effect.event == PoolEvent.LIQUIDITY_ADDED
        assert (effect.actor, effect.amount_a, effect.amount_b, effect.shares) == ("alice", 100, 400, 200)
        assert (effect.reserve_a_after, effect.reserve_b_after) == (100, 400)

    def test_reserve_overflow_is_loud(self):
        engine, ledger, shares, _ = _make_engine(config=PoolConfig(reserve_bits=16))
        with pytest.raises(ReserveOverflow):
            engine.provide_liquidity("alice", "alice", 1 << 16, 1, 0, 0, DEADLINE)
        assert engine.get_reserves() == (0, 0)
        assert shares.total_shares() == 0
        assert ledger.balance_of(A, "pool") == 0


# ---------------------------------------------------------------------------
# remove_liquidity
# ---------------------------------------------------------------------------

class TestRemoveLiquidity:
    def test_remove_all_returns_pool_to_empty(self):
        engine, ledger, shares, _ = _seeded()
        assert engine.remove_liquidity("alice", "alice", 200, 0, 0, DEADLINE) == (100, 400)
        assert engine.get_reserves() == (0, 0)
        assert shares.total_shares() == 0
        assert ledger.balance_of(A, "alice") == 10**12
        assert ledger.balance_of(B, "alice") == 10**12

    def test_partial_remove_floors_in_favour_of_pool(self):
        engine, _, shares, _ = _seeded()
        assert engine.remove_liquidity("alice", "alice", 1, 0, 0, DEADLINE) == (0, 2)
        assert engine.get_reserves() == (100, 398)
        assert shares.total_shares() == 199

    def test_pool_can_be_reseeded_after_full_exit(self):
        engine, _, _, _ = _seeded()
        engine.remove_liquidity("alice", "alice", 200, 0, 0, DEADLINE)
        assert engine.provide_liquidity("bob", "bob", 9, 16, 0, 0, DEADLINE) == (9, 16, 12)

    def test_invalid_liquidity(self):
        engine, _, _, _ = _seeded()
        with pytest.raises(InvalidLiquidity):
            engine.remove_liquidity("alice", "alice", 0, 0, 0, DEADLINE)
        with pytest.raises(InvalidLiquidity):
            engine.remove_liquidity("alice", "alice", 201, 0, 0, DEADLINE)
        with pytest.raises(InvalidLiquidity):
            engine.remove_liquidity("bob", "bob", 1, 0, 0, DEADLINE)

    def test_slippage(self):
        engine, ledger, shares, _ = _seeded()
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(Slippage):
            engine.remove_liquidity("alice", "alice", 100, 51, 0, DEADLINE)
        assert _fingerprint(engine, ledger, shares) == before

    def test_emits_event(self):
        engine, _, _, _ = _seeded()
        engine.remove_liquidity("alice", "bob", 100, 0, 0, DEADLINE)
        effect = engine.events[-1]
        assert effect.event == PoolEvent.LIQUIDITY_REMOVED
        assert (effect.actor, effect.recipient, effect.shares) == ("alice", "bob", 100)
        assert (effect.amount_a, effect.amount_b) == (50, 200)


# ---------------------------------------------------------------------------
# swap
# ---------------------------------------------------------------------------

class TestSwap:
    def test_a_for_b(self):
        engine, ledger, _, _ = _seeded(10_000, 10_000)
        out = engine.swap("bob", 1000, 906, A, B, "bob", DEADLINE)
        assert out == 906
        assert engine.get_reserves() == (11_000, 9094)
        assert ledger.balance_of(B, "bob") == 10**12 + 906
        assert ledger.balance_of(A, "bob") == 10**12 - 1000

    def test_b_for_a(self):
        engine, _, _, _ = _seeded(10_000, 10_000)
        assert engine.swap("bob", 1000, 0, B, A, "bob", DEADLINE) == 906
        assert engine.get_reserves() == (9094, 11_000)

    def test_constant_product_never_decreases(self):
        engine, _, _, _ = _seeded(10_000, 40_000)
        for amount, tin, tout in ((500, A, B), (3000, B, A), (7, A, B), (12_345, B, A)):
            ra, rb = engine.get_reserves()
            engine.swap("bob", amount, 0, tin, tout, "bob", DEADLINE)
            na, nb = engine.get_reserves()
            assert na * nb >= ra * rb

    def test_precondition_errors(self):
        engine, ledger, shares, _ = _seeded(10_000, 10_000)
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(InvalidTokenPair):
            engine.swap("bob", 1000, 0, A, "C", "bob", DEADLINE)
        with pytest.raises(InvalidTokenPair):
            engine.swap("bob", 1000, 0, A, A, "bob", DEADLINE)
        with pytest.raises(ZeroAmountIn):
            engine.swap("bob", 0, 0, A, B, "bob", DEADLINE)
        for bad in ("", None, "pool"):
            with pytest.raises(InvalidRecipient):
                engine.swap("bob", 1000, 0, A, B, bad, DEADLINE)  # type: ignore[arg-type]
        assert _fingerprint(engine, ledger, shares) == before

    def test_insufficient_output_rolls_back_pull(self):
        engine, ledger, shares, _ = _seeded(10_000, 10_000)
        before = _fingerprint(engine, ledger, shares)
        with pytest.raises(InsufficientOutput):
            engine.swap("bob", 1000, 907, A, B, "bob", DEADLINE)
        # Dust input rounds to zero output.
        with pytest.raises(InsufficientOutput):
            engine.swap("bob", 1, 0, A, B, "bob", DEADLINE)
        assert _fingerprint(engine, ledger, shares) == before
        assert engine.events[-1].event == PoolEvent.LIQUIDITY_ADDED

    def test_swap_against_empty_pool(self):
        engine, *_ = _make_engine()
        with pytest.raises(InvalidInputs):
            engine.swap("bob", 1000, 0, A, B, "bob", DEADLINE)

    def test_emits_event(self):
        engine, _, _, _ = _seeded(10_000, 10_000)
        seen = []
        engine.subscribe(seen.append)
        engine.swap("bob", 1000, 0, A, B, "carol", DEADLINE)
        assert len(seen) == 1
        effect = seen[0]
        assert effect is engine.events[-1]
        assert effect.event == PoolEvent.SWAP_EXECUTED
        assert (effect.token_in, effect.token_out, effect.amount_in, effect.amount_out) == (A, B, 1000, 906)
        assert effect.recipient == "carol"

    def test_failing_subscriber_does_not_undo_commit(self, caplog):
        engine, ledger, _, _ = _seeded(10_000, 10_000)
        seen = []

        def _boom(effect):
            raise RuntimeError("subscriber down")

        engine.subscribe(_boom)
        engine.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="pairswap"):
            assert engine.swap("bob", 1000, 0, A, B, "bob", DEADLINE) == 906
        assert engine.get_reserves() == (11_000, 9094)
        assert ledger.balance_of(B, "bob") == 10**12 + 906
        assert [e.event for e in seen] == [PoolEvent.SWAP_EXECUTED]
        assert "subscriber" in caplog.text


# ---------------------------------------------------------------------------
# out-of-band deposits and empty pools
# ---------------------------------------------------------------------------

def _assert_empty_or_funded(engine: PoolEngine) -> None:
    ra, rb = engine.get_reserves()
    total = engine.total_shares()
    assert (ra == 0) == (rb == 0) == (total == 0)


class TestDonations:
    def test_full_exit_pays_out_donations(self):
        engine, ledger, shares, _ = _seeded()
        ledger.donate("bob", A, 5)
        assert engine.remove_liquidity("alice", "alice", 200, 0, 0, DEADLINE) == (105, 400)
        assert engine.get_reserves() == (0, 0)
        assert shares.total_shares() == 0
        assert ledger.balance_of(A, "pool") == 0
        assert engine.events[-1].amount_a == 105
        _assert_empty_or_funded(engine)
        assert engine.provide_liquidity("bob", "bob", 9, 16, 0, 0, DEADLINE) == (9, 16, 12)
        _assert_empty_or_funded(engine)

    def test_sync_without_shares_keeps_reserves_empty(self):
        engine, ledger, shares, _ = _make_engine()
        ledger.donate("bob", A, 5)
        assert engine.sync() == (0, 0)
        assert engine.get_reserves() == (0, 0)
        _assert_empty_or_funded(engine)

        # The first depositor prices the pool and absorbs the stray balance.
        assert engine.provide_liquidity("alice", "alice", 100, 400, 0, 0, DEADLINE) == (100, 400, 204)
        assert engine.get_reserves() == (105, 400)
        assert engine.get_reserves() == (ledger.balance_of(A, "pool"), ledger.balance_of(B, "pool"))
        _assert_empty_or_funded(engine)

    def test_stray_balance_of_share_less_pool_can_be_skimmed(self):
        engine, ledger, _, _ = _make_engine()
        ledger.donate("bob", B, 7)
        engine.sync()
        assert engine.skim("carol") == (0, 7)
        assert ledger.balance_of(B, "pool") == 0
        _assert_empty_or_funded(engine)

    def test_exit_then_one_sided_sync_still_accepts_liquidity(self):
        engine, ledger, _, _ = _seeded()
        engine.remove_liquidity("alice", "alice", 200, 0, 0, DEADLINE)
        ledger.donate("bob", A, 5)
        engine.sync()
        _assert_empty_or_funded(engine)
        _, _, minted = engine.provide_liquidity("bob", "bob", 9, 16, 0, 0, DEADLINE)
        assert minted == 14  # isqrt(14 * 16)
        assert engine.get_reserves() == (14, 16)
        _assert_empty_or_funded(engine)


# ---------------------------------------------------------------------------
# deadlines
# ---------------------------------------------------------------------------

def test_expired_operations_change_nothing() -> None:
    engine, ledger, shares, clock = _seeded(10_000, 10_000)
    clock.set(500)
    before = _fingerprint(engine, ledger, shares)
    with pytest.raises(Expired):
        engine.provide_liquidity("bob", "bob", 10, 10, 0, 0, 499)
    with pytest.raises(Expired):
        engine.remove_liquidity("alice", "alice", 10, 0, 0, 499)
    with pytest.raises(Expired):
        engine.swap("bob", 1000, 0, A, B, "bob", 499)
    assert _fingerprint(engine, ledger, shares) == before


def test_deadline_equal_to_now_is_accepted() -> None:
    engine, _, _, clock = _seeded(10_000, 10_000)
    clock.set(500)
    assert engine.swap("bob", 1000, 0, A, B, "bob", 500) == 906


# ---------------------------------------------------------------------------
# pricing views
# ---------------------------------------------------------------------------

def test_get_price_both_directions() -> None:
    engine, _, _, _ = _seeded(100, 400)
    assert engine.get_price(A, B) == 4 * 10**18
    assert engine.get_price(B, A) == 25 * 10**16


def test_get_price_invalid_pair_and_empty_pool() -> None:
    engine, *_ = _make_engine()
    with pytest.raises(InvalidInputs):
        engine.get_price(A, B)
    with pytest.raises(InvalidPair):
        engine.get_price(A, "C")
    with pytest.raises(InvalidPair):
        engine.get_price(A, A)


def test_get_amount_out_uses_config_fee() -> None:
    engine, *_ = _make_engine(config=PoolConfig(fee_numerator=1, fee_denominator=1))
    assert engine.get_amount_out(1000, 10_000, 10_000) == 909
    assert engine.quote(10, 100, 400) == 40


# ---------------------------------------------------------------------------
# round trip
# ---------------------------------------------------------------------------

def test_provide_then_remove_never_returns_more() -> None:
    engine, _, _, _ = _seeded(10_000, 30_000)
    engine.swap("bob", 777, 0, A, B, "bob", DEADLINE)
    amount_a, amount_b, minted = engine.provide_liquidity("bob", "bob", 1234, 5000, 0, 0, DEADLINE)
    out_a, out_b = engine.remove_liquidity("bob", "bob", minted, 0, 0, DEADLINE)
    assert out_a <= amount_a
    assert out_b <= amount_b
