"""
Fixed-pair constant-product pool engine.

The engine owns the committed `PoolState` and funnels every mutation through
three operations (provide, remove, swap) plus the reconciliation helpers
`sync` and `skim`. Each operation:

1. checks preconditions (deadline, pair, amounts, recipient),
2. computes amounts with the pure kernels,
3. drives the asset/share ports,
4. re-measures the pool's actual balances and commits them as reserves,
5. checks invariants, then emits an event.

Steps 3-5 run inside `atomic(...)`, so a failure anywhere restores the pool
state and every transactional collaborator. A single re-entrant lock makes
each operation run to completion before the next one starts.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from ..errors import (
    Expired,
    IdenticalAssets,
    InsufficientOutput,
    InvalidInputs,
    InvalidLiquidity,
    InvalidPair,
    InvalidRecipient,
    InvalidTokenPair,
    InvariantViolation,
    ZeroAmountIn,
)
from ..kernels.python.cpmm_swap import get_amount_in as _kernel_get_amount_in
from ..kernels.python.cpmm_swap import get_amount_out as _kernel_get_amount_out
from ..kernels.python.lp_math import burn_shares, mint_shares, optimal_liquidity
from ..kernels.python.lp_math import quote as _kernel_quote
from ..state.balances import Account, Amount, AssetId
from ..state.pool import PoolState, narrow_reserve, pool_state_digest
from .atomic import atomic
from .config import PoolConfig
from .events import PoolEffect, PoolEvent
from .invariants import check_all, k_non_decreasing
from .ports import AssetTransferPort, Clock, ShareLedgerPort

logger = logging.getLogger(__name__)

Subscriber = Callable[[PoolEffect], None]


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


class _StateCell:
    """Holds the committed PoolState so `atomic` can roll it back."""

    def __init__(self, state: PoolState) -> None:
        self.value = state

    def snapshot(self) -> PoolState:
        return self.value

    def restore(self, snapshot: PoolState) -> None:
        self.value = snapshot


class PoolEngine:
    """
    Accounting engine for one pool over a fixed pair of assets.

    Args:
        asset_a, asset_b: the two distinct asset ids (order carries no meaning)
        transfers: asset transfer port; the pool's custody account is `pool_account`
        shares: share ledger port
        clock: deadline source
        pool_account: account that holds the pool's assets in `transfers`
        config: fee, price scale and reserve width
    """

    def __init__(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        *,
        transfers: AssetTransferPort,
        shares: ShareLedgerPort,
        clock: Clock,
        pool_account: Account = "pool",
        config: Optional[PoolConfig] = None,
    ) -> None:
        if asset_a == asset_b:
            raise IdenticalAssets(f"pool assets must differ: {asset_a}")
        if not isinstance(pool_account, str) or not pool_account:
            raise TypeError("pool_account must be a non-empty str")

        self._cell = _StateCell(PoolState(asset_a=asset_a, asset_b=asset_b))
        self._transfers = transfers
        self._shares = shares
        self._clock = clock
        self._pool_account = pool_account
        self._config = config or PoolConfig()
        self._lock = threading.RLock()
        self._events: List[PoolEffect] = []
        self._subscribers: List[Subscriber] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._cell.value

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def pool_account(self) -> Account:
        return self._pool_account

    @property
    def events(self) -> Tuple[PoolEffect, ...]:
        return tuple(self._events)

    def get_reserves(self) -> Tuple[Amount, Amount]:
        s = self._cell.value
        return s.reserve_a, s.reserve_b

    def total_shares(self) -> Amount:
        return self._shares.total_shares()

    def digest(self) -> str:
        with self._lock:
            return pool_state_digest(self._cell.value, self._shares.total_shares())

    def subscribe(self, fn: Subscriber) -> None:
        """
        Register a callback invoked with each PoolEffect after its operation commits.

        Exceptions raised by a callback are logged and do not reach the caller.
        """
        self._subscribers.append(fn)

    # ------------------------------------------------------------------
    # Pricing (pure, config-aware)
    # ------------------------------------------------------------------

    def get_amount_out(self, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return _kernel_get_amount_out(
            amount_in,
            reserve_in,
            reserve_out,
            fee_numerator=self._config.fee_numerator,
            fee_denominator=self._config.fee_denominator,
        )

    def get_amount_in(self, amount_out: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return _kernel_get_amount_in(
            amount_out,
            reserve_in,
            reserve_out,
            fee_numerator=self._config.fee_numerator,
            fee_denominator=self._config.fee_denominator,
        )

    def quote(self, amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
        return _kernel_quote(amount_a, reserve_a, reserve_b)

    def get_price(self, base: AssetId, quote: AssetId) -> int:
        """
        Spot price scaled by `config.price_scale`: `reserve_quote * scale // reserve_base`.

        Raises InvalidPair unless {base, quote} is exactly the pool's pair, and
        InvalidInputs when the base reserve is empty.
        """
        s = self._cell.value
        if base == quote or not s.has_asset(base) or not s.has_asset(quote):
            raise InvalidPair(f"({base}, {quote}) is not this pool's pair")
        reserve_base = s.reserve_of(base)
        if reserve_base == 0:
            raise InvalidInputs("cannot price against an empty reserve")
        return (s.reserve_of(quote) * self._config.price_scale) // reserve_base

    # ------------------------------------------------------------------
    # State-changing operations
    # ------------------------------------------------------------------

    def provide_liquidity(
        self,
        sender: Account,
        to: Account,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        deadline: int,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        Deposit a ratio-respecting contribution and mint shares to `to`.

        Returns (amount_a, amount_b, shares_issued), where the amounts are what
        was pulled from `sender`. Shares are computed from what the pool
        actually received, so fee-on-transfer assets cannot over-mint.
        """
        with self._lock:
            self._ensure_deadline(deadline)
            self._ensure_recipient(to)
            before = self._cell.value
            total = self._shares.total_shares()
            # A share-less pool is priced afresh by the first depositor.
            reserve_a, reserve_b = (before.reserve_a, before.reserve_b) if total else (0, 0)
            opt = optimal_liquidity(
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                amount_a_desired=amount_a_desired,
                amount_b_desired=amount_b_desired,
                amount_a_min=amount_a_min,
                amount_b_min=amount_b_min,
            )

            with self._transaction():
                self._transfers.pull(before.asset_a, sender, opt.amount_a)
                self._transfers.pull(before.asset_b, sender, opt.amount_b)
                after = self._measure()

                issued = mint_shares(
                    amount_a=after.reserve_a - reserve_a,
                    amount_b=after.reserve_b - reserve_b,
                    reserve_a=reserve_a,
                    reserve_b=reserve_b,
                    total_shares=total,
                )
                self._shares.mint(to, issued)
                self._commit(after)

            logger.info(
                "liquidity added by %s: a=%d b=%d shares=%d reserves=(%d, %d)",
                sender, opt.amount_a, opt.amount_b, issued, after.reserve_a, after.reserve_b,
            )
            self._emit(
                PoolEffect(
                    event=PoolEvent.LIQUIDITY_ADDED,
                    actor=sender,
                    recipient=to,
                    amount_a=opt.amount_a,
                    amount_b=opt.amount_b,
                    shares=issued,
                    reserve_a_after=after.reserve_a,
                    reserve_b_after=after.reserve_b,
                )
            )
            return opt.amount_a, opt.amount_b, issued

    def remove_liquidity(
        self,
        sender: Account,
        to: Account,
        shares: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        deadline: int,
    ) -> Tuple[Amount, Amount]:
        """
        Burn `shares` held by `sender` and pay the proportional reserves to `to`.

        Payouts are floored, so rounding dust stays with the remaining holders.
        Burning the last shares pays out the pool's entire balance instead, so
        the pool ends at reserves (0, 0).
        """
        with self._lock:
            self._ensure_deadline(deadline)
            _require_int("shares", shares)
            if shares <= 0 or shares > self._shares.balance_of(sender):
                raise InvalidLiquidity(f"{sender} cannot burn {shares} shares")
            self._ensure_recipient(to)
            before = self._cell.value
            total = self._shares.total_shares()
            owed = burn_shares(
                shares=shares,
                reserve_a=before.reserve_a,
                reserve_b=before.reserve_b,
                total_shares=total,
                amount_a_min=amount_a_min,
                amount_b_min=amount_b_min,
            )

            with self._transaction():
                if shares == total:
                    # Last holder: the whole balance leaves, donations included.
                    paid_a = self._transfers.balance_of(before.asset_a, self._pool_account)
                    paid_b = self._transfers.balance_of(before.asset_b, self._pool_account)
                else:
                    paid_a, paid_b = owed.amount_a, owed.amount_b
                self._shares.burn(sender, shares)
                if paid_a > 0:
                    self._transfers.push(before.asset_a, to, paid_a)
                if paid_b > 0:
                    self._transfers.push(before.asset_b, to, paid_b)
                after = self._measure()
                self._commit(after)

            logger.info(
                "liquidity removed by %s: shares=%d a=%d b=%d reserves=(%d, %d)",
                sender, shares, paid_a, paid_b, after.reserve_a, after.reserve_b,
            )
            self._emit(
                PoolEffect(
                    event=PoolEvent.LIQUIDITY_REMOVED,
                    actor=sender,
                    recipient=to,
                    amount_a=paid_a,
                    amount_b=paid_b,
                    shares=shares,
                    reserve_a_after=after.reserve_a,
                    reserve_b_after=after.reserve_b,
                )
            )
            return paid_a, paid_b

    def swap(
        self,
        sender: Account,
        amount_in: Amount,
        amount_out_min: Amount,
        token_in: AssetId,
        token_out: AssetId,
        to: Account,
        deadline: int,
    ) -> Amount:
        """
        Exact-in swap. Output is priced on the amount the pool actually received.
        """
        with self._lock:
            self._ensure_deadline(deadline)
            before = self._cell.value
            if {token_in, token_out} != {before.asset_a, before.asset_b}:
                raise InvalidTokenPair(f"({token_in}, {token_out}) is not this pool's pair")
            _require_int("amount_in", amount_in)
            _require_int("amount_out_min", amount_out_min)
            if amount_in <= 0:
                raise ZeroAmountIn(f"amount_in must be positive: {amount_in}")
            self._ensure_recipient(to)

            zero_for_one = token_in == before.asset_a
            if zero_for_one:
                reserve_in, reserve_out = before.reserve_a, before.reserve_b
            else:
                reserve_in, reserve_out = before.reserve_b, before.reserve_a

            with self._transaction():
                balance_in_before = self._transfers.balance_of(token_in, self._pool_account)
                self._transfers.pull(token_in, sender, amount_in)
                actual_in = self._transfers.balance_of(token_in, self._pool_account) - balance_in_before

                amount_out = self.get_amount_out(actual_in, reserve_in, reserve_out)
                logger.debug(
                    "swap quote: in=%d (nominal %d) reserves=(%d, %d) out=%d",
                    actual_in, amount_in, reserve_in, reserve_out, amount_out,
                )
                if amount_out <= 0 or amount_out < amount_out_min:
                    raise InsufficientOutput(f"amount_out ({amount_out}) < amount_out_min ({amount_out_min})")

                self._transfers.push(token_out, to, amount_out)
                after = self._measure()
                if not k_non_decreasing(before, after):
                    logger.error("constant product decreased: %s -> %s", before, after)
                    raise InvariantViolation(["k_non_decreasing"])
                self._commit(after)

            logger.info(
                "swap by %s: %d %s -> %d %s reserves=(%d, %d)",
                sender, actual_in, token_in, amount_out, token_out, after.reserve_a, after.reserve_b,
            )
            self._emit(
                PoolEffect(
                    event=PoolEvent.SWAP_EXECUTED,
                    actor=sender,
                    recipient=to,
                    token_in=token_in,
                    token_out=token_out,
                    amount_in=actual_in,
                    amount_out=amount_out,
                    reserve_a_after=after.reserve_a,
                    reserve_b_after=after.reserve_b,
                )
            )
            return amount_out

    def sync(self) -> Tuple[Amount, Amount]:
        """
        Absorb out-of-band deposits: set reserves to the measured balances.

        A pool with no shares outstanding keeps reserves (0, 0); its balance
        stays available to `skim` or to the next first depositor.
        """
        with self._lock:
            with self._transaction():
                if self._shares.total_shares() == 0:
                    logger.debug("sync on a pool without shares; reserves stay empty")
                    after = self._cell.value
                else:
                    after = self._measure()
                self._commit(after)
            logger.info("synced reserves to (%d, %d)", after.reserve_a, after.reserve_b)
            self._emit(
                PoolEffect(
                    event=PoolEvent.SYNCED,
                    reserve_a_after=after.reserve_a,
                    reserve_b_after=after.reserve_b,
                )
            )
            return after.reserve_a, after.reserve_b

    def skim(self, to: Account) -> Tuple[Amount, Amount]:
        """Send any balance above the stored reserves to `to`; reserves are unchanged."""
        with self._lock:
            self._ensure_recipient(to)
            s = self._cell.value
            with self._transaction():
                excess_a = self._transfers.balance_of(s.asset_a, self._pool_account) - s.reserve_a
                excess_b = self._transfers.balance_of(s.asset_b, self._pool_account) - s.reserve_b
                if excess_a > 0:
                    self._transfers.push(s.asset_a, to, excess_a)
                if excess_b > 0:
                    self._transfers.push(s.asset_b, to, excess_b)
                self._commit(s)
            skimmed_a, skimmed_b = max(excess_a, 0), max(excess_b, 0)
            logger.info("skimmed (%d, %d) to %s", skimmed_a, skimmed_b, to)
            self._emit(
                PoolEffect(
                    event=PoolEvent.SKIMMED,
                    recipient=to,
                    amount_a=skimmed_a,
                    amount_b=skimmed_b,
                    reserve_a_after=s.reserve_a,
                    reserve_b_after=s.reserve_b,
                )
            )
            return skimmed_a, skimmed_b

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transaction(self):
        return atomic(self._cell, self._transfers, self._shares)

    def _ensure_deadline(self, deadline: int) -> None:
        _require_int("deadline", deadline)
        now = self._clock.now()
        if now > deadline:
            raise Expired(f"deadline {deadline} passed (now={now})")

    def _ensure_recipient(self, to: Account) -> None:
        if not isinstance(to, str) or not to or to == self._pool_account:
            raise InvalidRecipient(f"invalid recipient: {to!r}")

    def _measure(self) -> PoolState:
        s = self._cell.value
        bits = self._config.reserve_bits
        balance_a = self._transfers.balance_of(s.asset_a, self._pool_account)
        balance_b = self._transfers.balance_of(s.asset_b, self._pool_account)
        return replace(
            s,
            reserve_a=narrow_reserve("reserve_a", balance_a, bits=bits),
            reserve_b=narrow_reserve("reserve_b", balance_b, bits=bits),
        )

    def _commit(self, new_state: PoolState) -> None:
        if self._config.check_invariants:
            violations = check_all(new_state, self._shares.total_shares(), self._config.reserve_bits)
            if violations:
                logger.error("invariant violations after commit: %s", violations)
                raise InvariantViolation(violations)
        self._cell.value = new_state

    def _emit(self, effect: PoolEffect) -> None:
        # The operation has already committed; a failing subscriber cannot undo it.
        self._events.append(effect)
        for fn in list(self._subscribers):
            try:
                fn(effect)
            except Exception:
                logger.exception("subscriber %r failed on %s", fn, effect.event.value)
