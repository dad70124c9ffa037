"""
In-memory adapters for the engine's ports.

These back the off-chain simulation and the test-suite:
- `InMemoryAssetLedger`: asset balances with optional per-asset transfer fees
  (fee-on-transfer tokens burn `ceil(amount * bps / 10_000)` from every transfer),
- `ManualClock` / `SystemClock`: deadline sources.

The share ledger adapter is `pairswap.state.shares.ShareTable`.
"""

from __future__ import annotations

import time
from typing import Dict, Mapping, Optional

from ..state.balances import Account, Amount, AssetId, BalanceTable


BPS_DENOM = 10_000


def _ceil_div_nonneg(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")
    return (numerator + denominator - 1) // denominator


class InMemoryAssetLedger:
    """
    Asset transfer port over a BalanceTable.

    `pool_account` is the custody account the engine pulls into and pushes from.
    """

    def __init__(
        self,
        pool_account: Account = "pool",
        *,
        transfer_fee_bps: Optional[Mapping[AssetId, int]] = None,
        balances: Optional[BalanceTable] = None,
    ) -> None:
        fees = dict(transfer_fee_bps or {})
        for asset, bps in fees.items():
            if not isinstance(bps, int) or isinstance(bps, bool):
                raise TypeError(f"transfer fee for {asset} must be an int")
            if not (0 <= bps <= BPS_DENOM):
                raise ValueError(f"transfer fee for {asset} must be in [0, {BPS_DENOM}]: {bps}")
        self.pool_account = pool_account
        self._fees: Dict[AssetId, int] = fees
        self._balances = balances if balances is not None else BalanceTable()

    @property
    def balances(self) -> BalanceTable:
        return self._balances

    def transfer_fee(self, asset: AssetId, amount: Amount) -> Amount:
        return _ceil_div_nonneg(amount * self._fees.get(asset, 0), BPS_DENOM)

    def credit(self, holder: Account, asset: AssetId, amount: Amount) -> None:
        """Mint `amount` of `asset` to `holder` (test funding)."""
        if amount <= 0:
            raise ValueError(f"credit amount must be positive: {amount}")
        self._balances.add(holder, asset, amount)

    def transfer(self, asset: AssetId, sender: Account, to: Account, amount: Amount) -> Amount:
        """Move `amount` from `sender`; `to` receives it net of the asset's transfer fee."""
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount <= 0:
            raise ValueError(f"transfer amount must be positive: {amount}")
        fee = self.transfer_fee(asset, amount)
        received = amount - fee
        self._balances.subtract(sender, asset, amount)
        if received > 0:
            self._balances.add(to, asset, received)
        return received

    def donate(self, sender: Account, asset: AssetId, amount: Amount) -> Amount:
        """Send assets straight to the pool's custody account, bypassing the engine."""
        return self.transfer(asset, sender, self.pool_account, amount)

    # AssetTransferPort

    def pull(self, asset: AssetId, sender: Account, amount: Amount) -> Amount:
        return self.transfer(asset, sender, self.pool_account, amount)

    def push(self, asset: AssetId, to: Account, amount: Amount) -> None:
        self.transfer(asset, self.pool_account, to, amount)

    def balance_of(self, asset: AssetId, holder: Account) -> Amount:
        return self._balances.get(holder, asset)

    # Transactional

    def snapshot(self) -> BalanceTable:
        return self._balances.copy()

    def restore(self, snapshot: BalanceTable) -> None:
        self._balances = snapshot.copy()

    def __repr__(self) -> str:
        return f"InMemoryAssetLedger(pool={self.pool_account!r}, {self._balances!r})"


class ManualClock:
    """Settable clock for tests and simulations."""

    def __init__(self, now: int = 0) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards: {seconds}")
        self._now += seconds
        return self._now


class SystemClock:
    """Wall-clock time in whole seconds."""

    def now(self) -> int:
        return int(time.time())
