"""
Asset holdings for the in-memory transfer port.

Balances are grouped per asset so that the pool's custody balance and an
asset's circulating supply are both single lookups. Zero balances are
dropped, which keeps snapshots and equality checks independent of history.
"""

from __future__ import annotations

from typing import Dict


Account = str  # opaque account identifier (address, pubkey, name)
AssetId = str  # opaque asset identifier
Amount = int  # non-negative, arbitrary precision


class BalanceTable:
    """(account, asset) -> amount, stored as asset -> {account: amount}."""

    def __init__(self) -> None:
        self._by_asset: Dict[AssetId, Dict[Account, Amount]] = {}

    def get(self, account: Account, asset: AssetId) -> Amount:
        return self._by_asset.get(asset, {}).get(account, 0)

    def add(self, account: Account, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"credit must be non-negative: {amount}")
        if amount == 0:
            return
        holders = self._by_asset.setdefault(asset, {})
        holders[account] = holders.get(account, 0) + amount

    def subtract(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Debit `amount` from `account`.

        Raises:
            ValueError: on a negative amount or an insufficient balance
        """
        if amount < 0:
            raise ValueError(f"debit must be non-negative: {amount}")
        current = self.get(account, asset)
        if current < amount:
            raise ValueError(f"Insufficient balance: {account} holds {current} {asset}, needs {amount}")
        if amount == 0:
            return
        holders = self._by_asset[asset]
        if current == amount:
            del holders[account]
            if not holders:
                del self._by_asset[asset]
        else:
            holders[account] = current - amount

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(self._by_asset.get(asset, {}).values())

    def as_dict(self) -> Dict[AssetId, Dict[Account, Amount]]:
        return {asset: dict(holders) for asset, holders in self._by_asset.items()}

    def copy(self) -> BalanceTable:
        table = BalanceTable()
        table._by_asset = self.as_dict()
        return table

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceTable):
            return NotImplemented
        return self._by_asset == other._by_asset

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._by_asset)} assets)"
