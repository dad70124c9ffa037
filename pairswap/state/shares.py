"""
Pool share ledger.

Shares are tracked separately from asset balances. `ShareTable` is the
in-memory implementation of the engine's share-ledger port.
"""

from __future__ import annotations

from typing import Dict

from .balances import Account, Amount


class ShareTable:
    """
    Share balance table mapping holder -> shares, plus the running total.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    - `total_shares()` always equals the sum of all balances.
    """

    def __init__(self) -> None:
        self._balances: Dict[Account, Amount] = {}
        self._total: Amount = 0

    def balance_of(self, holder: Account) -> Amount:
        """Share balance of `holder`. Returns 0 if not found."""
        return self._balances.get(holder, 0)

    def total_shares(self) -> Amount:
        return self._total

    def mint(self, to: Account, amount: Amount) -> None:
        """Credit `amount` new shares to `to`."""
        if amount <= 0:
            raise ValueError(f"Mint amount must be positive: {amount}")
        self._balances[to] = self.balance_of(to) + amount
        self._total += amount

    def burn(self, holder: Account, amount: Amount) -> None:
        """Destroy `amount` shares held by `holder`."""
        if amount <= 0:
            raise ValueError(f"Burn amount must be positive: {amount}")
        current = self.balance_of(holder)
        if amount > current:
            raise ValueError(f"Insufficient share balance: {current} < {amount}")
        remaining = current - amount
        if remaining == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = remaining
        self._total -= amount

    def transfer(self, sender: Account, to: Account, amount: Amount) -> None:
        """Move shares between holders; the total is unchanged."""
        if amount <= 0:
            raise ValueError(f"Transfer amount must be positive: {amount}")
        current = self.balance_of(sender)
        if amount > current:
            raise ValueError(f"Insufficient share balance: {current} < {amount}")
        self.burn(sender, amount)
        self.mint(to, amount)

    def get_all_balances(self) -> Dict[Account, Amount]:
        """Return all share balances."""
        return dict(self._balances)

    def snapshot(self) -> tuple[Dict[Account, Amount], Amount]:
        return dict(self._balances), self._total

    def restore(self, snapshot: tuple[Dict[Account, Amount], Amount]) -> None:
        balances, total = snapshot
        self._balances = dict(balances)
        self._total = total

    def verify_consistent(self) -> bool:
        """Verify balances are positive and sum to the recorded total."""
        return all(v > 0 for v in self._balances.values()) and sum(self._balances.values()) == self._total

    def __repr__(self) -> str:
        return f"ShareTable({len(self._balances)} holders, total={self._total})"
