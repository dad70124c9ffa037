"""
Collaborator interfaces for the pool engine.

The engine never moves assets or shares itself; it drives these ports and
re-measures balances afterwards. Adapters that also implement `Transactional`
are rolled back together with the engine when an operation fails.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..state.balances import Account, Amount, AssetId


@runtime_checkable
class AssetTransferPort(Protocol):
    def pull(self, asset: AssetId, sender: Account, amount: Amount) -> Amount:
        """Move `amount` of `asset` from `sender` into pool custody; return what actually arrived."""
        ...

    def push(self, asset: AssetId, to: Account, amount: Amount) -> None:
        """Move `amount` of `asset` out of pool custody to `to`."""
        ...

    def balance_of(self, asset: AssetId, holder: Account) -> Amount:
        ...


@runtime_checkable
class ShareLedgerPort(Protocol):
    def mint(self, to: Account, amount: Amount) -> None:
        ...

    def burn(self, holder: Account, amount: Amount) -> None:
        ...

    def total_shares(self) -> Amount:
        ...

    def balance_of(self, holder: Account) -> Amount:
        ...


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        """Current time in seconds."""
        ...


@runtime_checkable
class Transactional(Protocol):
    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...
