"""
Pool state: the two asset identities and their narrow-width reserves.

Reserves are stored as 112-bit unsigned integers. Products of two reserves
therefore fit in 224 bits, and all arithmetic on them happens in Python's
unbounded ints before being narrowed back with `narrow_reserve`.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..errors import IdenticalAssets, ReserveOverflow
from .balances import Amount, AssetId
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


RESERVE_BITS = 112
UINT112_MAX = (1 << RESERVE_BITS) - 1


def narrow_reserve(name: str, value: int, *, bits: int = RESERVE_BITS) -> int:
    """Narrow `value` to an unsigned `bits`-wide integer, failing loudly on overflow."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > (1 << bits) - 1:
        raise ReserveOverflow(f"{name} does not fit in uint{bits}: {value}")
    return value


@dataclass(frozen=True)
class PoolState:
    """Committed state of a single fixed-pair pool."""

    asset_a: AssetId
    asset_b: AssetId
    reserve_a: Amount = 0
    reserve_b: Amount = 0

    def __post_init__(self) -> None:
        if not isinstance(self.asset_a, str) or not self.asset_a:
            raise TypeError("asset_a must be a non-empty str")
        if not isinstance(self.asset_b, str) or not self.asset_b:
            raise TypeError("asset_b must be a non-empty str")
        if self.asset_a == self.asset_b:
            raise IdenticalAssets(f"pool assets must differ: {self.asset_a}")
        narrow_reserve("reserve_a", self.reserve_a)
        narrow_reserve("reserve_b", self.reserve_b)

    @property
    def is_empty(self) -> bool:
        return self.reserve_a == 0 and self.reserve_b == 0

    def has_asset(self, asset: AssetId) -> bool:
        return asset == self.asset_a or asset == self.asset_b

    def reserve_of(self, asset: AssetId) -> Amount:
        if asset == self.asset_a:
            return self.reserve_a
        if asset == self.asset_b:
            return self.reserve_b
        raise KeyError(asset)


STATE_VAR_NAMES: tuple[str, ...] = tuple(PoolState.__dataclass_fields__)


def state_to_dict(state: PoolState) -> dict[str, str | int]:
    """Serialize a PoolState to a plain dict."""
    return {name: getattr(state, name) for name in STATE_VAR_NAMES}


def state_from_dict(d: Mapping[str, Any]) -> PoolState:
    """Deserialize a dict to a PoolState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in ("asset_a", "asset_b"):
        val = d[name]
        if not isinstance(val, str):
            raise TypeError(f"state var {name!r} must be str, got {type(val).__name__}")
        kwargs[name] = val
    for name in ("reserve_a", "reserve_b"):
        val = d[name]
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
        kwargs[name] = int(val)
    return PoolState(**kwargs)


def pool_state_digest(state: PoolState, total_shares: int) -> str:
    """
    Digest of the pool's accounting state.

    Reserves are encoded as decimal strings so the encoding does not depend on
    JSON integer limits in other tooling.
    """
    payload = {
        "asset_a": state.asset_a,
        "asset_b": state.asset_b,
        "reserve_a": str(state.reserve_a),
        "reserve_b": str(state.reserve_b),
        "total_shares": str(total_shares),
    }
    return sha256_hex(domain_sep_bytes("pairswap.pool_state") + canonical_json_bytes(payload))
