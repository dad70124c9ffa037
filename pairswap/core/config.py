"""
Engine configuration.

Defaults reproduce the canonical pool: 0.3% input-side fee (997/1000), 1e18
price scaling, 112-bit reserves. A YAML file may override any field.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..kernels.python.cpmm_swap import FEE_DENOMINATOR, FEE_NUMERATOR
from ..state.pool import RESERVE_BITS


PRICE_SCALE = 10**18


@dataclass(frozen=True)
class PoolConfig:
    """Runtime config for a PoolEngine."""

    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR
    price_scale: int = PRICE_SCALE
    # Reserve storage width; may be narrowed below 112 bits, never widened.
    reserve_bits: int = RESERVE_BITS
    # Re-check pool invariants after every committed operation.
    check_invariants: bool = True

    def __post_init__(self) -> None:
        for name in ("fee_numerator", "fee_denominator", "price_scale", "reserve_bits"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if not isinstance(self.check_invariants, bool):
            raise TypeError("check_invariants must be a bool")
        if not (0 < self.fee_numerator <= self.fee_denominator):
            raise ValueError(
                f"fee must satisfy 0 < fee_numerator <= fee_denominator: "
                f"{self.fee_numerator}/{self.fee_denominator}"
            )
        if self.price_scale <= 0:
            raise ValueError(f"price_scale must be positive: {self.price_scale}")
        if not (1 <= self.reserve_bits <= RESERVE_BITS):
            raise ValueError(f"reserve_bits must be in [1, {RESERVE_BITS}]: {self.reserve_bits}")

    @property
    def fee_bps(self) -> int:
        """Fee rate in basis points, rounded down (30 for the default 997/1000)."""
        return ((self.fee_denominator - self.fee_numerator) * 10_000) // self.fee_denominator


def config_from_mapping(obj: Mapping[str, Any]) -> PoolConfig:
    known = {f.name for f in fields(PoolConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown pool config keys: {', '.join(unknown)}")
    return PoolConfig(**dict(obj))


def load_pool_config(path: str | Path) -> PoolConfig:
    """Load a PoolConfig from a YAML mapping. An empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return PoolConfig()
    if not isinstance(obj, Mapping):
        raise TypeError("pool config YAML must be a mapping")
    return config_from_mapping(obj)
