"""
pairswap: accounting engine for a two-asset constant-product pool.

Public API:
- `PoolEngine(asset_a, asset_b, transfers=..., shares=..., clock=...)`
- `PoolConfig`, `load_pool_config(path)`
- pure pricing: `get_amount_out`, `get_amount_in`, `quote`, `isqrt`
"""

from .core import PoolConfig, PoolEffect, PoolEngine, PoolEvent, load_pool_config
from .kernels.python.cpmm_swap import get_amount_in, get_amount_out
from .kernels.python.lp_math import isqrt, quote

__version__ = "0.1.0"

__all__ = [
    "PoolConfig",
    "PoolEffect",
    "PoolEngine",
    "PoolEvent",
    "load_pool_config",
    "get_amount_in",
    "get_amount_out",
    "isqrt",
    "quote",
]
