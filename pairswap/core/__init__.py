"""
Pool engine and its supporting types.
"""

from .atomic import atomic
from .config import PoolConfig, load_pool_config
from .engine import PoolEngine
from .events import PoolEffect, PoolEvent
from .invariants import check_all, k_non_decreasing
from .ports import AssetTransferPort, Clock, ShareLedgerPort, Transactional

__all__ = [
    "atomic",
    "PoolConfig",
    "load_pool_config",
    "PoolEngine",
    "PoolEffect",
    "PoolEvent",
    "check_all",
    "k_non_decreasing",
    "AssetTransferPort",
    "Clock",
    "ShareLedgerPort",
    "Transactional",
]
