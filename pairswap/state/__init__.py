"""
State management for the pool: balances, shares, reserves.
"""

from .balances import BalanceTable
from .pool import PoolState, UINT112_MAX, narrow_reserve, pool_state_digest, state_from_dict, state_to_dict
from .shares import ShareTable

__all__ = [
    "BalanceTable",
    "PoolState",
    "ShareTable",
    "UINT112_MAX",
    "narrow_reserve",
    "pool_state_digest",
    "state_from_dict",
    "state_to_dict",
]
