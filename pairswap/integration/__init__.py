"""
Imperative-shell adapters around the pool engine.
"""

from .memory import InMemoryAssetLedger, ManualClock, SystemClock

__all__ = [
    "InMemoryAssetLedger",
    "ManualClock",
    "SystemClock",
]
