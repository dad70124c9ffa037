"""
Kernel layer.

Deterministic, integer-only math used by the pool engine. Kernels are pure:
they never touch balances or share ledgers, only compute amounts.
"""
