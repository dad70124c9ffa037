"""Exception types for the pool engine and its kernels.

Every failure is a precondition-style rejection: the operation aborts, any
partial effect is rolled back, and the error propagates to the caller as-is.
``code`` is a stable identifier suitable for matching in tests and logs.
"""

from __future__ import annotations


class PoolError(ValueError):
    """Base class for all pool rejections."""

    code = "PoolError"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class Expired(PoolError):
    """Raised when the current time is past the caller's deadline."""

    code = "Expired"


class IdenticalAssets(PoolError):
    """Raised at construction when both pool assets are the same."""

    code = "IdenticalAssets"


class InvalidTokenPair(PoolError):
    """Raised when a swap names assets other than the pool's pair."""

    code = "InvalidTokenPair"


class InvalidPair(PoolError):
    """Raised when a price query names assets other than the pool's pair."""

    code = "InvalidPair"


class SlippageA(PoolError):
    code = "SlippageA"


class SlippageB(PoolError):
    code = "SlippageB"


class Slippage(PoolError):
    """Raised when a liquidity removal would pay out less than the caller's minimums."""

    code = "Slippage"


class InsufficientLiquidity(PoolError):
    """Raised when a provision would mint zero shares."""

    code = "InsufficientLiquidity"


class InvalidLiquidity(PoolError):
    """Raised when a burn is zero or exceeds the holder's shares."""

    code = "InvalidLiquidity"


class ZeroAmountIn(PoolError):
    code = "ZeroAmountIn"


class InvalidRecipient(PoolError):
    code = "InvalidRecipient"


class InsufficientOutput(PoolError):
    """Raised when a swap would pay out less than ``amount_out_min`` (or nothing)."""

    code = "InsufficientOutput"


class InvalidInputs(PoolError):
    """Raised when a pricing function gets a zero reserve or a zero amount."""

    code = "InvalidInputs"


class ReserveOverflow(PoolError):
    """Raised when a reserve does not fit the narrow storage width."""

    code = "ReserveOverflow"


class InvariantViolation(PoolError):
    """Raised when a post-state violates one or more pool invariants."""

    code = "InvariantViolation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
