"""Exception hierarchy for the arbitrage fee hook.

Degenerate arithmetic (zero volume, zero value), declined arbitrage and
nested pipeline entry are normal outcomes and never raise.
"""

from typing import Any, Optional


class ArbHookError(Exception):
    """Base exception for all hook related errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbHookError):
    """Pool missing, not configured, already configured or mismatched."""

    def __init__(
        self,
        message: str,
        pool_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool_id = pool_id


class AuthorizationError(ArbHookError):
    """Caller is not allowed to perform a restricted operation."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.caller = caller


class ValidationError(ArbHookError):
    """An administrative argument is out of bounds or malformed."""

    pass


class InvariantViolation(ArbHookError):
    """An internal invariant did not hold. Indicates a defect, never retried."""

    pass


class ProfitInvariantViolation(InvariantViolation):
    """An approved arbitrage produced a negative profit."""

    def __init__(
        self,
        message: str,
        expected: Optional[Any] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.actual = actual


class CurrencyNotSettled(ArbHookError):
    """The engine still holds non-zero deltas at the end of an operation."""

    pass
