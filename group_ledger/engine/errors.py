"""
Errors raised by the ledger engine.

Every engine error is a ValueError, so callers that already
translate ValueError into a "bad request" keep working. None
of these are fatal: they describe one bad value and go back
to the immediate caller, who should re-prompt.
"""


class LedgerError(ValueError):
    """Root of all engine errors."""


# --- Money ---

class MoneyError(LedgerError):
    """A monetary value could not be built or combined."""


class InvalidMagnitude(MoneyError):
    """Negative, NaN, infinite or over-precise amount."""


class CurrencyMismatch(MoneyError):
    """Arithmetic between two different currencies."""


# --- Split parsing ---

class SplitError(LedgerError):
    """The split tokens cannot be turned into per-user amounts."""


class PercentageOverflow(SplitError):
    pass


class FixedAmountOverflow(SplitError):
    pass


class InvalidToken(SplitError):
    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid split token '{token}': {reason}")


class NoParticipants(SplitError):
    pass


class UnallocatedRemainder(SplitError):
    """Part of the total is left with nobody to carry it."""


# --- Aggregation ---

class ConservationError(LedgerError):
    """Net balances in a scope do not sum to zero."""
