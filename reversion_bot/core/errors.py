"""Exception types raised across the bot."""

from __future__ import annotations


class ReversionBotError(Exception):
    """Base class for bot errors."""


class MalformedBarError(ReversionBotError, ValueError):
    """A bar is missing a required field or carries a non-numeric value."""


class MarketDataError(ReversionBotError):
    """Historical market data could not be fetched or parsed."""


class ExecutionError(ReversionBotError):
    """Order placement failed. No position state has been changed."""

    def __init__(self, message: str, side: str = "", amount: float = 0.0):
        super().__init__(message)
        self.side = side
        self.amount = amount
