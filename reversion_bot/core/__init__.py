"""Core: config, types, buffers, errors, logging."""

from reversion_bot.core.config import load_config, Config, SizingMode
from reversion_bot.core.types import Bar, Signal, SignalSide, SkipReason, ExitReason, Position, Trade
from reversion_bot.core.buffers import RollingBuffer
from reversion_bot.core.errors import ReversionBotError, MalformedBarError, MarketDataError, ExecutionError
from reversion_bot.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "SizingMode",
    "Bar",
    "Signal",
    "SignalSide",
    "SkipReason",
    "ExitReason",
    "Position",
    "Trade",
    "RollingBuffer",
    "ReversionBotError",
    "MalformedBarError",
    "MarketDataError",
    "ExecutionError",
    "setup_logging",
]
