"""Execution: exchange abstraction and Binance spot implementation."""

from reversion_bot.execution.base import ExecutionClient, OrderResult
from reversion_bot.execution.binance_spot import BinanceSpotClient, average_fill_price

__all__ = ["ExecutionClient", "OrderResult", "BinanceSpotClient", "average_fill_price"]
