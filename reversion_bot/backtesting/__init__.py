"""Backtesting engine: bar-by-bar replay of the live decision flow."""

from reversion_bot.backtesting.engine import BacktestEngine, BacktestResult

__all__ = ["BacktestEngine", "BacktestResult"]
