"""Positions: single-position lifecycle and durable trade history."""

from reversion_bot.positions.manager import PositionManager, TradeStats, ratchet_stop

__all__ = ["PositionManager", "TradeStats", "ratchet_stop"]
