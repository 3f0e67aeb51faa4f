"""Strategies: base interface and implementations."""

from reversion_bot.strategies.base import BaseStrategy
from reversion_bot.strategies.bollinger_rsi import BollingerRsiStrategy, IndicatorSnapshot

__all__ = ["BaseStrategy", "BollingerRsiStrategy", "IndicatorSnapshot"]
