"""Abstract strategy: bar-by-bar signal generation plus trade-history sizing."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable

from reversion_bot.core.types import Bar, Signal
from reversion_bot.risk.sizing import PerformanceCounters, PositionSizer


class BaseStrategy(ABC):
    """
    Strategy keeps its own rolling state and turns each closed bar into a Signal.
    Instances are not reentrant: feed bars one at a time from a single consumer.
    """

    def __init__(self, sizer: PositionSizer):
        self.sizer = sizer
        self.performance = PerformanceCounters()

    @abstractmethod
    def init_history(self, bars: Iterable[Bar]) -> None:
        """Seed rolling state from historical closed bars."""

    @abstractmethod
    def evaluate(self, bar: Bar) -> Signal:
        """Return the decision for this bar. Non-final bars yield NONE."""

    def update_performance(self, profit: float) -> None:
        """Record a closed trade's realized profit for adaptive sizing."""
        self.performance.record(profit)

    def calculate_position_size(self, balance: float) -> float:
        """Quote-currency amount to commit given the current balance."""
        return self.sizer.size(balance, self.performance)
