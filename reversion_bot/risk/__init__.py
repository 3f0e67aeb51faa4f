"""Risk: performance counters, position sizing, reward/risk."""

from reversion_bot.risk.sizing import PerformanceCounters, PositionSizer, risk_reward_ratio

__all__ = ["PerformanceCounters", "PositionSizer", "risk_reward_ratio"]
