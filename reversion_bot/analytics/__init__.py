"""Analytics: performance metrics (Sharpe, max drawdown, win rate, profit factor)."""

from reversion_bot.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    average,
    win_rate,
    profit_factor,
    max_drawdown,
    period_returns,
    sharpe_ratio,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "average",
    "win_rate",
    "profit_factor",
    "max_drawdown",
    "period_returns",
    "sharpe_ratio",
]
