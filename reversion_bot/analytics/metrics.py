"""
Performance metrics: win rate, profit factor, max drawdown, Sharpe.
Equity curves are account balances sampled after each closed trade.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics for a backtest."""
    total_trades: int
    wins: int
    losses: int
    win_rate: float  # percent
    total_return: float
    total_return_pct: float
    max_drawdown_pct: float
    sharpe_ratio: float
    avg_win: float
    avg_loss: float
    profit_factor: float


def average(values: Sequence[float]) -> float:
    """Mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def win_rate(profits: Sequence[float]) -> float:
    """Percent of trades with positive profit."""
    if not profits:
        return 0.0
    return sum(1 for p in profits if p > 0) / len(profits) * 100


def profit_factor(profits: Sequence[float]) -> float:
    """|gross win / gross loss|. inf with wins and no losses, 0 with no wins."""
    gross_win = sum(p for p in profits if p > 0)
    gross_loss = sum(p for p in profits if p <= 0)
    if gross_win <= 0:
        return 0.0
    if gross_loss == 0:
        return float("inf")
    return abs(gross_win / gross_loss)


def max_drawdown(equity: Sequence[float]) -> float:
    """Largest peak-to-trough decline of the equity curve, in percent (positive)."""
    if len(equity) == 0:
        return 0.0
    arr = np.asarray(equity, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = np.where(peak > 0, (peak - arr) / np.where(peak > 0, peak, 1), 0.0)
    return float(dd.max()) * 100.0


def period_returns(equity: Sequence[float]) -> List[float]:
    """Fractional change between consecutive equity points. Zero balances are skipped."""
    out = []
    for prev, curr in zip(equity[:-1], equity[1:]):
        if prev and curr:
            out.append((curr - prev) / prev)
    return out


def sharpe_ratio(returns: Sequence[float], periods_per_year: float = 252.0) -> float:
    """Annualized Sharpe: mean / population std * sqrt(periods_per_year)."""
    if not returns:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = arr.std()
    if std <= 1e-12:
        return 0.0
    return float(arr.mean() / std * np.sqrt(periods_per_year))


def compute_metrics(
    profits: Sequence[float],
    equity: Sequence[float],
    initial_balance: float,
    periods_per_year: float = 252.0,
) -> PerformanceMetrics:
    """Compute the full report from per-trade profits and the equity curve."""
    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p <= 0]
    final_balance = equity[-1] if len(equity) else initial_balance
    total_return = final_balance - initial_balance
    return PerformanceMetrics(
        total_trades=len(profits),
        wins=len(wins),
        losses=len(losses),
        win_rate=win_rate(profits),
        total_return=total_return,
        total_return_pct=total_return / initial_balance * 100 if initial_balance else 0.0,
        max_drawdown_pct=max_drawdown(equity),
        sharpe_ratio=sharpe_ratio(period_returns(equity), periods_per_year),
        avg_win=average(wins),
        avg_loss=average(losses),
        profit_factor=profit_factor(profits),
    )
