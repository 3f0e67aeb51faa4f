"""
Position sizing: fixed fraction of balance, or a fractional Kelly size once
enough closed trades have been recorded.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

logger = logging.getLogger("reversion_bot.risk")


def risk_reward_ratio(entry: float, stop: float, take_profit: float) -> float:
    """Reward/risk for a long entry. 0.0 when the stop is not below entry."""
    risk = entry - stop
    if risk <= 0:
        return 0.0
    return (take_profit - entry) / risk


@dataclass
class PerformanceCounters:
    """Running win/loss tally used by adaptive sizing. Never reset during a run."""
    wins: int = 0
    losses: int = 0
    total_win_amount: float = 0.0
    total_loss_amount: float = 0.0

    def record(self, profit: float) -> None:
        """Count a closed trade. Break-even trades count as losses."""
        if profit > 0:
            self.wins += 1
            self.total_win_amount += profit
        else:
            self.losses += 1
            self.total_loss_amount += abs(profit)

    @property
    def total_trades(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        total = self.total_trades
        return self.wins / total if total else 0.0

    @property
    def avg_win(self) -> float:
        return self.total_win_amount / self.wins if self.wins else 0.0

    @property
    def avg_loss(self) -> float:
        return self.total_loss_amount / self.losses if self.losses else 0.0


class PositionSizer:
    """
    Quote-currency amount to commit per trade.
    Default: balance * risk_per_trade. With Kelly enabled and at least
    min_trades recorded: balance * clamp(kelly * kelly_fraction, 0, max_fraction).
    """

    def __init__(
        self,
        risk_per_trade: float,
        use_kelly: bool = False,
        kelly_fraction: float = 0.25,
        min_trades: int = 10,
        max_fraction: float = 0.1,
    ):
        self.risk_per_trade = risk_per_trade
        self.use_kelly = use_kelly
        self.kelly_fraction = kelly_fraction
        self.min_trades = min_trades
        self.max_fraction = max_fraction

    def size(self, balance: float, counters: PerformanceCounters) -> float:
        fixed = balance * self.risk_per_trade
        if not self.use_kelly or counters.total_trades < self.min_trades:
            return fixed

        fraction = self.kelly(counters)
        adjusted = max(0.0, min(fraction * self.kelly_fraction, self.max_fraction))
        logger.info(
            "Kelly sizing | win_rate=%.1f%% avg_win=%.2f avg_loss=%.2f fraction=%.2f%%",
            counters.win_rate * 100, counters.avg_win, counters.avg_loss, adjusted * 100,
        )
        return balance * adjusted

    @staticmethod
    def kelly(counters: PerformanceCounters) -> float:
        """Full Kelly fraction (p * b - q) / b with b = avg_win / avg_loss."""
        p = counters.win_rate
        if counters.avg_loss == 0:
            # No recorded loss amount: the payoff ratio is unbounded
            return 1.0 if counters.avg_win > 0 else 0.0
        b = counters.avg_win / counters.avg_loss
        if b == 0:
            return 0.0
        return (p * b - (1 - p)) / b
