"""
Backtest engine: replays closed bars through a fresh strategy and a private
simulated position. Shares no state with the live PositionManager and does no
I/O inside the loop.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from reversion_bot.analytics.metrics import compute_metrics, PerformanceMetrics
from reversion_bot.core.config import Config, SizingMode
from reversion_bot.core.errors import MalformedBarError
from reversion_bot.core.types import Bar, ExitReason, Position, Trade
from reversion_bot.positions.manager import ratchet_stop
from reversion_bot.strategies.bollinger_rsi import BollingerRsiStrategy

logger = logging.getLogger("reversion_bot.backtest")

TRADE_COLUMNS = [
    "symbol", "amount", "entry_price", "exit_price", "profit", "profit_pct",
    "entry_time", "exit_time", "duration", "exit_reason",
]


@dataclass
class BacktestResult:
    """Backtest output: trades, equity curve, and metrics."""
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    metrics: Optional[PerformanceMetrics] = None
    initial_balance: float = 0.0
    final_balance: float = 0.0
    sizing_mode: SizingMode = SizingMode.FULL_BALANCE
    open_position: Optional[Position] = None  # left open at end of data, not force-closed

    def trades_frame(self) -> pd.DataFrame:
        return pd.DataFrame([t.to_dict() for t in self.trades], columns=TRADE_COLUMNS)


def _coerce_bars(bars: Iterable[Union[Bar, Mapping[str, Any]]]) -> List[Bar]:
    """Validate input up front so a malformed bar fails the run before any trade."""
    out: List[Bar] = []
    for i, raw in enumerate(bars):
        if isinstance(raw, Bar):
            bar = raw
        elif isinstance(raw, Mapping):
            bar = Bar.from_mapping(raw)
        else:
            raise MalformedBarError(f"bar #{i} has unsupported type {type(raw).__name__}")
        if out and bar.time < out[-1].time:
            raise MalformedBarError(f"bar #{i} at {bar.time} is older than the previous bar at {out[-1].time}")
        out.append(bar)
    return out


class BacktestEngine:
    """
    Bar-by-bar replay of the live decision flow.

    Exits: stop-loss against the bar low, then take-profit against the bar
    high, both at the levels held when the bar opened. A bar that touches
    both levels exits at the stop. The trailing stop is ratcheted on the close
    of a bar that did not exit. An exit bar is not evaluated for a new signal.
    """

    def __init__(self, config: Config):
        self.config = config

    def run(
        self,
        bars: Iterable[Union[Bar, Mapping[str, Any]]],
        initial_balance: Optional[float] = None,
    ) -> BacktestResult:
        cfg = self.config
        history = _coerce_bars(bars)
        balance = cfg.backtest_initial_balance if initial_balance is None else float(initial_balance)
        start_balance = balance
        logger.info("Starting backtest with %d candles (sizing=%s)", len(history), cfg.backtest_sizing.value)

        strategy = BollingerRsiStrategy(cfg)
        warmup = min(cfg.backtest_warmup, len(history))
        strategy.init_history(history[:warmup])

        trades: List[Trade] = []
        equity = [balance]
        position: Optional[Position] = None

        for bar in history[warmup:]:
            if position is not None:
                exit_ = self._exit_for_bar(position, bar)
                if exit_ is not None:
                    trade = self._close(position, exit_[0], exit_[1], bar)
                    trades.append(trade)
                    balance += trade.profit
                    strategy.update_performance(trade.profit)
                    equity.append(balance)
                    position = None
                    continue
                # Raised stop applies from the next bar
                ratchet_stop(position, bar.close, cfg.trailing_stop_percent)

            signal = strategy.evaluate(bar)
            if signal.is_buy and position is None:
                spend = strategy.calculate_position_size(balance)
                if spend < cfg.min_notional:
                    logger.debug("Position size %.2f below min notional %.2f, skipping BUY", spend, cfg.min_notional)
                    continue
                position = self._open(signal.price, signal.stop_loss, signal.take_profit, bar, balance, spend)
            elif signal.is_sell and position is not None:
                trade = self._close(position, bar.close, ExitReason.SIGNAL, bar)
                trades.append(trade)
                balance += trade.profit
                strategy.update_performance(trade.profit)
                equity.append(balance)
                position = None

        metrics = compute_metrics([t.profit for t in trades], equity, start_balance)
        _log_report(metrics)
        return BacktestResult(
            trades=trades,
            equity_curve=equity,
            metrics=metrics,
            initial_balance=start_balance,
            final_balance=balance,
            sizing_mode=cfg.backtest_sizing,
            open_position=position,
        )

    def _open(
        self,
        price: float,
        stop_loss: float,
        take_profit: float,
        bar: Bar,
        balance: float,
        spend: float,
    ) -> Position:
        # full_balance reinvests the running balance; fractional mirrors live sizing
        if self.config.backtest_sizing == SizingMode.FULL_BALANCE:
            amount = balance / price
        else:
            amount = spend / price
        return Position(
            symbol=self.config.symbol,
            amount=amount,
            entry_price=price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            highest_price=price,
            entry_time=bar.time,
        )

    @staticmethod
    def _exit_for_bar(position: Position, bar: Bar) -> Optional[Tuple[float, ExitReason]]:
        if bar.low <= position.stop_loss:
            return min(position.stop_loss, bar.open), ExitReason.STOP_LOSS
        if bar.high >= position.take_profit:
            return max(position.take_profit, bar.open), ExitReason.TAKE_PROFIT
        return None

    @staticmethod
    def _close(position: Position, exit_price: float, reason: ExitReason, bar: Bar) -> Trade:
        return Trade(
            symbol=position.symbol,
            amount=position.amount,
            entry_price=position.entry_price,
            exit_price=exit_price,
            profit=(exit_price - position.entry_price) * position.amount,
            profit_pct=(exit_price - position.entry_price) / position.entry_price * 100,
            entry_time=position.entry_time,
            exit_time=bar.time,
            duration=bar.time - position.entry_time,
            exit_reason=reason,
        )


def _log_report(m: PerformanceMetrics) -> None:
    pf = "inf" if m.profit_factor == float("inf") else f"{m.profit_factor:.2f}"
    logger.info("=== BACKTEST RESULTS ===")
    logger.info("Total trades: %d (wins: %d, losses: %d)", m.total_trades, m.wins, m.losses)
    logger.info("Win rate: %.2f%%", m.win_rate)
    logger.info("Total return: %.2f (%.2f%%)", m.total_return, m.total_return_pct)
    logger.info("Max drawdown: %.2f%%", m.max_drawdown_pct)
    logger.info("Sharpe ratio: %.2f", m.sharpe_ratio)
    logger.info("Avg win: %.2f | Avg loss: %.2f | Profit factor: %s", m.avg_win, m.avg_loss, pf)
