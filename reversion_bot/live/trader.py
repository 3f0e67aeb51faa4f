"""
Live trading loop. One consumer takes bars off a queue in arrival order and
runs the same decision flow the backtester replays:
trailing stop -> stop loss -> take profit (every update) -> evaluate (closed bars).
"""

from __future__ import annotations
import logging
import queue
from typing import Iterable, Mapping, Optional

from reversion_bot.core.config import Config
from reversion_bot.core.errors import ExecutionError
from reversion_bot.core.types import Bar, ExitReason, Signal, Trade
from reversion_bot.execution.base import ExecutionClient
from reversion_bot.positions.manager import PositionManager
from reversion_bot.strategies.base import BaseStrategy

logger = logging.getLogger("reversion_bot.live")


class LiveTrader:
    """Wires strategy, position manager, and execution client together."""

    def __init__(
        self,
        config: Config,
        strategy: BaseStrategy,
        positions: PositionManager,
        execution: ExecutionClient,
    ):
        self.config = config
        self.strategy = strategy
        self.positions = positions
        self.execution = execution

    def start(
        self,
        history: Iterable[Bar],
        multi_timeframe: Optional[Mapping[str, Iterable[Bar]]] = None,
    ) -> None:
        self.strategy.init_history(history)
        if multi_timeframe and hasattr(self.strategy, "init_multi_timeframe"):
            self.strategy.init_multi_timeframe(multi_timeframe)
        balance = self.execution.get_balance(self.config.quote_asset)
        logger.info("Initial balance: %.2f %s", balance, self.config.quote_asset)
        if self.positions.has_position():
            pos = self.positions.get_position()
            logger.info("Resuming open position | amount=%.8f entry=%.4f stop=%.4f", pos.amount, pos.entry_price, pos.stop_loss)

    def run(self, bar_queue: "queue.Queue[Optional[Bar]]") -> None:
        """Consume bars until a None sentinel arrives. Bars are handled strictly one at a time."""
        while True:
            bar = bar_queue.get()
            try:
                if bar is None:
                    logger.info("Bar queue closed, stopping consumer")
                    return
                self.handle_bar(bar)
            except Exception as e:
                logger.exception("Live loop error: %s", e)
            finally:
                bar_queue.task_done()

    def handle_bar(self, bar: Bar) -> Optional[Signal]:
        """Process one bar update. Returns the strategy signal, or None when an exit consumed the bar."""
        cfg = self.config
        price = bar.close

        if self.positions.has_position():
            self.positions.update_trailing_stop(price, cfg.trailing_stop_percent)
            if self.positions.check_stop_loss(price):
                logger.warning("Stop loss triggered at %.4f", price)
                self._exit(price, ExitReason.STOP_LOSS)
                return None
            if self.positions.check_take_profit(price):
                logger.info("Take profit triggered at %.4f", price)
                self._exit(price, ExitReason.TAKE_PROFIT)
                return None

        signal = self.strategy.evaluate(bar)
        if signal.is_buy and not self.positions.has_position():
            self._enter(signal)
        elif signal.is_sell and self.positions.has_position():
            self._exit(price, ExitReason.SIGNAL)
        return signal

    def _enter(self, signal: Signal) -> None:
        cfg = self.config
        balance = self.execution.get_balance(cfg.quote_asset)
        spend = self.strategy.calculate_position_size(balance)
        if spend < cfg.min_notional:
            logger.warning("Insufficient funds or position size too small: %.2f %s", spend, cfg.quote_asset)
            return
        base_amount = spend / signal.price
        try:
            order = self.execution.buy(base_amount)
        except ExecutionError as e:
            logger.error("Failed to execute BUY: %s", e)
            return
        entry = order.fill_price_or(signal.price)
        stop_loss, take_profit = signal.stop_loss, signal.take_profit
        if not stop_loss < entry < take_profit:
            # Slipped outside the band: keep the signal's distances around the fill
            stop_loss = entry - (signal.price - signal.stop_loss)
            take_profit = entry + (signal.take_profit - signal.price)
            logger.warning(
                "BUY filled at %.4f outside signal levels, moved to stop=%.4f target=%.4f",
                entry, stop_loss, take_profit,
            )
        self.positions.open_position(order.amount or base_amount, entry, stop_loss, take_profit, cfg.symbol)

    def _exit(self, price: float, reason: ExitReason) -> Optional[Trade]:
        pos = self.positions.get_position()
        if pos is None:
            return None
        try:
            order = self.execution.sell(pos.amount)
        except ExecutionError as e:
            logger.error("Failed to execute %s exit: %s", reason.value, e)
            return None
        trade = self.positions.close_position(order.fill_price_or(price), reason)
        if trade is None:
            return None
        self.strategy.update_performance(trade.profit)
        balance = self.execution.get_balance(self.config.quote_asset)
        stats = self.positions.get_stats()
        logger.info(
            "Balance after %s exit: %.2f %s | profit=%.2f (%.2f%%) | trades=%d win_rate=%.1f%% total_profit=%.2f",
            reason.value, balance, self.config.quote_asset, trade.profit, trade.profit_pct,
            stats.total_trades, stats.win_rate, stats.total_profit,
        )
        return trade
