"""
Single-position lifecycle: open, trailing-stop ratchet, stop/target checks,
close into a Trade. Position snapshot and trade history are persisted as JSON
and rewritten in full on every mutation. Write failures are logged; the
in-memory state stays authoritative.
"""

from __future__ import annotations
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from reversion_bot.analytics.metrics import average, win_rate
from reversion_bot.core.types import ExitReason, Position, Trade

logger = logging.getLogger("reversion_bot.positions")

POSITION_FILE = "position_state.json"
TRADES_FILE = "trades.json"


def now_ms() -> int:
    return int(time.time() * 1000)


def ratchet_stop(position: Position, current_price: float, trailing_percent: float) -> bool:
    """
    Raise highest_price on a new high and pull the stop up behind it.
    The stop never moves down. Returns True when the stop moved.
    """
    if current_price <= position.highest_price:
        return False
    position.highest_price = current_price
    candidate = current_price * (1 - trailing_percent / 100)
    if candidate > position.stop_loss:
        position.stop_loss = candidate
        return True
    return False


@dataclass
class TradeStats:
    """Aggregate statistics over the trade history."""
    total_trades: int = 0
    win_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    total_profit: float = 0.0
    total_profit_pct: float = 0.0


class PositionManager:
    """Owns the one open position and the durable trade history."""

    def __init__(self, state_dir: Path, clock: Callable[[], int] = now_ms):
        self.state_dir = Path(state_dir)
        self.position_file = self.state_dir / POSITION_FILE
        self.trades_file = self.state_dir / TRADES_FILE
        self._clock = clock
        self._position: Optional[Position] = None
        self._trades: List[Trade] = []
        self._load_state()
        self._load_trades()

    # --- persistence ---

    def _load_state(self) -> None:
        if not self.position_file.exists():
            return
        try:
            data = json.loads(self.position_file.read_text(encoding="utf-8"))
            self._position = Position.from_dict(data) if data else None
            if self._position:
                logger.info("Loaded open position from %s", self.position_file)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load position state: %s", e)

    def _load_trades(self) -> None:
        if not self.trades_file.exists():
            return
        try:
            data = json.loads(self.trades_file.read_text(encoding="utf-8"))
            self._trades = [Trade.from_dict(t) for t in data or []]
            logger.info("Loaded %d trades from history", len(self._trades))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load trades history: %s", e)

    def _write_json(self, path: Path, payload) -> None:
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, TypeError) as e:
            logger.error("Failed to save %s: %s", path.name, e)

    def _save_state(self) -> None:
        self._write_json(self.position_file, self._position.to_dict() if self._position else None)

    def _save_trades(self) -> None:
        self._write_json(self.trades_file, [t.to_dict() for t in self._trades])

    # --- lifecycle ---

    def has_position(self) -> bool:
        return self._position is not None

    def get_position(self) -> Optional[Position]:
        return self._position

    def get_trades(self) -> List[Trade]:
        return list(self._trades)

    def open_position(
        self,
        amount: float,
        entry_price: float,
        stop_loss: float,
        take_profit: float,
        symbol: str,
    ) -> Position:
        """Open a long position. Raises ValueError if one is already open or the levels are out of order."""
        if self._position is not None:
            raise ValueError(f"position already open for {self._position.symbol}")
        if not stop_loss < entry_price < take_profit:
            raise ValueError(
                f"expected stop_loss < entry_price < take_profit, got {stop_loss} / {entry_price} / {take_profit}"
            )
        self._position = Position(
            symbol=symbol,
            amount=amount,
            entry_price=entry_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            highest_price=entry_price,
            entry_time=self._clock(),
        )
        self._save_state()
        logger.info(
            "Position opened | %s amount=%.8f entry=%.4f stop=%.4f (-%.2f%%) target=%.4f (+%.2f%%)",
            symbol, amount, entry_price,
            stop_loss, (entry_price - stop_loss) / entry_price * 100,
            take_profit, (take_profit - entry_price) / entry_price * 100,
        )
        return self._position

    def update_trailing_stop(self, current_price: float, trailing_percent: float) -> bool:
        if self._position is None:
            return False
        moved = ratchet_stop(self._position, current_price, trailing_percent)
        if moved:
            self._save_state()
            logger.info(
                "Trailing stop updated | stop=%.4f highest=%.4f",
                self._position.stop_loss, self._position.highest_price,
            )
        return moved

    def check_stop_loss(self, current_price: float) -> bool:
        return self._position is not None and current_price <= self._position.stop_loss

    def check_take_profit(self, current_price: float) -> bool:
        return self._position is not None and current_price >= self._position.take_profit

    def close_position(self, exit_price: float, exit_reason: ExitReason) -> Optional[Trade]:
        """Close the open position into a Trade. No-op returning None when flat."""
        pos = self._position
        if pos is None:
            return None
        exit_time = self._clock()
        trade = Trade(
            symbol=pos.symbol,
            amount=pos.amount,
            entry_price=pos.entry_price,
            exit_price=exit_price,
            profit=(exit_price - pos.entry_price) * pos.amount,
            profit_pct=(exit_price - pos.entry_price) / pos.entry_price * 100,
            entry_time=pos.entry_time,
            exit_time=exit_time,
            duration=exit_time - pos.entry_time,
            exit_reason=ExitReason(exit_reason),
        )
        self._trades.append(trade)
        self._save_trades()
        self._position = None
        self._save_state()
        logger.info(
            "Position closed | exit=%.4f profit=%.2f (%.2f%%) reason=%s duration=%.1fmin",
            exit_price, trade.profit, trade.profit_pct, trade.exit_reason.value, trade.duration / 60000,
        )
        return trade

    def get_stats(self) -> TradeStats:
        if not self._trades:
            return TradeStats()
        profits = [t.profit for t in self._trades]
        return TradeStats(
            total_trades=len(self._trades),
            win_rate=win_rate(profits),
            avg_win=average([p for p in profits if p > 0]),
            avg_loss=average([p for p in profits if p <= 0]),
            total_profit=sum(profits),
            total_profit_pct=sum(t.profit_pct for t in self._trades),
        )
