"""
Core data types for bars, signals, positions, and trades.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Mapping, Optional

from reversion_bot.core.errors import MalformedBarError

_PRICE_FIELDS = ("open", "high", "low", "close", "volume")


class SignalSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"


class SkipReason(str, Enum):
    """Why evaluate() produced no trade decision."""
    NOT_FINAL = "not_final"
    BUFFERING = "buffering"
    INDICATORS_UNAVAILABLE = "indicators_unavailable"
    INVALID_STOP = "invalid_stop"
    RISK_REWARD_REJECTED = "risk_reward_rejected"
    NO_SETUP = "no_setup"


class ExitReason(str, Enum):
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SIGNAL = "signal"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle. time is the bar open time in epoch milliseconds."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    is_final: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Bar":
        """Build a Bar from a dict-like record, failing fast on missing or non-numeric fields."""
        if "time" not in data or data["time"] is None:
            raise MalformedBarError("bar is missing 'time'")
        try:
            ts = int(data["time"])
        except (TypeError, ValueError) as e:
            raise MalformedBarError(f"bar has invalid time {data['time']!r}") from e
        values = {}
        for name in _PRICE_FIELDS:
            if name not in data or data[name] is None:
                raise MalformedBarError(f"bar at {ts} is missing '{name}'")
            try:
                value = float(data[name])
            except (TypeError, ValueError) as e:
                raise MalformedBarError(f"bar at {ts} has non-numeric {name}={data[name]!r}") from e
            if math.isnan(value):
                raise MalformedBarError(f"bar at {ts} has NaN {name}")
            values[name] = value
        return cls(time=ts, is_final=bool(data.get("is_final", True)), **values)


@dataclass(frozen=True)
class Signal:
    """Decision for one bar. BUY carries stop_loss and take_profit; NONE carries skip_reason."""
    side: SignalSide
    price: float = 0.0
    timestamp: int = 0
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    reason: str = ""
    skip_reason: Optional[SkipReason] = None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def none(cls, skip_reason: SkipReason, bar: Optional[Bar] = None, reason: str = "", **metadata: Any) -> "Signal":
        return cls(
            side=SignalSide.NONE,
            price=bar.close if bar else 0.0,
            timestamp=bar.time if bar else 0,
            reason=reason or skip_reason.value,
            skip_reason=skip_reason,
            metadata=metadata,
        )

    @property
    def is_buy(self) -> bool:
        return self.side == SignalSide.BUY

    @property
    def is_sell(self) -> bool:
        return self.side == SignalSide.SELL


@dataclass
class Position:
    """Open long position. stop_loss only ever moves up."""
    symbol: str
    amount: float
    entry_price: float
    stop_loss: float
    take_profit: float
    highest_price: float
    entry_time: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Position":
        return cls(
            symbol=str(data["symbol"]),
            amount=float(data["amount"]),
            entry_price=float(data["entry_price"]),
            stop_loss=float(data["stop_loss"]),
            take_profit=float(data["take_profit"]),
            highest_price=float(data["highest_price"]),
            entry_time=int(data["entry_time"]),
        )


@dataclass
class Trade:
    """Closed trade for analytics. Times in epoch ms, duration in ms."""
    symbol: str
    amount: float
    entry_price: float
    exit_price: float
    profit: float
    profit_pct: float
    entry_time: int
    exit_time: int
    duration: int
    exit_reason: ExitReason

    def to_dict(self) -> dict:
        data = asdict(self)
        data["exit_reason"] = self.exit_reason.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trade":
        return cls(
            symbol=str(data.get("symbol", "")),
            amount=float(data["amount"]),
            entry_price=float(data["entry_price"]),
            exit_price=float(data["exit_price"]),
            profit=float(data["profit"]),
            profit_pct=float(data["profit_pct"]),
            entry_time=int(data["entry_time"]),
            exit_time=int(data["exit_time"]),
            duration=int(data["duration"]),
            exit_reason=ExitReason(data["exit_reason"]),
        )
