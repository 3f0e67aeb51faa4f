"""Live trading: kline stream producer and single-consumer trader."""

from reversion_bot.live.stream import KlineStream, bar_from_kline_message
from reversion_bot.live.trader import LiveTrader

__all__ = ["KlineStream", "bar_from_kline_message", "LiveTrader"]
