"""Data: bar loading from tables/CSV and Binance public klines."""

from reversion_bot.data.bars import bars_from_frame, bars_to_frame, load_bars_csv
from reversion_bot.data.binance_rest import fetch_klines, fetch_klines_multi, parse_kline_row

__all__ = [
    "bars_from_frame",
    "bars_to_frame",
    "load_bars_csv",
    "fetch_klines",
    "fetch_klines_multi",
    "parse_kline_row",
]
