"""Utils: timeframes, exchange filters."""

from reversion_bot.utils.timeframes import timeframe_minutes, timeframe_ms, bars_for_days
from reversion_bot.utils.exchange_filters import (
    SymbolFilters,
    parse_symbol_filters,
    round_quantity,
    format_quantity,
)

__all__ = [
    "timeframe_minutes",
    "timeframe_ms",
    "bars_for_days",
    "SymbolFilters",
    "parse_symbol_filters",
    "round_quantity",
    "format_quantity",
]
