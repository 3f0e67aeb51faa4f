"""Timeframe labels ('1m', '15m', '1h', '1d', '1w') to durations."""

_UNIT_MINUTES = {"m": 1, "h": 60, "d": 60 * 24, "w": 60 * 24 * 7}


def timeframe_minutes(tf: str) -> int:
    """Convert a Binance-style timeframe to minutes."""
    tf = tf.strip().lower()
    unit = tf[-1:] if tf else ""
    if unit not in _UNIT_MINUTES or not tf[:-1].isdigit() or int(tf[:-1]) <= 0:
        raise ValueError(f"Unsupported timeframe: {tf!r}")
    return int(tf[:-1]) * _UNIT_MINUTES[unit]


def timeframe_ms(tf: str) -> int:
    return timeframe_minutes(tf) * 60_000


def bars_for_days(days: int, tf: str) -> int:
    """Number of candles of timeframe `tf` covering `days` days (at least 1)."""
    return max(1, days * 24 * 60 // timeframe_minutes(tf))
