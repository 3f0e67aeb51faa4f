"""Convert OHLCV tables into Bars. Missing columns or values fail fast."""

from __future__ import annotations
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from reversion_bot.core.errors import MalformedBarError
from reversion_bot.core.types import Bar

REQUIRED_COLUMNS = ("time", "open", "high", "low", "close", "volume")


def _datetimes_to_ms(col: pd.Series) -> pd.Series:
    if col.dt.tz is not None:
        col = col.dt.tz_convert("UTC").dt.tz_localize(None)
    return (col - pd.Timestamp(0)) // pd.Timedelta(milliseconds=1)


def _to_epoch_ms(col: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(col):
        return _datetimes_to_ms(col)
    if pd.api.types.is_numeric_dtype(col):
        return col
    # ISO strings
    parsed = pd.to_datetime(col, utc=True, errors="coerce")
    if parsed.isna().any():
        bad = col[parsed.isna()].iloc[0]
        raise MalformedBarError(f"unparseable time value {bad!r}")
    return _datetimes_to_ms(parsed)


def bars_from_frame(df: pd.DataFrame) -> List[Bar]:
    """
    Build Bars from a DataFrame with time/open/high/low/close/volume columns.
    `time` may be epoch ms, datetimes, or ISO strings. An optional is_final
    column is honoured; otherwise every row is treated as closed.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise MalformedBarError(f"missing columns: {', '.join(missing)}")
    if df.empty:
        return []
    nulls = df[list(REQUIRED_COLUMNS)].isna().any()
    if nulls.any():
        raise MalformedBarError(f"null values in: {', '.join(nulls[nulls].index)}")

    frame = df.copy()
    frame["time"] = _to_epoch_ms(frame["time"])
    if "is_final" not in frame.columns:
        frame["is_final"] = True
    return [Bar.from_mapping(row) for row in frame.to_dict("records")]


def load_bars_csv(path: Path) -> List[Bar]:
    """Read an OHLCV CSV (header row required) into chronological Bars."""
    df = pd.read_csv(path)
    bars = bars_from_frame(df)
    bars.sort(key=lambda b: b.time)
    return bars


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    return pd.DataFrame(
        [(b.time, b.open, b.high, b.low, b.close, b.volume, b.is_final) for b in bars],
        columns=[*REQUIRED_COLUMNS, "is_final"],
    )
