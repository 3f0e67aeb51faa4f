"""
Rolling-window technical indicators.

All functions are pure. Input shorter than the lookback yields an empty array
rather than an error; use latest() to read the newest value as Optional.
Outputs are aligned to the end of the input: element -1 is the value for the
most recent bar.
"""

from __future__ import annotations
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np
import pandas as pd

Series = Union[Sequence[float], np.ndarray]

_EMPTY = np.array([], dtype=float)


class BollingerBands(NamedTuple):
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")


def _as_array(series: Series) -> np.ndarray:
    return np.asarray(series, dtype=float)


def latest(values: np.ndarray) -> Optional[float]:
    """Newest value, or None when the indicator is not ready."""
    if len(values) == 0:
        return None
    value = float(values[-1])
    return None if np.isnan(value) else value


def sma(series: Series, period: int) -> np.ndarray:
    """Simple moving average per full window. Length max(0, n - period + 1)."""
    _check_period(period)
    data = _as_array(series)
    if len(data) < period:
        return _EMPTY.copy()
    return pd.Series(data).rolling(window=period).mean().to_numpy()[period - 1:]


def std_dev(series: Series, period: int) -> np.ndarray:
    """Population standard deviation over the same windows as sma()."""
    _check_period(period)
    data = _as_array(series)
    if len(data) < period:
        return _EMPTY.copy()
    return pd.Series(data).rolling(window=period).std(ddof=0).to_numpy()[period - 1:]


def bollinger_bands(series: Series, period: int, k: float) -> BollingerBands:
    """Middle = SMA, upper/lower = middle +/- k * sigma."""
    middle = sma(series, period)
    sigma = std_dev(series, period)
    return BollingerBands(upper=middle + k * sigma, middle=middle, lower=middle - k * sigma)


def rsi(series: Series, period: int) -> np.ndarray:
    """
    Wilder RSI. Seeds avg gain/loss with simple means of the first `period`
    deltas, then smooths with avg = (avg * (period - 1) + value) / period.

    A zero average loss is replaced by 1 before taking the ratio, so a
    straight run of gains reads below 100 instead of dividing by zero.
    Needs at least period + 1 points; output length is n - period.
    """
    _check_period(period)
    data = _as_array(series)
    if len(data) < period + 1:
        return _EMPTY.copy()
    deltas = np.diff(data)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out = np.empty(len(deltas) - period + 1, dtype=float)
    out[0] = _rsi_value(avg_gain, avg_loss)
    for j, i in enumerate(range(period, len(deltas)), start=1):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[j] = _rsi_value(avg_gain, avg_loss)
    return out


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    rs = avg_gain / (avg_loss if avg_loss != 0 else 1.0)
    return 100.0 - 100.0 / (1.0 + rs)


def ema(series: Series, period: int) -> np.ndarray:
    """
    Exponential moving average seeded with the first SMA window:
    ema[0] = sma[0], ema[i] = (x - ema[i-1]) * 2 / (period + 1) + ema[i-1].
    Length max(0, n - period + 1).
    """
    _check_period(period)
    data = _as_array(series)
    if len(data) < period:
        return _EMPTY.copy()
    seeded = np.concatenate((sma(data[:period], period), data[period:]))
    alpha = 2.0 / (period + 1)
    return pd.Series(seeded).ewm(alpha=alpha, adjust=False).mean().to_numpy()


def true_range(highs: Series, lows: Series, closes: Series) -> np.ndarray:
    """True range for bars 1..n-1 (needs the previous close)."""
    h, l, c = _as_array(highs), _as_array(lows), _as_array(closes)
    if not (len(h) == len(l) == len(c)):
        raise ValueError(f"highs/lows/closes length mismatch: {len(h)}/{len(l)}/{len(c)}")
    if len(c) < 2:
        return _EMPTY.copy()
    prev_close = c[:-1]
    return np.maximum.reduce([
        h[1:] - l[1:],
        np.abs(h[1:] - prev_close),
        np.abs(l[1:] - prev_close),
    ])


def atr(highs: Series, lows: Series, closes: Series, period: int) -> np.ndarray:
    """Average true range: ema() over true_range()."""
    _check_period(period)
    return ema(true_range(highs, lows, closes), period)
