"""Indicators: pure rolling-window technical indicators."""

from reversion_bot.indicators.technical import (
    BollingerBands,
    latest,
    sma,
    std_dev,
    bollinger_bands,
    rsi,
    ema,
    true_range,
    atr,
)

__all__ = [
    "BollingerBands",
    "latest",
    "sma",
    "std_dev",
    "bollinger_bands",
    "rsi",
    "ema",
    "true_range",
    "atr",
]
