"""
Historical klines from the Binance public REST API (no keys needed).
Historical candles are returned as closed bars in chronological order.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

import requests

from reversion_bot.core.errors import MalformedBarError, MarketDataError
from reversion_bot.core.types import Bar

logger = logging.getLogger("reversion_bot.data.binance")

BASE_URL = "https://api.binance.com"
KLINES_ENDPOINT = "/api/v3/klines"
MAX_LIMIT = 1000


def parse_kline_row(row: list) -> Bar:
    """REST kline row: [open_time, open, high, low, close, volume, close_time, ...]."""
    if not isinstance(row, (list, tuple)) or len(row) < 6:
        raise MalformedBarError(f"unexpected kline row: {row!r}")
    return Bar.from_mapping({
        "time": row[0],
        "open": row[1],
        "high": row[2],
        "low": row[3],
        "close": row[4],
        "volume": row[5],
        "is_final": True,
    })


def _get(session: requests.Session, url: str, params: dict, timeout: float) -> list:
    try:
        r = session.get(url, params=params, timeout=timeout)
        r.raise_for_status()
        data = r.json()
    except requests.RequestException as e:
        raise MarketDataError(f"kline request failed: {e}") from e
    except ValueError as e:
        raise MarketDataError(f"kline response is not JSON: {e}") from e
    if not isinstance(data, list):
        raise MarketDataError(f"unexpected kline response: {str(data)[:200]}")
    return data


def fetch_klines(
    symbol: str,
    interval: str,
    limit: int = 500,
    base_url: str = BASE_URL,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> List[Bar]:
    """
    Fetch the most recent `limit` klines. Requests are paged backwards in
    chunks of 1000 (the endpoint maximum) using endTime.
    """
    session = session or requests.Session()
    url = f"{base_url}{KLINES_ENDPOINT}"
    symbol = symbol.replace("/", "").upper()
    logger.info("Fetching %d %s klines for %s", limit, interval, symbol)

    bars: List[Bar] = []
    end_time: Optional[int] = None
    remaining = limit
    while remaining > 0:
        params = {"symbol": symbol, "interval": interval, "limit": min(remaining, MAX_LIMIT)}
        if end_time is not None:
            params["endTime"] = end_time
        rows = _get(session, url, params, timeout)
        if not rows:
            break
        try:
            chunk = [parse_kline_row(row) for row in rows]
        except MalformedBarError as e:
            raise MarketDataError(str(e)) from e
        bars = chunk + bars
        remaining -= len(chunk)
        end_time = chunk[0].time - 1
        if len(chunk) < params["limit"]:
            break
    return bars


def fetch_klines_multi(
    symbol: str,
    intervals: Iterable[str],
    limit: int = 100,
    **kwargs,
) -> Dict[str, List[Bar]]:
    """Klines for several timeframes, keyed by interval label."""
    return {interval: fetch_klines(symbol, interval, limit, **kwargs) for interval in intervals}
