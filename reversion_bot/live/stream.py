"""
Websocket kline stream. Runs on python-binance's websocket thread and only
enqueues parsed bars; the consumer side does all evaluation.
"""

from __future__ import annotations
import logging
import queue
from typing import Any, Optional

from binance import ThreadedWebsocketManager

from reversion_bot.core.errors import MalformedBarError
from reversion_bot.core.types import Bar

logger = logging.getLogger("reversion_bot.live.stream")


def bar_from_kline_message(msg: Any) -> Optional[Bar]:
    """Parse a kline stream payload. None for non-kline messages; MalformedBarError on bad klines."""
    if not isinstance(msg, dict):
        return None
    if msg.get("e") == "error":
        logger.error("Websocket error: %s", msg.get("m"))
        return None
    if msg.get("e") != "kline":
        return None
    k = msg.get("k")
    if not isinstance(k, dict):
        raise MalformedBarError(f"kline message without payload: {msg!r}")
    return Bar.from_mapping({
        "time": k.get("t"),
        "open": k.get("o"),
        "high": k.get("h"),
        "low": k.get("l"),
        "close": k.get("c"),
        "volume": k.get("v"),
        "is_final": bool(k.get("x", False)),
    })


class KlineStream:
    """Pushes every kline update (forming and closed) onto bar_queue in arrival order."""

    def __init__(self, symbol: str, interval: str, bar_queue: "queue.Queue[Optional[Bar]]"):
        self.symbol = symbol.replace("/", "").upper()
        self.interval = interval
        self.queue = bar_queue
        self._twm: Optional[ThreadedWebsocketManager] = None

    def on_message(self, msg: Any) -> None:
        try:
            bar = bar_from_kline_message(msg)
        except MalformedBarError as e:
            logger.error("Dropping malformed kline: %s", e)
            return
        if bar is not None:
            self.queue.put(bar)

    def start(self) -> None:
        # Market data always comes from production streams; testnet streams are unreliable
        self._twm = ThreadedWebsocketManager()
        self._twm.start()
        self._twm.start_kline_socket(callback=self.on_message, symbol=self.symbol, interval=self.interval)
        logger.info("Kline stream started for %s@%s", self.symbol, self.interval)

    def stop(self) -> None:
        """Stop the socket and wake the consumer with the shutdown sentinel."""
        if self._twm is not None:
            self._twm.stop()
            self._twm = None
        self.queue.put(None)
        logger.info("Kline stream stopped")
