"""
Binance spot execution. Market orders are never retried here; read-only calls
retry on rate limits.
"""

from __future__ import annotations
import logging
import time
from typing import Optional

from binance.client import Client
from binance.exceptions import BinanceAPIException, BinanceRequestException

from reversion_bot.core.errors import ExecutionError
from reversion_bot.execution.base import ExecutionClient, OrderResult
from reversion_bot.utils.exchange_filters import (
    SymbolFilters,
    format_quantity,
    parse_symbol_filters,
    round_quantity,
)

logger = logging.getLogger("reversion_bot.execution.binance")


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit)."""
    def decorator(f):
        def wrapped(*args, **kwargs):
            last_exc = None
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    last_exc = e
                    if e.status_code in (429, 418) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
            raise last_exc
        return wrapped
    return decorator


def average_fill_price(order: dict) -> Optional[float]:
    """Volume-weighted fill price from an order response, None if not filled."""
    executed = float(order.get("executedQty") or 0)
    quote = float(order.get("cummulativeQuoteQty") or 0)
    if executed > 0 and quote > 0:
        return quote / executed
    fills = order.get("fills") or []
    qty = sum(float(f["qty"]) for f in fills)
    if qty > 0:
        return sum(float(f["price"]) * float(f["qty"]) for f in fills) / qty
    return None


class BinanceSpotClient(ExecutionClient):
    """Binance spot client (testnet and live) bound to one symbol."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        symbol: str,
        testnet: bool = True,
        client: Optional[Client] = None,
    ):
        self.symbol = symbol
        self._client = client or Client(api_key, api_secret, testnet=testnet)
        logger.info("Binance spot: using %s", "TESTNET" if testnet else "LIVE")
        self._filters: Optional[SymbolFilters] = None

    @retry_on_rate_limit(max_retries=3)
    def _symbol_info(self) -> Optional[dict]:
        return self._client.get_symbol_info(self.symbol)

    @property
    def filters(self) -> SymbolFilters:
        if self._filters is None:
            try:
                self._filters = parse_symbol_filters(self._symbol_info())
            except (BinanceAPIException, BinanceRequestException) as e:
                logger.warning("Could not load symbol filters, using defaults: %s", e)
                return parse_symbol_filters(None)
        return self._filters

    def _market_order(self, side: str, amount: float) -> OrderResult:
        filters = self.filters
        qty = round_quantity(amount, filters.min_qty, filters.step_size)
        if qty <= 0:
            raise ExecutionError(f"{side} amount {amount} below minimum lot {filters.min_qty}", side, amount)
        logger.info("Placing %s order for %s %s", side, qty, self.symbol)
        try:
            if side == "BUY":
                res = self._client.order_market_buy(symbol=self.symbol, quantity=format_quantity(qty, filters.step_size))
            else:
                res = self._client.order_market_sell(symbol=self.symbol, quantity=format_quantity(qty, filters.step_size))
        except (BinanceAPIException, BinanceRequestException) as e:
            logger.error("Binance %s order error: %s", side, e)
            raise ExecutionError(f"{side} order failed: {e}", side, amount) from e
        price = average_fill_price(res)
        filled = float(res.get("executedQty") or qty)
        logger.info("%s order executed | id=%s qty=%s price=%s", side, res.get("orderId"), filled, price)
        return OrderResult(amount=filled, price=price, order_id=str(res.get("orderId")))

    def buy(self, amount: float) -> OrderResult:
        return self._market_order("BUY", amount)

    def sell(self, amount: float) -> OrderResult:
        return self._market_order("SELL", amount)

    def get_balance(self, currency: str) -> float:
        try:
            balance = self._client.get_asset_balance(asset=currency)
        except (BinanceAPIException, BinanceRequestException) as e:
            logger.error("Error fetching %s balance: %s", currency, e)
            return 0.0
        return float(balance["free"]) if balance else 0.0
