"""Abstract execution interface: market orders and balances."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class OrderResult:
    """Realized fill. price is None when the venue did not report one."""
    amount: float
    price: Optional[float] = None
    order_id: Optional[str] = None

    def fill_price_or(self, fallback: float) -> float:
        """Prefer the realized fill price, else the signal-time price."""
        return self.price if self.price else fallback


class ExecutionClient(ABC):
    """Spot market execution for a single symbol. Failures raise ExecutionError."""

    @abstractmethod
    def buy(self, amount: float) -> OrderResult:
        """Market buy `amount` of the base asset."""

    @abstractmethod
    def sell(self, amount: float) -> OrderResult:
        """Market sell `amount` of the base asset."""

    @abstractmethod
    def get_balance(self, currency: str) -> float:
        """Free balance of `currency`."""
