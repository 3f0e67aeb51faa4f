"""Spot LOT_SIZE / PRICE_FILTER / NOTIONAL helpers from exchange symbol info."""

from __future__ import annotations
import math
from typing import NamedTuple, Optional


class SymbolFilters(NamedTuple):
    min_qty: float = 0.00001
    step_size: float = 0.00001
    tick_size: float = 0.01
    min_notional: float = 0.0


def parse_symbol_filters(symbol_info: Optional[dict]) -> SymbolFilters:
    """Extract lot, price and notional filters. Defaults when symbol_info is None."""
    filters = SymbolFilters()
    if not symbol_info:
        return filters
    values = filters._asdict()
    for f in symbol_info.get("filters", []):
        kind = f.get("filterType")
        if kind == "LOT_SIZE":
            values["min_qty"] = float(f.get("minQty", filters.min_qty))
            values["step_size"] = float(f.get("stepSize", filters.step_size))
        elif kind == "PRICE_FILTER":
            values["tick_size"] = float(f.get("tickSize", filters.tick_size))
        elif kind in ("NOTIONAL", "MIN_NOTIONAL"):
            values["min_notional"] = float(f.get("minNotional", filters.min_notional))
    return SymbolFilters(**values)


def round_quantity(qty: float, min_qty: float, step_size: float) -> float:
    """Round down to step size; return 0 if below min_qty."""
    if qty <= 0 or step_size <= 0:
        return 0.0
    rounded = math.floor(qty / step_size + 1e-9) * step_size
    if rounded < min_qty:
        return 0.0
    return round(rounded, 8)


def format_quantity(qty: float, step_size: float) -> str:
    """Decimal string with no more places than the step size allows."""
    decimals = max(0, -int(math.floor(math.log10(step_size)))) if step_size > 0 else 8
    return f"{qty:.{decimals}f}"
