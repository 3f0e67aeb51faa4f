"""
Load configuration from config.yaml and .env. API keys only from env.
The resulting Config is immutable and passed explicitly to every component.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml
from dotenv import load_dotenv


class SizingMode(str, Enum):
    """How the backtester turns a BUY into exposure."""
    FULL_BALANCE = "full_balance"  # whole running balance, scaled by entry price
    FRACTIONAL = "fractional"  # same amount the live bot would buy


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config dataclass."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    # Env overrides (for secrets and overrides)
    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    api = data.get("api", {})
    trading = data.get("trading", {})
    risk = data.get("risk", {})
    filters = data.get("filters", {})
    backtest = data.get("backtest", {})
    state = data.get("state", {})
    logging_cfg = data.get("logging", {})

    timeframes = env("MULTI_TIMEFRAMES") or filters.get("multi_timeframes", "15m,1h")
    if isinstance(timeframes, str):
        timeframes = [t.strip() for t in timeframes.split(",") if t.strip()]

    return Config(
        # API (env only; never put keys in config.yaml)
        binance_api_key=env("BINANCE_API_KEY", api.get("binance_api_key", "")),
        binance_api_secret=env("BINANCE_API_SECRET", api.get("binance_api_secret", "")),
        use_testnet=env_bool("BINANCE_IS_TESTNET", api.get("use_testnet", True)),
        # Market
        symbol=env("TRADING_SYMBOL", trading.get("symbol", "BTCUSDT")).replace("/", "").upper(),
        base_asset=env("BASE_ASSET", trading.get("base_asset", "BTC")).upper(),
        quote_asset=env("QUOTE_ASSET", trading.get("quote_asset", "USDT")).upper(),
        timeframe=env("TRADING_TIMEFRAME", trading.get("timeframe", "1m")),
        # Indicators
        rsi_period=env_int("RSI_PERIOD", trading.get("rsi_period", 14)),
        rsi_overbought=env_float("RSI_OVERBOUGHT", trading.get("rsi_overbought", 70)),
        rsi_oversold=env_float("RSI_OVERSOLD", trading.get("rsi_oversold", 30)),
        bb_period=env_int("BB_PERIOD", trading.get("bb_period", 20)),
        bb_std_dev=env_float("BB_STD_DEV", trading.get("bb_std_dev", 2.0)),
        sma_period_short=env_int("SMA_PERIOD_SHORT", trading.get("sma_period_short", 50)),
        sma_period_long=env_int("SMA_PERIOD_LONG", trading.get("sma_period_long", 200)),
        atr_period=env_int("ATR_PERIOD", trading.get("atr_period", 14)),
        buffer_size=env_int("BUFFER_SIZE", trading.get("buffer_size", 250)),
        history_limit=env_int("HISTORY_LIMIT", trading.get("history_limit", 100)),
        # Risk
        risk_per_trade=env_float("RISK_PER_TRADE", risk.get("risk_per_trade", 0.01)),
        stop_loss_percent=env_float("STOP_LOSS_PERCENT", risk.get("stop_loss_percent", 2.0)),
        take_profit_percent=env_float("TAKE_PROFIT_PERCENT", risk.get("take_profit_percent", 3.0)),
        trailing_stop_percent=env_float("TRAILING_STOP_PERCENT", risk.get("trailing_stop_percent", 1.5)),
        atr_multiplier=env_float("ATR_MULTIPLIER", risk.get("atr_multiplier", 2.0)),
        risk_reward_ratio=env_float("RISK_REWARD_RATIO", risk.get("risk_reward_ratio", 1.5)),
        kelly_fraction=env_float("KELLY_FRACTION", risk.get("kelly_fraction", 0.25)),
        kelly_min_trades=env_int("KELLY_MIN_TRADES", risk.get("kelly_min_trades", 10)),
        kelly_max_fraction=env_float("KELLY_MAX_FRACTION", risk.get("kelly_max_fraction", 0.1)),
        min_notional=env_float("MIN_NOTIONAL", risk.get("min_notional", 10.0)),
        # Filters
        require_uptrend=env_bool("REQUIRE_UPTREND", filters.get("require_uptrend", True)),
        use_volume_filter=env_bool("USE_VOLUME_FILTER", filters.get("use_volume_filter", True)),
        min_volume_multiplier=env_float("MIN_VOLUME_MULTIPLIER", filters.get("min_volume_multiplier", 1.0)),
        use_risk_reward_filter=env_bool("USE_RISK_REWARD_FILTER", filters.get("use_risk_reward_filter", True)),
        use_atr_stop_loss=env_bool("USE_ATR_STOP_LOSS", filters.get("use_atr_stop_loss", False)),
        use_kelly_criterion=env_bool("USE_KELLY_CRITERION", filters.get("use_kelly_criterion", False)),
        use_multi_timeframe=env_bool("USE_MULTI_TIMEFRAME", filters.get("use_multi_timeframe", False)),
        multi_timeframes=tuple(timeframes),
        mtf_ema_period=env_int("MTF_EMA_PERIOD", filters.get("mtf_ema_period", 20)),
        mtf_min_bars=env_int("MTF_MIN_BARS", filters.get("mtf_min_bars", 50)),
        # Backtest
        backtest_warmup=env_int("BACKTEST_WARMUP", backtest.get("warmup", 100)),
        backtest_initial_balance=env_float("BACKTEST_INITIAL_BALANCE", backtest.get("initial_balance", 10000.0)),
        backtest_days=env_int("BACKTEST_DAYS", backtest.get("days", 30)),
        backtest_sizing=SizingMode(env("BACKTEST_SIZING", backtest.get("sizing", "full_balance"))),
        # State
        state_dir=Path(env("STATE_DIR", state.get("dir", "state"))),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "reversion_bot.log"),
    )


@dataclass(frozen=True)
class Config:
    """Unified configuration. Immutable after load."""

    binance_api_key: str = field(default="", repr=False)
    binance_api_secret: str = field(default="", repr=False)
    use_testnet: bool = True

    symbol: str = "BTCUSDT"
    base_asset: str = "BTC"
    quote_asset: str = "USDT"
    timeframe: str = "1m"

    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    bb_period: int = 20
    bb_std_dev: float = 2.0
    sma_period_short: int = 50
    sma_period_long: int = 200
    atr_period: int = 14
    buffer_size: int = 250
    history_limit: int = 100

    risk_per_trade: float = 0.01
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 3.0
    trailing_stop_percent: float = 1.5
    atr_multiplier: float = 2.0
    risk_reward_ratio: float = 1.5
    kelly_fraction: float = 0.25
    kelly_min_trades: int = 10
    kelly_max_fraction: float = 0.1
    min_notional: float = 10.0

    require_uptrend: bool = True
    use_volume_filter: bool = True
    min_volume_multiplier: float = 1.0
    use_risk_reward_filter: bool = True
    use_atr_stop_loss: bool = False
    use_kelly_criterion: bool = False
    use_multi_timeframe: bool = False
    multi_timeframes: Tuple[str, ...] = ("15m", "1h")
    mtf_ema_period: int = 20
    mtf_min_bars: int = 50

    backtest_warmup: int = 100
    backtest_initial_balance: float = 10000.0
    backtest_days: int = 30
    backtest_sizing: SizingMode = SizingMode.FULL_BALANCE

    state_dir: Path = Path("state")

    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_file: str = "reversion_bot.log"

    def __post_init__(self) -> None:
        for name in (
            "rsi_period", "bb_period", "sma_period_short", "sma_period_long", "atr_period",
            "buffer_size", "mtf_ema_period",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in (
            "stop_loss_percent", "take_profit_percent", "trailing_stop_percent",
            "risk_per_trade", "min_volume_multiplier", "kelly_fraction", "min_notional",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        # Tuples keep the frozen config hashable when callers pass lists
        if not isinstance(self.multi_timeframes, tuple):
            object.__setattr__(self, "multi_timeframes", tuple(self.multi_timeframes))
        if not isinstance(self.backtest_sizing, SizingMode):
            object.__setattr__(self, "backtest_sizing", SizingMode(self.backtest_sizing))
