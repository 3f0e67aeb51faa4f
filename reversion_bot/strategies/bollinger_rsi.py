"""
Bollinger Band + RSI mean-reversion strategy.

BUY:  close < lower band, RSI < oversold, and every enabled filter passes
      (SMA trend, volume, higher-timeframe EMA confirmation, reward/risk gate).
SELL: close > upper band and RSI > overbought.
Decisions are made on closed bars only.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Mapping, Optional

from reversion_bot.core.buffers import RollingBuffer
from reversion_bot.core.config import Config
from reversion_bot.core.types import Bar, Signal, SignalSide, SkipReason
from reversion_bot.indicators import technical as ta
from reversion_bot.risk.sizing import PositionSizer, risk_reward_ratio
from reversion_bot.strategies.base import BaseStrategy

logger = logging.getLogger("reversion_bot.strategy")


@dataclass
class IndicatorSnapshot:
    """Latest indicator values for the current buffer. None = not ready."""
    rsi: Optional[float]
    bb_upper: Optional[float]
    bb_middle: Optional[float]
    bb_lower: Optional[float]
    sma_short: Optional[float]
    sma_long: Optional[float]
    atr: Optional[float]
    avg_volume: float

    def missing(self, require_trend: bool) -> List[str]:
        names = ["rsi", "bb_upper", "bb_middle", "bb_lower"]
        if require_trend:
            names += ["sma_short", "sma_long"]
        return [n for n in names if getattr(self, n) is None]


class BollingerRsiStrategy(BaseStrategy):
    """One configurable engine; each filter is toggled from Config."""

    def __init__(self, config: Config):
        super().__init__(PositionSizer(
            risk_per_trade=config.risk_per_trade,
            use_kelly=config.use_kelly_criterion,
            kelly_fraction=config.kelly_fraction,
            min_trades=config.kelly_min_trades,
            max_fraction=config.kelly_max_fraction,
        ))
        self.config = config
        self.capacity = max(
            config.buffer_size,
            config.rsi_period + 1,
            config.bb_period,
            config.sma_period_short,
            config.sma_period_long,
            config.atr_period + 1,
        )
        self._closes = RollingBuffer(self.capacity)
        self._highs = RollingBuffer(self.capacity)
        self._lows = RollingBuffer(self.capacity)
        self._volumes = RollingBuffer(self.capacity)
        self._mtf_closes: Dict[str, RollingBuffer] = {}

    @property
    def required_lookback(self) -> int:
        """Bars needed before the first decision."""
        periods = [self.config.rsi_period, self.config.bb_period]
        if self.config.require_uptrend:
            periods.append(self.config.sma_period_long)
        return max(periods)

    def __len__(self) -> int:
        return len(self._closes)

    def _push(self, bar: Bar) -> None:
        self._closes.append(bar.close)
        self._highs.append(bar.high)
        self._lows.append(bar.low)
        self._volumes.append(bar.volume)

    def init_history(self, bars: Iterable[Bar]) -> None:
        for bar in bars:
            if bar.is_final:
                self._push(bar)
        logger.info("Strategy initialized with %d historical candles", len(self._closes))

    def init_multi_timeframe(self, bars_by_timeframe: Mapping[str, Iterable[Bar]]) -> None:
        """Seed higher-timeframe close buffers. Used only by the confirmation filter."""
        capacity = max(self.config.buffer_size, self.config.mtf_min_bars, self.config.mtf_ema_period)
        for label, bars in bars_by_timeframe.items():
            buf = RollingBuffer(capacity)
            buf.extend(b.close for b in bars if b.is_final)
            self._mtf_closes[label] = buf
            logger.info("Loaded %d candles for %s timeframe", len(buf), label)

    def compute_indicators(self) -> IndicatorSnapshot:
        cfg = self.config
        closes = self._closes.values()
        bands = ta.bollinger_bands(closes, cfg.bb_period, cfg.bb_std_dev)
        return IndicatorSnapshot(
            rsi=ta.latest(ta.rsi(closes, cfg.rsi_period)),
            bb_upper=ta.latest(bands.upper),
            bb_middle=ta.latest(bands.middle),
            bb_lower=ta.latest(bands.lower),
            sma_short=ta.latest(ta.sma(closes, cfg.sma_period_short)),
            sma_long=ta.latest(ta.sma(closes, cfg.sma_period_long)),
            atr=ta.latest(ta.atr(self._highs.values(), self._lows.values(), closes, cfg.atr_period)),
            avg_volume=self._volumes.mean(),
        )

    def evaluate(self, bar: Bar) -> Signal:
        if not bar.is_final:
            return Signal.none(SkipReason.NOT_FINAL, bar)

        self._push(bar)
        buffered, required = len(self._closes), self.required_lookback
        if buffered < required:
            logger.debug("Buffering data... %d/%d", buffered, required)
            return Signal.none(SkipReason.BUFFERING, bar, reason=f"buffering {buffered}/{required}")

        try:
            snap = self.compute_indicators()
        except (ValueError, FloatingPointError) as e:
            logger.error("Error calculating indicators: %s", e)
            return Signal.none(SkipReason.INDICATORS_UNAVAILABLE, bar, reason=str(e))

        cfg = self.config
        missing = snap.missing(cfg.require_uptrend)
        if missing:
            logger.warning("Indicators not ready yet: %s", ", ".join(missing))
            return Signal.none(SkipReason.INDICATORS_UNAVAILABLE, bar, reason="missing " + ",".join(missing))

        price = bar.close
        uptrend = snap.sma_short is not None and snap.sma_long is not None and snap.sma_short > snap.sma_long
        trend_ok = not cfg.require_uptrend or uptrend
        volume_ok = not cfg.use_volume_filter or bar.volume >= snap.avg_volume * cfg.min_volume_multiplier
        mtf_ok = not cfg.use_multi_timeframe or self.confirm_multi_timeframe()
        vol_ratio = bar.volume / snap.avg_volume if snap.avg_volume > 0 else 0.0

        logger.debug(
            "Indicators | price=%.4f rsi=%.2f bb=[%.4f, %.4f] sma=%s/%s vol_ratio=%.2f trend_ok=%s volume_ok=%s mtf_ok=%s",
            price, snap.rsi, snap.bb_lower, snap.bb_upper,
            _fmt(snap.sma_short), _fmt(snap.sma_long), vol_ratio, trend_ok, volume_ok, mtf_ok,
        )
        metadata = asdict(snap)

        if price < snap.bb_lower and snap.rsi < cfg.rsi_oversold and trend_ok and volume_ok and mtf_ok:
            return self._buy_signal(bar, snap, metadata)

        if price > snap.bb_upper and snap.rsi > cfg.rsi_overbought:
            logger.info("SELL signal detected | price=%.4f rsi=%.2f", price, snap.rsi)
            return Signal(
                side=SignalSide.SELL,
                price=price,
                timestamp=bar.time,
                reason="RSI overbought + BB upper breach",
                metadata=metadata,
            )

        return Signal.none(SkipReason.NO_SETUP, bar, **metadata)

    def _buy_signal(self, bar: Bar, snap: IndicatorSnapshot, metadata: dict) -> Signal:
        cfg = self.config
        price = bar.close
        if cfg.use_atr_stop_loss and snap.atr is not None and snap.atr > 0:
            stop_loss = price - snap.atr * cfg.atr_multiplier
        else:
            stop_loss = price * (1 - cfg.stop_loss_percent / 100)
        take_profit = price * (1 + cfg.take_profit_percent / 100)

        if not stop_loss < price < take_profit:
            logger.warning("Invalid stop/target for BUY | price=%.4f stop=%.4f target=%.4f", price, stop_loss, take_profit)
            return Signal.none(SkipReason.INVALID_STOP, bar, **metadata)

        rr = risk_reward_ratio(price, stop_loss, take_profit)
        if cfg.use_risk_reward_filter and rr < cfg.risk_reward_ratio:
            logger.warning("Risk/reward %.2f below required %.2f, skipping trade", rr, cfg.risk_reward_ratio)
            return Signal.none(
                SkipReason.RISK_REWARD_REJECTED, bar,
                reason=f"risk_reward {rr:.2f} < {cfg.risk_reward_ratio}", **metadata,
            )

        logger.info("BUY signal detected | stop=%.4f target=%.4f rr=%.2f", stop_loss, take_profit, rr)
        return Signal(
            side=SignalSide.BUY,
            price=price,
            timestamp=bar.time,
            stop_loss=stop_loss,
            take_profit=take_profit,
            reason="RSI oversold + BB lower breach + filters passed",
            metadata={**metadata, "risk_reward": rr},
        )

    def confirm_multi_timeframe(self) -> bool:
        """
        Every configured higher timeframe must close above its EMA.
        Fails open: passes when any timeframe lacks mtf_min_bars closes.
        """
        cfg = self.config
        buffers = [self._mtf_closes.get(label) for label in cfg.multi_timeframes]
        if any(buf is None or len(buf) < cfg.mtf_min_bars for buf in buffers):
            logger.debug("Multi-timeframe data insufficient, confirmation skipped")
            return True
        for label, buf in zip(cfg.multi_timeframes, buffers):
            closes = buf.values()
            trend_ema = ta.latest(ta.ema(closes, cfg.mtf_ema_period))
            if trend_ema is None:
                return True
            if not closes[-1] > trend_ema:
                logger.debug("Multi-timeframe %s below EMA%d", label, cfg.mtf_ema_period)
                return False
        return True


def _fmt(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.4f}"
