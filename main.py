#!/usr/bin/env python3
"""
Reversion Bot CLI: backtest | live
Usage:
  python main.py backtest [--config config.yaml] [--csv bars.csv] [--days 30] [--balance 10000]
  python main.py live [--config config.yaml]
"""

from __future__ import annotations
import argparse
import logging
import queue
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reversion_bot.core.config import load_config
from reversion_bot.core.errors import MalformedBarError, MarketDataError
from reversion_bot.core.logger import setup_logging
from reversion_bot.backtesting.engine import BacktestEngine
from reversion_bot.data.bars import load_bars_csv
from reversion_bot.data.binance_rest import fetch_klines, fetch_klines_multi
from reversion_bot.execution.binance_spot import BinanceSpotClient
from reversion_bot.live.stream import KlineStream
from reversion_bot.live.trader import LiveTrader
from reversion_bot.positions.manager import PositionManager
from reversion_bot.strategies.bollinger_rsi import BollingerRsiStrategy
from reversion_bot.utils.timeframes import bars_for_days


def run_backtest(args: argparse.Namespace) -> int:
    """Run backtest over CSV bars or freshly fetched klines."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger = logging.getLogger("reversion_bot")
    try:
        if args.csv:
            bars = load_bars_csv(args.csv)
        else:
            days = args.days or config.backtest_days
            bars = fetch_klines(config.symbol, config.timeframe, limit=bars_for_days(days, config.timeframe))
    except (MarketDataError, MalformedBarError, OSError) as e:
        logger.error("Could not load bars for backtest: %s", e)
        return 1

    engine = BacktestEngine(config)
    try:
        result = engine.run(bars, initial_balance=args.balance)
    except MalformedBarError as e:
        logger.error("Backtest failed on malformed input: %s", e)
        return 1

    m = result.metrics
    pf = "inf" if m.profit_factor == float("inf") else f"{m.profit_factor:.2f}"
    print("\n--- Backtest Results ---")
    print(f"Bars: {len(bars)} | sizing: {result.sizing_mode.value}")
    print(f"Total trades: {m.total_trades} (wins: {m.wins}, losses: {m.losses})")
    print(f"Win rate: {m.win_rate:.1f}%")
    print(f"Total return: {m.total_return:.2f} ({m.total_return_pct:.2f}%)")
    print(f"Max drawdown: {m.max_drawdown_pct:.2f}%")
    print(f"Sharpe ratio: {m.sharpe_ratio:.2f}")
    print(f"Avg win: {m.avg_win:.2f} | Avg loss: {m.avg_loss:.2f}")
    print(f"Profit factor: {pf}")
    if result.open_position is not None:
        print(f"Open position at end: entry {result.open_position.entry_price:.4f}")
    if args.trades_out:
        result.trades_frame().to_csv(args.trades_out, index=False)
        print(f"Trades written to {args.trades_out}")
    return 0


def run_live(args: argparse.Namespace) -> int:
    """Run the live trading loop until interrupted."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger = logging.getLogger("reversion_bot")
    if not config.binance_api_key or not config.binance_api_secret:
        logger.error("Missing BINANCE_API_KEY or BINANCE_API_SECRET in .env")
        return 1
    logger.info(
        "Starting %s %s | stop=%.2f%% target=%.2f%% trailing=%.2f%% rsi=%s/%s atr_stop=%s kelly=%s mtf=%s",
        config.symbol, config.timeframe, config.stop_loss_percent, config.take_profit_percent,
        config.trailing_stop_percent, config.rsi_oversold, config.rsi_overbought,
        config.use_atr_stop_loss, config.use_kelly_criterion, config.use_multi_timeframe,
    )

    execution = BinanceSpotClient(
        config.binance_api_key,
        config.binance_api_secret,
        config.symbol,
        testnet=config.use_testnet,
    )
    trader = LiveTrader(
        config,
        BollingerRsiStrategy(config),
        PositionManager(config.state_dir),
        execution,
    )

    try:
        history = fetch_klines(config.symbol, config.timeframe, limit=config.history_limit)
    except MarketDataError as e:
        logger.error("Failed to fetch historical candles, starting with empty buffers: %s", e)
        history = []
    mtf = None
    if config.use_multi_timeframe:
        try:
            mtf = fetch_klines_multi(config.symbol, config.multi_timeframes, limit=config.history_limit)
        except MarketDataError as e:
            logger.error("Failed to fetch multi-timeframe candles, confirmation will pass by default: %s", e)
    trader.start(history, mtf)

    bars: "queue.Queue" = queue.Queue()
    stream = KlineStream(config.symbol, config.timeframe, bars)
    stream.start()
    try:
        trader.run(bars)
    except KeyboardInterrupt:
        logger.info("Shutdown by user")
    finally:
        stream.stop()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Reversion Bot CLI")
    sub = parser.add_subparsers(dest="mode", required=True)

    bt = sub.add_parser("backtest", help="Replay historical bars")
    bt.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    bt.add_argument("--csv", type=Path, default=None, help="OHLCV CSV instead of fetching klines")
    bt.add_argument("--days", type=int, default=None, help="Days of klines to fetch")
    bt.add_argument("--balance", type=float, default=None, help="Initial balance")
    bt.add_argument("--trades-out", type=Path, default=None, help="Write trades to this CSV")

    live = sub.add_parser("live", help="Trade the live kline stream")
    live.add_argument("--config", type=Path, default=None, help="Path to config.yaml")

    args = parser.parse_args()
    if args.mode == "backtest":
        return run_backtest(args)
    return run_live(args)


if __name__ == "__main__":
    sys.exit(main())
