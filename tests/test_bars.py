"""Unit tests for core.types bar parsing and data.bars."""

import math

import pandas as pd
import pytest
from reversion_bot.core.errors import MalformedBarError
from reversion_bot.core.types import Bar, ExitReason, Position, Trade
from reversion_bot.data.bars import bars_from_frame, bars_to_frame, load_bars_csv

ROW = {"time": 0, "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5, "volume": 10.0}


def test_bar_from_mapping():
    bar = Bar.from_mapping({**ROW, "close": "1.5"})
    assert bar.close == 1.5
    assert bar.is_final is True


@pytest.mark.parametrize("field", ["time", "open", "high", "low", "close", "volume"])
def test_bar_missing_field(field):
    row = {k: v for k, v in ROW.items() if k != field}
    with pytest.raises(MalformedBarError):
        Bar.from_mapping(row)


@pytest.mark.parametrize("value", ["abc", None, math.nan])
def test_bar_bad_value(value):
    with pytest.raises(MalformedBarError):
        Bar.from_mapping({**ROW, "close": value})


def test_malformed_bar_is_value_error():
    with pytest.raises(ValueError):
        Bar.from_mapping({})


def test_bars_from_frame_with_datetimes():
    df = pd.DataFrame({
        "time": pd.to_datetime(["2024-01-01 00:00", "2024-01-01 00:01"]),
        "open": [1.0, 2.0],
        "high": [1.5, 2.5],
        "low": [0.5, 1.5],
        "close": [1.2, 2.2],
        "volume": [10, 20],
    })
    bars = bars_from_frame(df)
    assert [b.time for b in bars] == [1704067200000, 1704067260000]
    assert bars[1].close == 2.2
    assert all(b.is_final for b in bars)


def test_bars_from_frame_missing_column():
    df = pd.DataFrame({"time": [0], "open": [1.0], "high": [1.0], "low": [1.0], "close": [1.0]})
    with pytest.raises(MalformedBarError, match="volume"):
        bars_from_frame(df)


def test_bars_from_frame_null_value():
    df = pd.DataFrame([ROW, {**ROW, "time": 60_000, "close": None}])
    with pytest.raises(MalformedBarError, match="close"):
        bars_from_frame(df)


def test_load_bars_csv_sorts_by_time(tmp_path):
    path = tmp_path / "bars.csv"
    bars = [Bar(t, 1.0, 2.0, 0.5, 1.5, 10.0) for t in (120_000, 0, 60_000)]
    bars_to_frame(bars).to_csv(path, index=False)
    loaded = load_bars_csv(path)
    assert [b.time for b in loaded] == [0, 60_000, 120_000]
    assert loaded[0] == Bar(0, 1.0, 2.0, 0.5, 1.5, 10.0)


def test_load_bars_csv_iso_times(tmp_path):
    path = tmp_path / "bars.csv"
    path.write_text(
        "time,open,high,low,close,volume\n"
        "2024-01-01T00:01:00Z,2,2.5,1.5,2.2,20\n"
        "2024-01-01T00:00:00Z,1,1.5,0.5,1.2,10\n"
    )
    loaded = load_bars_csv(path)
    assert [b.time for b in loaded] == [1704067200000, 1704067260000]


def test_position_and_trade_round_trip():
    pos = Position("BTCUSDT", 0.1, 100.0, 98.0, 103.0, 101.0, 5)
    assert Position.from_dict(pos.to_dict()) == pos
    trade = Trade("BTCUSDT", 0.1, 100.0, 103.0, 0.3, 3.0, 5, 65, 60, ExitReason.TAKE_PROFIT)
    data = trade.to_dict()
    assert data["exit_reason"] == "take_profit"
    assert Trade.from_dict(data) == trade
