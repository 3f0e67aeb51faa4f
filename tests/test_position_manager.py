"""Unit tests for positions.manager."""

import json
import random

import pytest
from reversion_bot.core.types import ExitReason
from reversion_bot.positions.manager import POSITION_FILE, TRADES_FILE, PositionManager


class FakeClock:
    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now


def test_trailing_stop_scenario(tmp_path):
    clock = FakeClock()
    pm = PositionManager(tmp_path, clock=clock)
    pm.open_position(1.0, 100.0, 98.0, 200.0, "BTCUSDT")

    pm.update_trailing_stop(105.0, 1.5)
    pm.update_trailing_stop(110.0, 1.5)
    assert pm.get_position().stop_loss == pytest.approx(108.35)
    assert pm.get_position().highest_price == 110.0

    # a pullback that stays above the stop leaves it in place
    assert pm.update_trailing_stop(109.0, 1.5) is False
    assert pm.check_stop_loss(109.0) is False
    assert pm.get_position().stop_loss == pytest.approx(108.35)

    stop = pm.get_position().stop_loss
    assert pm.check_stop_loss(stop) is True
    clock.now += 120_000
    trade = pm.close_position(stop, ExitReason.STOP_LOSS)
    assert trade.exit_reason == ExitReason.STOP_LOSS
    assert trade.profit == pytest.approx(8.35)
    assert trade.profit_pct == pytest.approx(8.35)
    assert trade.duration == 120_000
    assert not pm.has_position()


def test_stop_never_moves_down(tmp_path):
    pm = PositionManager(tmp_path)
    pm.open_position(1.0, 100.0, 98.0, 1000.0, "BTCUSDT")
    rng = random.Random(11)
    price, last_stop = 100.0, 98.0
    for _ in range(500):
        price *= 1 + rng.uniform(-0.02, 0.02)
        pm.update_trailing_stop(price, 1.5)
        stop = pm.get_position().stop_loss
        assert stop >= last_stop
        last_stop = stop


def test_take_profit_check(tmp_path):
    pm = PositionManager(tmp_path)
    assert pm.check_take_profit(1e9) is False
    pm.open_position(1.0, 100.0, 98.0, 103.0, "BTCUSDT")
    assert pm.check_take_profit(102.99) is False
    assert pm.check_take_profit(103.0) is True


def test_open_rejects_bad_levels(tmp_path):
    pm = PositionManager(tmp_path)
    with pytest.raises(ValueError):
        pm.open_position(1.0, 100.0, 100.0, 103.0, "BTCUSDT")
    with pytest.raises(ValueError):
        pm.open_position(1.0, 100.0, 98.0, 99.0, "BTCUSDT")
    assert not pm.has_position()


def test_close_when_flat_is_noop(tmp_path):
    pm = PositionManager(tmp_path)
    assert pm.close_position(100.0, ExitReason.SIGNAL) is None
    assert pm.get_trades() == []


def test_state_survives_restart(tmp_path):
    pm = PositionManager(tmp_path, clock=FakeClock())
    pm.open_position(0.5, 100.0, 98.0, 103.0, "BTCUSDT")
    pm.update_trailing_stop(102.0, 1.5)

    restored = PositionManager(tmp_path)
    pos = restored.get_position()
    assert pos is not None
    assert pos.amount == 0.5
    assert pos.highest_price == 102.0
    assert pos.stop_loss == pytest.approx(100.47)

    restored.close_position(103.0, ExitReason.TAKE_PROFIT)
    again = PositionManager(tmp_path)
    assert not again.has_position()
    trades = again.get_trades()
    assert len(trades) == 1
    assert trades[0].exit_reason == ExitReason.TAKE_PROFIT

    saved = json.loads((tmp_path / TRADES_FILE).read_text())
    assert saved[0]["exit_reason"] == "take_profit"


def test_corrupt_state_is_ignored(tmp_path, caplog):
    (tmp_path / POSITION_FILE).write_text("{not json")
    (tmp_path / TRADES_FILE).write_text("[{\"amount\": 1}]")
    pm = PositionManager(tmp_path)
    assert not pm.has_position()
    assert pm.get_trades() == []
    assert "Failed to load" in caplog.text


def test_write_failure_keeps_memory_state(tmp_path, caplog):
    blocker = tmp_path / "state"
    blocker.write_text("a file where the state directory should be")
    pm = PositionManager(blocker)
    pm.open_position(1.0, 100.0, 98.0, 103.0, "BTCUSDT")
    assert pm.has_position()
    trade = pm.close_position(103.0, ExitReason.TAKE_PROFIT)
    assert trade is not None
    assert len(pm.get_trades()) == 1
    assert "Failed to save" in caplog.text


def test_stats(tmp_path):
    pm = PositionManager(tmp_path)
    stats = pm.get_stats()
    assert stats.total_trades == 0
    assert stats.win_rate == 0.0
    assert stats.total_profit == 0.0

    pm.open_position(1.0, 100.0, 98.0, 103.0, "BTCUSDT")
    pm.close_position(103.0, ExitReason.TAKE_PROFIT)
    pm.open_position(1.0, 100.0, 98.0, 103.0, "BTCUSDT")
    pm.close_position(99.0, ExitReason.SIGNAL)
    stats = pm.get_stats()
    assert stats.total_trades == 2
    assert stats.win_rate == pytest.approx(50.0)
    assert stats.avg_win == pytest.approx(3.0)
    assert stats.avg_loss == pytest.approx(-1.0)
    assert stats.total_profit == pytest.approx(2.0)


def test_second_open_is_rejected(tmp_path):
    pm = PositionManager(tmp_path)
    pm.open_position(1.0, 100.0, 98.0, 103.0, "BTCUSDT")
    with pytest.raises(ValueError, match="already open"):
        pm.open_position(2.0, 110.0, 108.0, 113.0, "BTCUSDT")
    pos = pm.get_position()
    assert pos.amount == 1.0
    assert pos.entry_price == 100.0
    assert json.loads((tmp_path / POSITION_FILE).read_text())["entry_price"] == 100.0
