"""Unit tests for risk.sizing."""

import pytest
from reversion_bot.risk.sizing import PerformanceCounters, PositionSizer, risk_reward_ratio


def _counters(profits):
    c = PerformanceCounters()
    for p in profits:
        c.record(p)
    return c


def test_fixed_fraction_by_default():
    sizer = PositionSizer(risk_per_trade=0.01)
    assert sizer.size(1000.0, _counters([10.0] * 20)) == pytest.approx(10.0)


def test_kelly_waits_for_min_trades():
    sizer = PositionSizer(risk_per_trade=0.01, use_kelly=True, min_trades=10)
    # 9 closed trades: still fixed fraction
    assert sizer.size(1000.0, _counters([20.0] * 9)) == pytest.approx(10.0)


def test_kelly_fraction():
    # p = 0.6, b = 20 / 10 = 2  =>  kelly = (0.6 * 2 - 0.4) / 2 = 0.4
    counters = _counters([20.0] * 6 + [-10.0] * 4)
    assert PositionSizer.kelly(counters) == pytest.approx(0.4)
    sizer = PositionSizer(risk_per_trade=0.01, use_kelly=True, kelly_fraction=0.1, max_fraction=0.1)
    assert sizer.size(1000.0, counters) == pytest.approx(40.0)


def test_kelly_clamped_to_max_fraction():
    counters = _counters([20.0] * 6 + [-10.0] * 4)
    sizer = PositionSizer(risk_per_trade=0.01, use_kelly=True, kelly_fraction=1.0, max_fraction=0.1)
    assert sizer.size(1000.0, counters) == pytest.approx(100.0)


def test_negative_kelly_sizes_to_zero():
    # p = 0.2, b = 1  =>  kelly = -0.6
    counters = _counters([10.0] * 2 + [-10.0] * 8)
    sizer = PositionSizer(risk_per_trade=0.01, use_kelly=True)
    assert sizer.size(1000.0, counters) == 0.0


def test_kelly_without_losses():
    assert PositionSizer.kelly(_counters([5.0] * 10)) == 1.0
    assert PositionSizer.kelly(PerformanceCounters()) == 0.0


def test_break_even_counts_as_loss():
    counters = _counters([0.0, 5.0])
    assert counters.wins == 1
    assert counters.losses == 1
    assert counters.win_rate == pytest.approx(0.5)
    assert counters.avg_loss == 0.0


def test_risk_reward_ratio():
    assert risk_reward_ratio(100.0, 98.0, 103.0) == pytest.approx(1.5)
    assert risk_reward_ratio(100.0, 100.0, 103.0) == 0.0
    assert risk_reward_ratio(100.0, 101.0, 103.0) == 0.0
