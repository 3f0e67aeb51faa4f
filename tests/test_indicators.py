"""Unit tests for indicators.technical."""

import numpy as np
import pytest
from reversion_bot.indicators.technical import (
    atr,
    bollinger_bands,
    ema,
    latest,
    rsi,
    sma,
    std_dev,
    true_range,
)


def test_sma_values():
    assert list(sma([1, 2, 3, 4, 5], 3)) == pytest.approx([2.0, 3.0, 4.0])


@pytest.mark.parametrize("n", range(0, 8))
def test_sma_length(n):
    assert len(sma(list(range(n)), 3)) == max(0, n - 2)


def test_std_dev_is_population():
    # classic population example: sigma = 2
    assert list(std_dev([2, 4, 4, 4, 5, 5, 7, 9], 8)) == pytest.approx([2.0])


def test_bollinger_bands():
    bands = bollinger_bands([2, 4, 4, 4, 5, 5, 7, 9], 8, 2.0)
    assert bands.middle[-1] == pytest.approx(5.0)
    assert bands.upper[-1] == pytest.approx(9.0)
    assert bands.lower[-1] == pytest.approx(1.0)


def test_bollinger_bands_flat_series_collapse():
    bands = bollinger_bands([101.0] * 10, 10, 2.0)
    assert bands.lower[-1] == pytest.approx(101.0)
    assert bands.upper[-1] == pytest.approx(101.0)


def test_rsi_wilder_smoothing():
    # deltas +1,-1,+1,-1,+1; seed 0.5/0.5 then smoothed
    out = rsi([1, 2, 1, 2, 1, 2], 2)
    assert list(out) == pytest.approx([50.0, 75.0, 37.5, 68.75])


def test_rsi_all_gains_uses_unit_loss():
    # avg loss 0 is replaced by 1, so RS = avg gain = 1
    out = rsi([1, 2, 3, 4, 5, 6], 5)
    assert len(out) == 1
    assert out[-1] == pytest.approx(50.0)


def test_rsi_bounds():
    rng = np.random.default_rng(3)
    closes = 100 + np.cumsum(rng.normal(0, 1, 300))
    out = rsi(closes, 14)
    assert len(out) == 300 - 14
    assert np.all(out >= 0) and np.all(out <= 100)


def test_rsi_insufficient_data():
    assert len(rsi([1, 2, 3], 3)) == 0


def test_ema_seed_and_recurrence():
    data = [float(x) for x in range(1, 11)]
    out = ema(data, 3)
    assert len(out) == 8
    assert out[0] == pytest.approx(2.0)  # SMA of the first window
    alpha = 2 / 4
    for i in range(1, len(out)):
        assert out[i] == pytest.approx((data[i + 2] - out[i - 1]) * alpha + out[i - 1])


def test_true_range_uses_previous_close():
    highs = [10.5, 11.5, 12.5, 11.5]
    lows = [9.5, 10.5, 11.5, 10.5]
    closes = [10.0, 11.0, 12.0, 11.0]
    assert list(true_range(highs, lows, closes)) == pytest.approx([1.5, 1.5, 1.5])
    assert list(atr(highs, lows, closes, 2)) == pytest.approx([1.5, 1.5])


def test_true_range_length_mismatch():
    with pytest.raises(ValueError):
        true_range([1, 2], [1], [1, 2])


def test_invalid_period():
    with pytest.raises(ValueError):
        sma([1, 2, 3], 0)
    with pytest.raises(ValueError):
        rsi([1, 2, 3], -1)


def test_latest():
    assert latest(np.array([])) is None
    assert latest(np.array([1.0, 2.0])) == 2.0
    assert latest(np.array([np.nan])) is None
