"""Unit tests for core.buffers."""

import pytest
from reversion_bot.core.buffers import RollingBuffer


def test_buffer_keeps_last_values_in_order():
    buf = RollingBuffer(3)
    buf.extend([1, 2, 3, 4, 5])
    assert len(buf) == 3
    assert list(buf.values()) == [3.0, 4.0, 5.0]
    assert buf.last() == 5.0


def test_buffer_partial_fill():
    buf = RollingBuffer(5)
    buf.extend([1, 2])
    assert list(buf.values()) == [1.0, 2.0]
    assert buf.mean() == pytest.approx(1.5)


def test_buffer_empty():
    buf = RollingBuffer(2)
    assert buf.last() is None
    assert buf.mean() == 0.0
    assert len(buf.values()) == 0


def test_buffer_clear():
    buf = RollingBuffer(2)
    buf.extend([1, 2, 3])
    buf.clear()
    assert len(buf) == 0
    buf.append(7)
    assert list(buf.values()) == [7.0]


def test_buffer_invalid_capacity():
    with pytest.raises(ValueError):
        RollingBuffer(0)
