import pytest

from lib.date_utils import parse_timespan_to_seconds, HOUR, MINUTE, DAY, TimespanError


def test_1():
    f = parse_timespan_to_seconds
    assert f('1') == 1
    assert f('') == 0
    assert f(' 50m ') == 50 * MINUTE
    assert f('1H') == HOUR
    assert f('2d') == DAY * 2
    assert f('2d 5') == DAY * 2 + 5
    assert f('2d 5s') == DAY * 2 + 5

    assert f('6s 7m 4h 8d') == 6 + 7 * MINUTE + 4 * HOUR + 8 * DAY


def test_float():
    f = parse_timespan_to_seconds

    assert f('1.1') == 1.1
    assert f(' 1.1 \n  ') == 1.1
    assert f('0') == 0.0

    assert f('11.4s 50.1m') == pytest.approx(11.4 + 50.1 * MINUTE)
    assert f(0.5) == 0.5


def test_milliseconds():
    f = parse_timespan_to_seconds
    assert f('500ms') == pytest.approx(0.5)
    assert f('1s 250ms') == pytest.approx(1.25)
    assert f('2m 10ms') == pytest.approx(2 * MINUTE + 0.01)


def test_errors():
    with pytest.raises(TimespanError):
        parse_timespan_to_seconds('5x')
    with pytest.raises(TimespanError):
        parse_timespan_to_seconds('s')
