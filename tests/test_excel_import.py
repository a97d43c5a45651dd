from datetime import time

from app.utils.excel_import import to_hhmm, to_int


def test_to_int_keeps_whole_numbers():
    assert to_int(3) == 3
    assert to_int(2.0) == 2
    assert to_int("6") == 6


def test_to_int_rejects_fractions_and_junk():
    assert to_int(1.7) is None
    assert to_int("6.5") is None
    assert to_int("abc") is None
    assert to_int(None) is None
    assert to_int(float("nan")) is None


def test_to_hhmm():
    assert to_hhmm(time(8, 0)) == "08:00"
    assert to_hhmm("08:00:00") == "08:00"
    assert to_hhmm(" 19:30 ") == "19:30"
    assert to_hhmm(None) is None
