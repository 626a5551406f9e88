from __future__ import annotations

import pytest

from campaignpulse.utils.numbers import number_like, parse_number, to_unit_rate


def test_parse_number_formats() -> None:
    assert parse_number("1,234.5%") == 1234.5
    assert parse_number("12,345") == 12345
    assert isinstance(parse_number("12,345"), int)
    assert parse_number(" 4.5 % ") == 4.5
    assert parse_number("42 opens") == 42
    assert parse_number("-3") == -3


@pytest.mark.parametrize("value", ["", "   ", "abc", "42abc99", "1,23", "opens 42"])
def test_parse_number_rejects(value: str) -> None:
    assert parse_number(value) is None


def test_number_like() -> None:
    assert number_like(7) == 7
    assert number_like("3.5") == 3.5
    assert number_like(True) is None
    assert number_like(float("nan")) is None
    assert number_like({"a": 1}) is None


def test_to_unit_rate() -> None:
    assert to_unit_rate(25) == 0.25
    assert to_unit_rate(0.25) == 0.25
    assert to_unit_rate(1) == 1.0
    assert to_unit_rate(None) is None
