from __future__ import annotations

from decimal import Decimal

import pytest

from olga_stamps.diagnostics import PRECISION_LOSS, Diagnostics
from olga_stamps.numeric import (
    canonical_number,
    format_js_number,
    normalize_number,
    parse_decimal,
    parse_integer,
    to_wire_number,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (100000, "100000"),
        (1000.5, "1000.5"),
        (0.1, "0.1"),
        (0.00001, "0.00001"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1.23e-18, "1.23e-18"),
        (1e21, "1e+21"),
        (1.5e22, "1.5e+22"),
        (1.8446744073709552e19, "18446744073709552000"),
        (-2.5, "-2.5"),
    ],
)
def test_format_js_number(value: float, expected: str) -> None:
    assert format_js_number(value) == expected


def test_normalize_number_parses_decimal_strings() -> None:
    assert normalize_number("100000.000000000000000000") == 100000
    assert normalize_number("1000.5") == 1000.5
    assert normalize_number("21000000") == 21000000
    assert normalize_number(42) == 42


def test_normalize_number_clamps_negative_values() -> None:
    assert normalize_number("-5") == 0


def test_normalize_number_loses_precision_above_2_53() -> None:
    diagnostics = Diagnostics()

    value = normalize_number("18446744073709551615", diagnostics)

    assert value == 18446744073709552000
    assert PRECISION_LOSS in diagnostics.codes()


def test_canonical_number_matches_double_digits() -> None:
    assert canonical_number(1.8446744073709552e19) == 18446744073709552000
    assert canonical_number(18446744073709552000) == 18446744073709552000
    assert canonical_number(1000.0) == 1000
    assert isinstance(canonical_number(1000.0), int)
    assert canonical_number(1000.5) == 1000.5


def test_to_wire_number_uses_int32_range() -> None:
    assert to_wire_number(100000) == 100000
    assert isinstance(to_wire_number(2**31 - 1), int)
    assert isinstance(to_wire_number(2**31), float)
    assert isinstance(to_wire_number(1.5), float)


def test_parse_helpers() -> None:
    assert parse_decimal("1_000") is None
    assert parse_decimal("abc") is None
    assert parse_decimal(True) is None
    assert parse_decimal(" 1.50 ") == Decimal("1.50")
    assert parse_integer("21000000") == 21000000
    assert parse_integer("1000.5") is None
    assert parse_integer(18.0) == 18
