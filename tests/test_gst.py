"""Unit tests for GST arithmetic and rupee formatting."""

from decimal import Decimal

import pytest

from app.fee_engine.gst import (
    calculate_gst,
    extract_base_amount_from_total,
    extract_gst_from_total,
    format_currency,
    percentage_of,
    round_money,
)


def test_calculate_gst_is_eighteen_percent() -> None:
    assert calculate_gst(100000) == Decimal("18000.00")
    assert calculate_gst(Decimal("37500")) == Decimal("6750.00")
    assert calculate_gst("0.05") == Decimal("0.01")  # 0.009 rounds half-up


def test_extract_from_inclusive_total() -> None:
    assert extract_base_amount_from_total(118000) == Decimal("100000.00")
    assert extract_gst_from_total(118000) == Decimal("18000.00")
    assert extract_base_amount_from_total(50000) == Decimal("42372.88")
    assert extract_gst_from_total(50000) == Decimal("7627.12")


@pytest.mark.parametrize("total", ["50000", "1", "999.99", "123456.78", "0"])
def test_base_plus_gst_equals_total(total: str) -> None:
    """Extracted parts always add back to the inclusive amount."""
    value = Decimal(total)
    assert extract_base_amount_from_total(value) + extract_gst_from_total(value) == value


@pytest.mark.parametrize("base", ["37500", "0.01", "42372.88", "999999.99"])
def test_round_trip_within_a_paisa(base: str) -> None:
    value = Decimal(base)
    recovered = extract_base_amount_from_total(value + calculate_gst(value))
    assert abs(recovered - value) <= Decimal("0.01")


def test_percentage_of_rounds_half_up() -> None:
    assert percentage_of(500000, 20) == Decimal("100000.00")
    assert percentage_of("0.25", 10) == Decimal("0.03")
    assert round_money("2.675") == Decimal("2.68")


def test_format_currency_indian_grouping() -> None:
    assert format_currency(1234567.8) == "₹12,34,567.80"
    assert format_currency(500000) == "₹5,00,000.00"
    assert format_currency(999) == "₹999.00"
    assert format_currency(1000) == "₹1,000.00"
    assert format_currency(0) == "₹0.00"


def test_format_currency_negative() -> None:
    assert format_currency(-1234.5) == "-₹1,234.50"
