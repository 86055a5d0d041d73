"""
Tests for shared helpers.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from aws_cost_rollup.utils import (
    clean_service_name,
    format_cost,
    format_percent,
    parse_api_timestamp,
    shift_months,
    to_decimal,
    trailing_full_months,
)


def test_clean_service_name():
    assert clean_service_name("Amazon Elastic Compute Cloud - Compute") == "EC2"
    assert clean_service_name("Amazon Simple Storage Service") == "S3"
    assert clean_service_name("AWS Key Management Service") == "Key Managemen..."


def test_shift_months_crosses_year():
    assert shift_months(date(2025, 2, 14), 3) == date(2024, 11, 1)


def test_trailing_full_months():
    assert trailing_full_months(date(2025, 1, 10), 1) == (
        date(2024, 12, 1),
        date(2024, 12, 31),
    )


def test_parse_api_timestamp():
    assert parse_api_timestamp("2025-03-01") == date(2025, 3, 1)
    assert parse_api_timestamp("2025-03-01T05:00:00Z") == datetime(
        2025, 3, 1, 5, tzinfo=timezone.utc
    )


def test_to_decimal():
    assert to_decimal("12.345") == Decimal("12.345")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("n/a") == Decimal("0")


def test_formatting():
    assert format_cost(Decimal("3.14159")) == "3.14"
    assert format_percent(None) == "N/A"
    assert format_percent(Decimal("-12.34")) == "-12.3"
