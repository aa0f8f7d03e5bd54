# tests/unit/test_helpers.py
"""
Unit tests for helper utilities
"""
import pytest
from datetime import datetime, timezone

from utils.helpers import (
    calculate_percentage_change,
    clamp,
    days_between,
    format_number,
    format_number_with_commas,
    format_percentage,
    format_price,
    measure_time,
    normalize_symbol,
    parse_timestamp,
    price_change_percent,
    safe_divide,
    symbol_from_url,
    to_float,
)


@pytest.mark.unit
class TestMathHelpers:
    """Arithmetic helpers"""

    def test_safe_divide(self):
        assert safe_divide(10, 4) == 2.5
        assert safe_divide(1, 0) == 0.0
        assert safe_divide(1, 0, default=5) == 5
        assert safe_divide(float('inf'), 1, default=-1) == -1

    def test_clamp(self):
        assert clamp(150, 0, 100) == 100
        assert clamp(-5, 0, 100) == 0
        assert clamp(42, 0, 100) == 42

    def test_percentage_change(self):
        assert calculate_percentage_change(100, 150) == pytest.approx(50)
        assert calculate_percentage_change(0, 150) == 0

    def test_price_change_percent(self):
        assert price_change_percent(1.2, 0.2) == pytest.approx(20)
        assert price_change_percent(0.5, -0.5) == pytest.approx(-50)
        assert price_change_percent(1.0, 1.0) == 0

    @pytest.mark.parametrize("value,expected", [
        ("2.5", 2.5), (3, 3.0), (None, 0.0), ("", 0.0), ("abc", 0.0), (float('nan'), 0.0),
    ])
    def test_to_float(self, value, expected):
        assert to_float(value) == expected


@pytest.mark.unit
class TestTimeHelpers:
    """Timestamp parsing"""

    def test_iso_with_z(self):
        assert parse_timestamp("2025-05-01T00:00:00Z") == datetime(2025, 5, 1, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        parsed = parse_timestamp("2025-05-01T10:00:00")
        assert parsed.tzinfo is not None
        assert parsed == datetime(2025, 5, 1, 10, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert parse_timestamp(1748736000) == expected
        assert parse_timestamp(1748736000000) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date", 1e20, -1e15, float('nan')])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None

    def test_days_between(self):
        start = datetime(2025, 5, 1, tzinfo=timezone.utc)
        end = datetime(2025, 5, 2, 12, tzinfo=timezone.utc)
        assert days_between(start, end) == pytest.approx(1.5)


@pytest.mark.unit
class TestFormatting:
    """Display formatting"""

    @pytest.mark.parametrize("price,expected", [
        (1234.5, "1234.50"),
        (1.5, "1.5000"),
        (0.05, "0.05000"),
        (0.0005, "0.000500"),
        (0.000005, "0.00000500"),
    ])
    def test_format_price(self, price, expected):
        assert format_price(price) == expected

    @pytest.mark.parametrize("num,expected", [
        (2_500_000_000, "2.50B"), (1_500_000, "1.50M"), (1500, "1.50K"), (12, "12.00"),
    ])
    def test_format_number(self, num, expected):
        assert format_number(num) == expected

    def test_format_number_with_commas(self):
        assert format_number_with_commas(1234567.5) == "1,234,567.5"
        assert format_number_with_commas(-1234) == "-1,234"
        assert format_number_with_commas(999) == "999"

    def test_format_percentage(self):
        assert format_percentage(12.5) == "+12.50%"
        assert format_percentage(-3) == "-3.00%"
        assert format_percentage(0) == "+0.00%"


@pytest.mark.unit
class TestSymbols:
    """Symbol normalization and URL extraction"""

    def test_normalize_symbol(self):
        assert normalize_symbol("  moon ") == "MOON"
        assert normalize_symbol(None) == ""

    @pytest.mark.parametrize("url,expected", [
        ("https://rugplay.com/coin/moon", "MOON"),
        ("https://rugplay.com/coin/SUN42?tab=holders", "SUN42"),
        ("https://rugplay.com/market", None),
        ("", None),
    ])
    def test_symbol_from_url(self, url, expected):
        assert symbol_from_url(url) == expected


@pytest.mark.unit
class TestMeasureTime:
    """measure_time decorator"""

    def test_sync(self):
        @measure_time
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_async(self):
        @measure_time
        async def fetch():
            return "done"

        assert await fetch() == "done"
