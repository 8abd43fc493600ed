"""
Unit tests for batching and formatting helpers.

Run: pytest tests/unit/test_utils.py -v
"""

import pytest

from utils.batching import chunk_list, group_by
from utils.text_utils import format_currency, format_margin


class TestChunkList:
    """Tests for chunk_list()"""

    def test_splits_with_remainder(self):
        assert chunk_list([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_exact_multiple(self):
        assert chunk_list(list(range(100)), 50) == [list(range(50)), list(range(50, 100))]

    def test_empty_list(self):
        assert chunk_list([], 10) == []

    def test_invalid_size_raises(self):
        with pytest.raises(ValueError):
            chunk_list([1], 0)


class TestGroupBy:
    """Tests for group_by()"""

    def test_keeps_first_seen_key_order(self):
        groups = group_by(["b1", "a1", "b2"], lambda s: s[0])

        assert list(groups.keys()) == ["b", "a"]
        assert groups["b"] == ["b1", "b2"]


class TestFormatCurrency:
    """Tests for format_currency()"""

    def test_default_currency(self):
        assert format_currency(1234.5) == "$1,234.50"

    def test_negative_amount(self):
        assert format_currency(-5) == "-$5.00"

    def test_unknown_currency_uses_code(self):
        assert format_currency(10, "CAD") == "CAD 10.00"


class TestFormatMargin:
    """Tests for format_margin()"""

    def test_one_decimal(self):
        assert format_margin(12.345) == "12.3%"

    def test_negative(self):
        assert format_margin(-50) == "-50.0%"
