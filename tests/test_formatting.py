"""Tests for report number formatting."""

from unittest.mock import patch

import pytest

from uid_io_monitor.formatting import format_grouped, format_interval, format_megabytes


class TestFormatGrouped:
    """Tests for format_grouped."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0"),
            (999, "999"),
            (1000, "1,000"),
            (10000, "10,000"),
            (134307840, "134,307,840"),
            (2**64 - 1, "18,446,744,073,709,551,615"),
        ],
    )
    def test_grouping(self, value: int, expected: str) -> None:
        assert format_grouped(value) == expected

    def test_overflow_returns_full_text_and_logs(self) -> None:
        with patch("uid_io_monitor.formatting.log") as mock_log:
            assert format_grouped(1234567, max_width=5) == "1,234,567"
        mock_log.error.assert_called_once()
        assert mock_log.error.call_args.args[0] == "grouped_number_overflow"

    def test_within_width_does_not_log(self) -> None:
        with patch("uid_io_monitor.formatting.log") as mock_log:
            format_grouped(2**64 - 1)
        mock_log.error.assert_not_called()


class TestFormatInterval:
    """Tests for format_interval."""

    def test_seconds_and_millis(self) -> None:
        assert format_interval(10160) == "10.160s"

    def test_sub_second(self) -> None:
        assert format_interval(7) == "0.007s"

    def test_zero(self) -> None:
        assert format_interval(0) == "0.000s"

    def test_negative_clamps_to_zero(self) -> None:
        """A clock stepping backwards never renders a negative interval."""
        assert format_interval(-250) == "0.000s"


def test_format_megabytes_truncates():
    assert format_megabytes(50_000_000) == "50"
    assert format_megabytes(1_999_999) == "1"
    assert format_megabytes(999_999) == "0"
