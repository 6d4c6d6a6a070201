"""Tests for calendar helpers."""

import re

from patternle.date_utils import date_key_offset, get_puzzle_number, get_today_date_key


class TestDateUtils:
    """Tests for date key helpers."""

    def test_today_format(self):
        """Test the YYYY-MM-DD shape of today's key."""
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", get_today_date_key())

    def test_today_respects_timezone(self):
        """Test that keys for distant timezones differ by at most a day."""
        east = get_today_date_key("Pacific/Kiritimati")
        west = get_today_date_key("Pacific/Pago_Pago")

        assert east >= west

    def test_offset_across_leap_day(self):
        """Test day arithmetic across February 29th."""
        assert date_key_offset(1, "2024-02-28") == "2024-02-29"
        assert date_key_offset(2, "2024-12-31") == "2025-01-02"
        assert date_key_offset(-1, "2025-01-01") == "2024-12-31"

    def test_puzzle_number(self):
        """Test numbering from the launch date."""
        assert get_puzzle_number("2024-01-01") == 1
        assert get_puzzle_number("2024-01-10") == 10
        assert get_puzzle_number("2025-01-01") == 367

    def test_puzzle_number_before_launch(self):
        """Test that early dates clamp to puzzle 1."""
        assert get_puzzle_number("2023-06-01") == 1

    def test_custom_launch_date(self):
        """Test an explicit launch date."""
        assert get_puzzle_number("2025-03-05", launch_date="2025-03-01") == 5
