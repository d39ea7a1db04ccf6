"""Tests for duration parsing."""

import pytest

from reqcache import parse_duration


class TestParseDuration:
    """Tests for parse_duration function."""

    def test_milliseconds(self) -> None:
        """Test parsing milliseconds."""
        assert parse_duration("500ms") == pytest.approx(0.5)
        assert parse_duration("1ms") == pytest.approx(0.001)
        assert parse_duration("0ms") == 0

    def test_seconds(self) -> None:
        """Test parsing seconds."""
        assert parse_duration("1s") == 1
        assert parse_duration("30s") == 30
        assert parse_duration("1.5s") == 1.5

    def test_minutes_hours_days(self) -> None:
        assert parse_duration("5m") == 300
        assert parse_duration("2h") == 7_200
        assert parse_duration("1d") == 86_400

    def test_number_passthrough(self) -> None:
        """Test that numbers are taken as seconds."""
        assert parse_duration(10) == 10.0
        assert parse_duration(0.25) == 0.25
        assert isinstance(parse_duration(10), float)

    def test_invalid_format(self) -> None:
        """Test that invalid formats raise ValueError."""
        for value in ("invalid", "10x", "s10", "", "10", "-5s"):
            with pytest.raises(ValueError, match="Invalid duration"):
                parse_duration(value)

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(True)
