from datetime import datetime, timedelta, timezone

import pytest

from pinkpost.time_utils import parse_iso_datetime, to_utc_z


class TestParseIsoDatetime:

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_none(self, value):
        assert parse_iso_datetime(value) is None

    def test_bare_date_is_midnight_utc(self):
        assert parse_iso_datetime("2026-12-01") == datetime(2026, 12, 1)

    @pytest.mark.parametrize("value", ["2026-11-02T14:00:00Z", "2026-11-02T14:00:00z", "2026-11-02T09:00:00-05:00"])
    def test_offsets_are_shifted_to_naive_utc(self, value):
        parsed = parse_iso_datetime(value)

        assert parsed == datetime(2026, 11, 2, 14, 0)
        assert parsed.tzinfo is None

    def test_naive_value_is_taken_as_utc(self):
        assert parse_iso_datetime("2026-11-02T14:30") == datetime(2026, 11, 2, 14, 30)

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_iso_datetime("next tuesday")


class TestToUtcZ:

    def test_none(self):
        assert to_utc_z(None) is None

    def test_naive_value_drops_microseconds(self):
        assert to_utc_z(datetime(2026, 3, 14, 15, 30, 0, 999)) == "2026-03-14T15:30:00Z"

    def test_aware_value_is_converted(self):
        eastern = timezone(timedelta(hours=-4))
        assert to_utc_z(datetime(2026, 3, 14, 11, 30, tzinfo=eastern)) == "2026-03-14T15:30:00Z"
