# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# dupinspect/tests/test_timefmt.py

from datetime import datetime, timedelta, timezone

from dupinspect.timefmt import format_age, format_size, format_time

NOW = datetime(2016, 7, 1, 12, 0, tzinfo=timezone.utc)


class TestFormatTime:
    def test_current_year_shows_clock(self):
        assert format_time(datetime(2016, 2, 22, 14, 53, tzinfo=timezone.utc), now=NOW, local=False) == "Feb 22 14:53"

    def test_other_year_shows_year(self):
        assert format_time(datetime(2012, 2, 22, 14, 53, tzinfo=timezone.utc), now=NOW, local=False) == "Feb 22  2012"


class TestHumanized:
    def test_age(self):
        assert format_age(NOW - timedelta(days=3), now=NOW) == "3 days ago"

    def test_size(self):
        assert format_size(None) == "?"
        assert format_size(2048) == "2.0 KiB"
