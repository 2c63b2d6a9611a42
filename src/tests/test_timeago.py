from __future__ import annotations

from unittest.mock import patch

import pytest

from hn_tui.timeago import format_age

NOW = 1_700_000_000


@pytest.mark.parametrize(
    "age, expected",
    [
        (0, "just now"),
        (59, "just now"),
        (60, "1 min"),
        (119, "1 min"),
        (120, "2 mins"),
        (3599, "59 mins"),
        (3600, "1 hr"),
        (7199, "1 hr"),
        (7200, "2 hrs"),
        (86399, "23 hrs"),
        (86400, "1 day"),
        (172799, "1 day"),
        (172800, "2 days"),
        (30 * 86400, "30 days"),
    ],
)
def test_format_age(age, expected):
    assert format_age(NOW - age, NOW) == expected


def test_future_timestamp_is_just_now():
    assert format_age(NOW + 500, NOW) == "just now"


def test_defaults_to_current_time():
    with patch("hn_tui.timeago.time.time", return_value=NOW):
        assert format_age(NOW - 7200) == "2 hrs"
