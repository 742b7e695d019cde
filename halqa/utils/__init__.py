"""Utility helper functions."""

from halqa.utils.helpers import (
    get_summary,
    host,
    iso_timestamp,
    parse_flag,
    split_categories,
    time_taken,
    today_str,
    utc_now,
)

__all__ = [
    "get_summary",
    "host",
    "iso_timestamp",
    "parse_flag",
    "split_categories",
    "time_taken",
    "today_str",
    "utc_now",
]
