import math
from datetime import datetime
from typing import Optional

from portfolio.domain import TimeFilter

DEFAULT_DAYS = 90
DEFAULT_FILTER_ID = "3m"
MAX_DAYS = 10000

TIME_FILTERS: tuple[TimeFilter, ...] = (
    TimeFilter("1m", "Month", 30),
    TimeFilter("3m", "3 Month", 90),
    TimeFilter("6m", "6 Month", 180),
    TimeFilter("ytd", "YTD", None),
    TimeFilter("1y", "1 Year", 365),
    TimeFilter("3y", "3 Year", 1095),
    TimeFilter("5y", "5 Year", 1825),
    TimeFilter("max", "Max", MAX_DAYS),
)


def find_filter(filter_id: str) -> Optional[TimeFilter]:
    return next((f for f in TIME_FILTERS if f.id == filter_id), None)


def year_to_date_days(now: datetime) -> int:
    """Days since Jan 1 of the current year, counting today."""
    start_of_year = datetime(now.year, 1, 1, tzinfo=now.tzinfo)
    hours = abs((now - start_of_year).total_seconds()) / 3600
    return math.ceil(hours / 24) + 1


def resolve_filter_days(filter_id: str, now: datetime) -> int:
    """Map a time-filter id to a day count.

    Unknown ids resolve to DEFAULT_DAYS instead of raising.
    """
    if filter_id == "ytd":
        return year_to_date_days(now)
    f = find_filter(filter_id)
    if f is None or f.days is None:
        return DEFAULT_DAYS
    return f.days
