from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from portfolio.domain import Entry


def as_decimal(value) -> Decimal:
    """Entry values may arrive as int or float; floats go through str to stay exact."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def entry_datetime(d: date, now: datetime) -> datetime:
    """Midnight of `d` in the same timezone as `now`."""
    return datetime.combine(d, time(), tzinfo=now.tzinfo)


def cutoff_for(days: int, now: datetime) -> datetime:
    return now - timedelta(days=days)


def filter_entries_by_days(
    entries: Iterable[Entry], days: int, now: datetime
) -> tuple[Entry, ...]:
    cutoff = cutoff_for(days, now)
    return tuple(e for e in entries if entry_datetime(e.entry_date, now) >= cutoff)


def group_by_account(entries: Iterable[Entry]) -> dict[str, list[Entry]]:
    grouped: dict[str, list[Entry]] = defaultdict(list)
    for e in entries:
        grouped[e.account_id].append(e)
    return grouped


# Same-date ties always go to the greater entry id, whatever the input order.
def pick_latest(entries: Iterable[Entry]) -> Optional[Entry]:
    return max(entries, key=lambda e: (e.entry_date, e.id), default=None)


def pick_oldest(entries: Iterable[Entry]) -> Optional[Entry]:
    items = list(entries)
    if not items:
        return None
    earliest = min(e.entry_date for e in items)
    return max((e for e in items if e.entry_date == earliest), key=lambda e: e.id)


def latest_entries(
    entries: Iterable[Entry], account_ids: Iterable[str]
) -> dict[str, Optional[Entry]]:
    grouped = group_by_account(entries)
    return {acc_id: pick_latest(grouped.get(acc_id, ())) for acc_id in account_ids}


def oldest_entries_in_range(
    filtered: Iterable[Entry], account_ids: Iterable[str]
) -> dict[str, Optional[Entry]]:
    """Oldest entry per account, looking only at the already filtered entries.

    An account with no entry in `filtered` maps to None even when it has
    older entries outside the window.
    """
    grouped = group_by_account(filtered)
    return {acc_id: pick_oldest(grouped.get(acc_id, ())) for acc_id in account_ids}
