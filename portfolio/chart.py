from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Sequence

from portfolio.domain import Account, ChartPoint, Entry
from portfolio.snapshots import (
    as_decimal,
    filter_entries_by_days,
    group_by_account,
    pick_latest,
)

ZERO = Decimal("0")


def entries_by_date(entries: Iterable[Entry]) -> dict[date, dict[str, Decimal]]:
    """Group entries by calendar date, one value per account and date."""
    by_date: dict[date, list[Entry]] = defaultdict(list)
    for e in entries:
        by_date[e.entry_date].append(e)
    return {
        d: {acc_id: as_decimal(pick_latest(items).value) for acc_id, items in group_by_account(day).items()}
        for d, day in by_date.items()
    }


def generate_chart_data(
    entries: Iterable[Entry],
    accounts: Sequence[Account],
    days: int,
    now: datetime,
) -> tuple[ChartPoint, ...]:
    """Build one point per sampled date in the window, carrying values forward.

    Accounts not sampled on a date keep their last known value, or 0 before
    their first entry in the window.
    """
    day_values = entries_by_date(filter_entries_by_days(entries, days, now))
    last_values: dict[str, Decimal] = {}
    points = []

    for d in sorted(day_values):
        sampled = day_values[d]
        per_account: dict[str, Decimal] = {}
        total = ZERO
        for account in accounts:
            if account.id in sampled:
                last_values[account.id] = sampled[account.id]
            value = last_values.get(account.id, ZERO)
            per_account[account.name] = value
            total += value
        points.append(
            ChartPoint(
                date=d,
                total_value=total,
                accounts=per_account,
            )
        )

    return tuple(points)


def chart_account_names(accounts: Sequence[Account]) -> list[str]:
    return [a.name for a in accounts]
