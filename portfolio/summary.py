from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from portfolio.domain import Account, AccountSummary, DashboardSummary, Entry
from portfolio.snapshots import (
    as_decimal,
    entry_datetime,
    filter_entries_by_days,
    latest_entries,
    oldest_entries_in_range,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percent_change(change: Decimal, baseline: Decimal) -> Decimal:
    if baseline == 0:
        return ZERO
    return change / baseline * HUNDRED


def summarize_account(
    account: Account, latest: Entry | None, oldest: Entry | None, now: datetime
) -> AccountSummary:
    current = as_decimal(latest.value) if latest is not None else ZERO
    # no in-window baseline means no change, never a value from outside the window
    baseline = as_decimal(oldest.value) if oldest is not None else current
    change = current - baseline
    return AccountSummary(
        id=account.id,
        name=account.name,
        current_value=current,
        baseline_value=baseline,
        change_amount=change,
        change_percent=percent_change(change, baseline),
        last_updated=entry_datetime(latest.entry_date, now) if latest is not None else now,
    )


def calculate_dashboard_summary(
    accounts: Sequence[Account],
    entries: Iterable[Entry],
    days: int,
    now: datetime,
) -> DashboardSummary:
    entries = tuple(entries)
    account_ids = [a.id for a in accounts]
    filtered = filter_entries_by_days(entries, days, now)
    latest = latest_entries(entries, account_ids)
    oldest = oldest_entries_in_range(filtered, account_ids)

    summaries = tuple(
        summarize_account(a, latest[a.id], oldest[a.id], now) for a in accounts
    )

    total_value = sum((s.current_value for s in summaries), ZERO)
    total_baseline = sum((s.baseline_value for s in summaries), ZERO)
    total_change = total_value - total_baseline

    observed = [
        entry_datetime(e.entry_date, now) for e in latest.values() if e is not None
    ]

    return DashboardSummary(
        total_value=total_value,
        total_baseline=total_baseline,
        total_change_amount=total_change,
        total_change_percent=percent_change(total_change, total_baseline),
        last_updated=max(observed) if observed else now,
        accounts=summaries,
    )
