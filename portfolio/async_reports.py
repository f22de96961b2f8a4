import asyncio
from datetime import datetime
from typing import Dict, Iterable, Sequence

from portfolio.domain import Account, DashboardSummary, Entry
from portfolio.summary import calculate_dashboard_summary
from portfolio.windows import resolve_filter_days


async def summaries_by_filter(
    accounts: Sequence[Account],
    entries: Sequence[Entry],
    filter_ids: Iterable[str],
    now: datetime,
) -> Dict[str, DashboardSummary]:
    """Compute one dashboard summary per time filter, all against the same `now`.

    Duplicate filter ids are computed once. Awaitable so a caller already on
    an event loop can gather it with its own work.
    """
    accounts = tuple(accounts)
    entries = tuple(entries)

    async def one(filter_id: str) -> tuple[str, DashboardSummary]:
        days = resolve_filter_days(filter_id, now)
        summary = calculate_dashboard_summary(accounts, entries, days, now)
        await asyncio.sleep(0)
        return filter_id, summary

    results = await asyncio.gather(*(one(f) for f in dict.fromkeys(filter_ids)))
    return {k: v for k, v in results}
