import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Tuple

from portfolio.chart import chart_account_names, generate_chart_data
from portfolio.domain import Account, ChartPoint, DashboardSummary, Entry
from portfolio.events import ACCOUNTS_CHANGED, ENTRIES_CHANGED, FILTER_CHANGED, Event, EventBus
from portfolio.summary import calculate_dashboard_summary
from portfolio.transforms import active_accounts
from portfolio.windows import resolve_filter_days

logger = logging.getLogger(__name__)

WorkingSet = Tuple[Sequence[Account], Sequence[Entry], str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DashboardView:
    filter_id: str
    days: int
    summary: DashboardSummary
    chart: tuple[ChartPoint, ...]
    account_names: list[str]


class DashboardService:
    """Facade that runs the aggregation functions for one working set.

    now_fn: clock used for every computation; tests inject a fixed instant.
    Holds no copy of accounts or entries; the caller decides when to recompute.
    """

    def __init__(self, now_fn: Callable[[], datetime] = utc_now):
        self.now_fn = now_fn

    def compute(
        self,
        accounts: Sequence[Account],
        entries: Sequence[Entry],
        filter_id: str,
        include_inactive: bool = False,
    ) -> DashboardView:
        now = self.now_fn()
        days = resolve_filter_days(filter_id, now)
        shown = tuple(accounts) if include_inactive else active_accounts(accounts)
        logger.debug("Recomputing dashboard: filter=%s days=%d accounts=%d entries=%d",
                     filter_id, days, len(shown), len(entries))
        return DashboardView(
            filter_id=filter_id,
            days=days,
            summary=calculate_dashboard_summary(shown, entries, days, now),
            chart=generate_chart_data(entries, shown, days, now),
            account_names=chart_account_names(shown),
        )

    def bind(
        self,
        bus: EventBus,
        source: Callable[[], WorkingSet],
        on_view: Optional[Callable[[DashboardView], None]] = None,
    ) -> Callable[[Event, dict], dict]:
        """Recompute whenever the working set or the selected window changes."""

        def _recompute(event: Event, payload: dict) -> dict:
            accounts, entries, filter_id = source()
            view = self.compute(accounts, entries, filter_id)
            if on_view is not None:
                on_view(view)
            return {"event": event.name, "view": view}

        for name in (ENTRIES_CHANGED, ACCOUNTS_CHANGED, FILTER_CHANGED):
            bus.subscribe(name, _recompute)
        return _recompute
