from datetime import date, datetime, timezone
from decimal import Decimal

from portfolio.domain import Account, Entry
from portfolio.events import ACCOUNTS_CHANGED, ENTRIES_CHANGED, FILTER_CHANGED, Event, EventBus
from portfolio.services import DashboardService

NOW = datetime(2024, 7, 1, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


def make_entry(id, account_id, value, d):
    return Entry(id=id, account_id=account_id, value=Decimal(value), entry_date=d)


ACCOUNTS = (
    Account("a1", "401k"),
    Account("a2", "HSA", is_active=False),
)
ENTRIES = (
    make_entry("e1", "a1", "100", date(2024, 5, 1)),
    make_entry("e2", "a1", "130", date(2024, 6, 1)),
    make_entry("e3", "a2", "40", date(2024, 6, 1)),
)


def test_event_bus_publish_and_unsubscribe():
    bus = EventBus(clock=fixed_clock)
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event)
        return {"ok": True}

    bus.subscribe(ENTRIES_CHANGED, handler)
    assert bus.publish(ENTRIES_CHANGED, {"count": 1}) == [{"ok": True}]
    assert seen[0].ts == NOW.isoformat()
    assert seen[0].payload == {"count": 1}

    bus.unsubscribe(ENTRIES_CHANGED, handler)
    assert bus.publish(ENTRIES_CHANGED, {}) == []
    assert bus.publish("UNKNOWN", {}) == []


def test_compute_uses_active_accounts_only():
    view = DashboardService(now_fn=fixed_clock).compute(ACCOUNTS, ENTRIES, "3m")
    assert view.days == 90
    assert [a.id for a in view.summary.accounts] == ["a1"]
    assert view.summary.total_value == Decimal("130")
    assert view.summary.total_change_amount == Decimal("30")
    assert view.account_names == ["401k"]
    assert [p.date for p in view.chart] == [date(2024, 5, 1), date(2024, 6, 1)]


def test_compute_can_include_inactive():
    view = DashboardService(now_fn=fixed_clock).compute(ACCOUNTS, ENTRIES, "3m", include_inactive=True)
    assert view.summary.total_value == Decimal("170")
    assert view.chart[-1].accounts == {"401k": Decimal("130"), "HSA": Decimal("40")}


def test_bind_recomputes_on_every_change():
    state = {"accounts": ACCOUNTS, "entries": ENTRIES[:1], "filter": "1m"}
    views = []
    bus = EventBus(clock=fixed_clock)
    DashboardService(now_fn=fixed_clock).bind(
        bus, lambda: (state["accounts"], state["entries"], state["filter"]), on_view=views.append
    )

    bus.publish(FILTER_CHANGED, {})
    assert views[-1].chart == ()
    assert views[-1].summary.total_value == Decimal("100")
    assert views[-1].summary.total_change_amount == 0

    state["filter"] = "3m"
    bus.publish(FILTER_CHANGED, {"filter_id": "3m"})
    assert views[-1].days == 90
    assert views[-1].summary.total_value == Decimal("100")

    state["entries"] = ENTRIES
    results = bus.publish(ENTRIES_CHANGED, {})
    assert results[0]["event"] == ENTRIES_CHANGED
    assert results[0]["view"].summary.total_value == Decimal("130")

    state["accounts"] = ()
    bus.publish(ACCOUNTS_CHANGED, {})
    assert views[-1].summary.accounts == ()
    assert len(views) == 4
