from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional

from portfolio.domain import Account, Entry
from portfolio.snapshots import latest_entries


@dataclass(frozen=True)
class HistoryRow:
    entry_id: str
    account_id: str
    account_name: str
    value: Decimal
    entry_date: date
    notes: Optional[str]


def iter_history(
    entries: Iterable[Entry], accounts: Iterable[Account], account_id: Optional[str] = None
) -> Iterator[HistoryRow]:
    """Yield entries newest first, optionally for a single account."""
    names = {a.id: a.name for a in accounts}
    ordered = sorted(entries, key=lambda e: (e.entry_date, e.id), reverse=True)
    for e in ordered:
        if account_id is not None and e.account_id != account_id:
            continue
        yield HistoryRow(
            entry_id=e.id,
            account_id=e.account_id,
            account_name=names.get(e.account_id, "Unknown"),
            value=e.value,
            entry_date=e.entry_date,
            notes=e.notes,
        )


def last_values(entries: Iterable[Entry], accounts: Iterable[Account]) -> dict[str, Decimal]:
    """Most recent value per account, for prefilling the data-entry form."""
    latest = latest_entries(entries, [a.id for a in accounts])
    return {acc_id: e.value for acc_id, e in latest.items() if e is not None}
