import json
import logging
import re
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Tuple
from uuid import uuid4

from portfolio.domain import Account, Entry

logger = logging.getLogger(__name__)

_AMOUNT_NOISE = re.compile(r"[$,\s]")


def parse_amount(text) -> Optional[Decimal]:
    """'$25,000.00' -> Decimal('25000.00'); None when it is not a number."""
    if text is None:
        return None
    cleaned = _AMOUNT_NOISE.sub("", str(text))
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _parse_datetime(raw) -> Optional[datetime]:
    return datetime.fromisoformat(raw) if raw else None


def account_from_dict(d: dict) -> Account:
    return Account(
        id=d["id"],
        name=d["name"],
        account_type=d.get("account_type") or d.get("accountType"),
        is_active=d.get("is_active", d.get("isActive", True)),
        created_at=_parse_datetime(d.get("created_at") or d.get("createdAt")),
    )


def entry_from_dict(d: dict) -> Entry:
    value = parse_amount(d["value"])
    if value is None:
        raise ValueError(f"Entry {d.get('id')!r} has a non-numeric value: {d['value']!r}")
    raw_date = d.get("entry_date") or d.get("entryDate")
    return Entry(
        id=d["id"],
        account_id=d.get("account_id") or d.get("accountId"),
        value=value,
        entry_date=date.fromisoformat(str(raw_date)[:10]),
        notes=d.get("notes") or None,
        created_at=_parse_datetime(d.get("created_at") or d.get("createdAt")),
    )


def load_seed(path: str) -> Tuple[Tuple[Account, ...], Tuple[Entry, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    accounts = tuple(account_from_dict(a) for a in data["accounts"])
    entries = tuple(entry_from_dict(e) for e in data["entries"])
    logger.info("Loaded %d accounts and %d entries from %s", len(accounts), len(entries), path)
    return accounts, entries


def new_account(name: str, now: datetime, account_type: Optional[str] = None) -> Account:
    return Account(
        id=str(uuid4()),
        name=name.strip(),
        account_type=account_type or None,
        is_active=True,
        created_at=now,
    )


def new_entry(
    account_id: str, value: Decimal, entry_date: date, now: datetime, notes: Optional[str] = None
) -> Entry:
    return Entry(
        id=str(uuid4()),
        account_id=account_id,
        value=value,
        entry_date=entry_date,
        notes=(notes or "").strip() or None,
        created_at=now,
    )


def add_account(accounts: Tuple[Account, ...], account: Account) -> Tuple[Account, ...]:
    return accounts + (account,)


def rename_account(
    accounts: Tuple[Account, ...], account_id: str, name: str, account_type: Optional[str] = None
) -> Tuple[Account, ...]:
    """Blank names keep the current name; surrounding whitespace is dropped."""
    name = name.strip()
    account_type = (account_type or "").strip() or None
    return tuple(
        replace(a, name=name or a.name, account_type=account_type) if a.id == account_id else a
        for a in accounts
    )


def toggle_account_active(accounts: Tuple[Account, ...], account_id: str) -> Tuple[Account, ...]:
    return tuple(
        replace(a, is_active=not a.is_active) if a.id == account_id else a
        for a in accounts
    )


def delete_account(
    accounts: Tuple[Account, ...], entries: Tuple[Entry, ...], account_id: str
) -> Tuple[Tuple[Account, ...], Tuple[Entry, ...]]:
    """Remove an account together with all of its entries."""
    return (
        tuple(a for a in accounts if a.id != account_id),
        tuple(e for e in entries if e.account_id != account_id),
    )


def add_entries(entries: Tuple[Entry, ...], new: Iterable[Entry]) -> Tuple[Entry, ...]:
    return entries + tuple(new)


def update_entry(entries: Tuple[Entry, ...], entry_id: str, **changes) -> Tuple[Entry, ...]:
    return tuple(replace(e, **changes) if e.id == entry_id else e for e in entries)


def delete_entry(entries: Tuple[Entry, ...], entry_id: str) -> Tuple[Entry, ...]:
    return tuple(e for e in entries if e.id != entry_id)


def active_accounts(accounts: Iterable[Account]) -> Tuple[Account, ...]:
    return tuple(filter(lambda a: a.is_active, accounts))


def entries_for_account(entries: Iterable[Entry], account_id: str) -> Tuple[Entry, ...]:
    return tuple(filter(lambda e: e.account_id == account_id, entries))
