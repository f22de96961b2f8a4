from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

@dataclass(frozen=True)
class Account:
    id: str
    name: str
    account_type: Optional[str] = None   # e.g. "401k", "IRA"
    is_active: bool = True
    created_at: Optional[datetime] = None


# A value snapshot for one account on one date
@dataclass(frozen=True)
class Entry:
    id: str
    account_id: str     # which account
    value: Decimal
    entry_date: date    # calendar date, UTC-normalized
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TimeFilter:
    id: str
    label: str
    days: Optional[int]  # None when computed from "now"


@dataclass(frozen=True)
class AccountSummary:
    id: str
    name: str
    current_value: Decimal
    baseline_value: Decimal
    change_amount: Decimal
    change_percent: Decimal
    last_updated: datetime


@dataclass(frozen=True)
class DashboardSummary:
    total_value: Decimal
    total_baseline: Decimal
    total_change_amount: Decimal
    total_change_percent: Decimal
    last_updated: datetime
    accounts: tuple[AccountSummary, ...] = ()


@dataclass(frozen=True)
class ChartPoint:
    date: date
    total_value: Decimal
    accounts: dict = field(default_factory=dict)  # account name -> value
