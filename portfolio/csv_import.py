import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from portfolio.domain import Account, Entry
from portfolio.transforms import add_account, new_account, new_entry, parse_amount

logger = logging.getLogger(__name__)

CSV_HEADER = "Account Name,Value,Date,Notes"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


@dataclass(frozen=True)
class CSVRow:
    account_name: str
    value: Decimal
    date: date
    notes: Optional[str] = None


@dataclass(frozen=True)
class InvalidRow:
    row: int        # 1-based line number in the file
    reason: str
    data: tuple[str, ...]


@dataclass(frozen=True)
class CSVImportResult:
    valid: tuple[CSVRow, ...]
    invalid: tuple[InvalidRow, ...]


def parse_date(text: str) -> Optional[date]:
    """Accept YYYY-MM-DD or M/D/YYYY."""
    if not text:
        return None
    text = text.strip()
    try:
        if _ISO_DATE.match(text):
            return date.fromisoformat(text)
        m = _US_DATE.match(text)
        if m:
            month, day, year = (int(g) for g in m.groups())
            return date(year, month, day)
    except ValueError:
        return None
    return None


def _check_row(row_num: int, parts: list[str]) -> CSVRow | InvalidRow:
    data = tuple(parts)
    if len(parts) < 3:
        return InvalidRow(row_num, "Not enough columns (expected: Account Name, Value, Date)", data)

    account_name, value_str, date_str = parts[0], parts[1], parts[2]
    notes = parts[3] if len(parts) > 3 else ""

    if not account_name:
        return InvalidRow(row_num, "Missing account name", data)

    value = parse_amount(value_str)
    if value is None:
        return InvalidRow(row_num, f'Invalid value: "{value_str}"', data)

    entry_date = parse_date(date_str)
    if entry_date is None:
        return InvalidRow(row_num, f'Invalid date: "{date_str}" (expected YYYY-MM-DD)', data)

    return CSVRow(account_name, value, entry_date, notes or None)


def parse_csv(content: str) -> CSVImportResult:
    """Parse `Account Name,Value,Date[,Notes]` rows.

    A first line mentioning "account" is treated as a header. Bad rows are
    collected in `invalid` with the reason, never raised.
    """
    lines = content.strip().splitlines()
    start = 1 if lines and "account" in lines[0].lower() else 0

    valid: list[CSVRow] = []
    invalid: list[InvalidRow] = []
    for idx in range(start, len(lines)):
        line = lines[idx].strip()
        if not line:
            continue
        parts = [p.strip() for p in next(csv.reader([line], skipinitialspace=True))]
        checked = _check_row(idx + 1, parts)
        if isinstance(checked, InvalidRow):
            invalid.append(checked)
        else:
            valid.append(checked)

    logger.info("Parsed CSV: %d valid rows, %d invalid rows", len(valid), len(invalid))
    return CSVImportResult(tuple(valid), tuple(invalid))


def import_rows(
    rows: Iterable[CSVRow], accounts: Tuple[Account, ...], now: datetime
) -> Tuple[Tuple[Account, ...], Tuple[Entry, ...]]:
    """Turn parsed rows into entries, creating missing accounts by name.

    Names match case-insensitively; each missing name creates one account.
    """
    ids_by_name = {a.name.lower(): a.id for a in accounts}
    entries: list[Entry] = []
    for row in rows:
        key = row.account_name.lower()
        if key not in ids_by_name:
            created = new_account(row.account_name, now)
            accounts = add_account(accounts, created)
            ids_by_name[key] = created.id
            logger.info("Created account %r during import", created.name)
        entries.append(new_entry(ids_by_name[key], row.value, row.date, now, row.notes))
    return accounts, tuple(entries)


def generate_csv_template() -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER.split(","))
    writer.writerow(["401k", "50000.00", "2024-01-15", "Q1 balance"])
    writer.writerow(["Roth IRA", "$25,000.00", "2024-01-15", ""])
    return out.getvalue().rstrip("\n")
