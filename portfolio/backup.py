import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from portfolio.domain import Account, Entry
from portfolio.functional import Either, Left, Right
from portfolio.transforms import account_from_dict, entry_from_dict

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


@dataclass(frozen=True)
class Backup:
    version: str
    exported_at: str
    accounts: tuple[Account, ...]
    entries: tuple[Entry, ...]


def _iso(dt):
    return dt.isoformat() if dt is not None else None


def account_to_dict(a: Account) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "accountType": a.account_type,
        "isActive": a.is_active,
        "createdAt": _iso(a.created_at),
    }


def entry_to_dict(e: Entry) -> dict:
    # values travel as strings so Decimal amounts survive the round trip
    return {
        "id": e.id,
        "accountId": e.account_id,
        "value": str(e.value),
        "entryDate": e.entry_date.isoformat(),
        "notes": e.notes,
        "createdAt": _iso(e.created_at),
    }


def create_backup(accounts: Iterable[Account], entries: Iterable[Entry], now: datetime) -> str:
    payload = {
        "version": BACKUP_VERSION,
        "exportedAt": now.isoformat(),
        "accounts": [account_to_dict(a) for a in accounts],
        "entries": [entry_to_dict(e) for e in entries],
    }
    return json.dumps(payload, indent=2)


def backup_filename(now: datetime) -> str:
    return f"portfolio-backup-{now.date().isoformat()}.json"


def _decode(content: str) -> Either[dict, object]:
    try:
        return Right(json.loads(content))
    except json.JSONDecodeError as e:
        return Left({"error": "invalid_json", "message": f"Backup is not valid JSON: {e}"})


def _check_structure(data) -> Either[dict, dict]:
    if (
        not isinstance(data, dict)
        or not data.get("version")
        or not isinstance(data.get("accounts"), list)
        or not isinstance(data.get("entries"), list)
    ):
        return Left({
            "error": "invalid_structure",
            "message": "Backup must contain version, accounts and entries",
        })
    return Right(data)


def _read_records(data: dict) -> Either[dict, Backup]:
    try:
        accounts = tuple(account_from_dict(a) for a in data["accounts"])
        entries = tuple(entry_from_dict(e) for e in data["entries"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Rejected backup record: %s", e)
        return Left({"error": "invalid_record", "message": f"Backup has a malformed record: {e}"})
    return Right(Backup(
        version=str(data["version"]),
        exported_at=str(data.get("exportedAt", "")),
        accounts=accounts,
        entries=entries,
    ))


def parse_backup(content: str) -> Either[dict, Backup]:
    """Decode, check the envelope, then read records; the first failure wins."""
    return _decode(content).bind(_check_structure).bind(_read_records)


def validate_backup(backup: Backup) -> list[str]:
    """Referential checks before a restore; an empty list means it is safe."""
    errors = []
    for a in backup.accounts:
        if not a.id or not a.name:
            errors.append("Invalid account: missing id or name")

    account_ids = {a.id for a in backup.accounts}
    for e in backup.entries:
        if not e.id or not e.account_id:
            errors.append("Invalid entry: missing id or accountId")
        if e.account_id not in account_ids:
            errors.append(f"Entry references unknown account: {e.account_id}")
    return errors
