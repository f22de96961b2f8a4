import json
from datetime import date, datetime, timezone
from decimal import Decimal

from portfolio.backup import Backup, backup_filename, create_backup, parse_backup, validate_backup
from portfolio.domain import Account, Entry

NOW = datetime(2024, 7, 1, 8, 30, tzinfo=timezone.utc)

ACCOUNTS = (
    Account("a1", "401k", "401k", True, datetime(2023, 1, 1, tzinfo=timezone.utc)),
    Account("a2", "HSA", None, False, None),
)
ENTRIES = (
    Entry("e1", "a1", Decimal("1234.56"), date(2024, 6, 1), "mid-year", NOW),
    Entry("e2", "a2", Decimal("10"), date(2024, 6, 2)),
)


def test_create_backup_layout():
    data = json.loads(create_backup(ACCOUNTS, ENTRIES, NOW))
    assert data["version"] == "1.0"
    assert data["exportedAt"] == NOW.isoformat()
    assert data["accounts"][0] == {
        "id": "a1",
        "name": "401k",
        "accountType": "401k",
        "isActive": True,
        "createdAt": "2023-01-01T00:00:00+00:00",
    }
    assert data["entries"][0]["value"] == "1234.56"
    assert data["entries"][0]["entryDate"] == "2024-06-01"


def test_backup_restores_same_records():
    result = parse_backup(create_backup(ACCOUNTS, ENTRIES, NOW))
    assert result.is_right()
    backup = result.get_or_else(None)
    assert backup.accounts == ACCOUNTS
    assert backup.entries == ENTRIES
    assert validate_backup(backup) == []


def test_parse_backup_rejects_bad_json():
    assert parse_backup("{not json").get_error()["error"] == "invalid_json"


def test_parse_backup_rejects_missing_sections():
    result = parse_backup(json.dumps({"version": "1.0", "accounts": []}))
    assert result.get_error()["error"] == "invalid_structure"
    assert parse_backup("[]").get_error()["error"] == "invalid_structure"


def test_parse_backup_rejects_malformed_record():
    content = json.dumps({"version": "1.0", "accounts": [{"name": "no id"}], "entries": []})
    assert parse_backup(content).get_error()["error"] == "invalid_record"


def test_validate_backup_reports_orphans_and_blanks():
    backup = Backup(
        version="1.0",
        exported_at="",
        accounts=(Account("", "Nameless"),),
        entries=(Entry("e1", "ghost", Decimal("1"), date(2024, 1, 1)),),
    )
    errors = validate_backup(backup)
    assert "Invalid account: missing id or name" in errors
    assert "Entry references unknown account: ghost" in errors


def test_backup_filename():
    assert backup_filename(NOW) == "portfolio-backup-2024-07-01.json"


def test_parse_backup_reports_envelope_before_records():
    # malformed record, but the missing version is what gets reported
    content = json.dumps({"accounts": [{"name": "no id"}], "entries": []})
    assert parse_backup(content).get_error()["error"] == "invalid_structure"
