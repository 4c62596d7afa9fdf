from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from solana_trader.errors import PreconditionError
from solana_trader.logbook import CSV_HEADER, LogBuffer, export_filename, write_logs_csv


def _buffer(capacity: int = 50) -> LogBuffer:
    return LogBuffer(capacity=capacity, clock=lambda: "12:00:00")


def test_buffer_keeps_most_recent_fifty() -> None:
    logs = _buffer()
    for i in range(1, 56):
        logs.append("info", 1, f"event {i}")

    entries = logs.entries()
    assert len(entries) == 50
    assert [e.id for e in entries] == list(range(6, 56))
    assert entries[0].message == "event 6"
    assert entries[-1].message == "event 55"


def test_ids_keep_increasing_after_clear() -> None:
    logs = _buffer()
    logs.append("info", 1, "a")
    logs.clear()
    assert logs.append("info", 1, "b").id == 2


def test_stats_count_kinds_and_volume() -> None:
    logs = _buffer()
    logs.append("success", 1, "buy", Decimal("5.50"))
    logs.append("success", 2, "buy", Decimal("3.20"))
    logs.append("error", 3, "failed")
    logs.append("warning", 4, "slow")

    assert logs.total == 4
    assert logs.success == 2
    assert logs.errors == 1
    assert logs.counts["warning"] == 1
    assert logs.counts["info"] == 0
    assert logs.volume == Decimal("8.70")
    assert logs.stats()["volume_eur"] == "8.70"


def test_volume_only_counts_retained_entries() -> None:
    logs = _buffer(capacity=2)
    logs.append("success", 1, "buy", Decimal("4"))
    logs.append("success", 1, "buy", Decimal("2"))
    logs.append("success", 1, "buy", Decimal("3"))
    assert logs.volume == Decimal("5")


def test_export_csv_format() -> None:
    logs = _buffer()
    logs.append("success", 7, 'Buy order "fast" path', Decimal("5.50"))
    logs.append("error", 2, "Route not found, switching to fallback DEX")

    lines = logs.export_csv().splitlines()
    assert lines[0] == CSV_HEADER == "Timestamp,Type,Wallet,Message,Amount"
    assert lines[1] == '12:00:00,success,Wallet #7,"Buy order ""fast"" path",5.50'
    assert lines[2] == '12:00:00,error,Wallet #2,"Route not found, switching to fallback DEX",'


def test_export_csv_requires_entries() -> None:
    with pytest.raises(PreconditionError) as exc:
        _buffer().export_csv()
    assert exc.value.title == "No Logs to Export"


def test_write_logs_csv(tmp_path: Path) -> None:
    logs = _buffer()
    logs.append("success", 1, "ok", Decimal("2.00"))
    path = tmp_path / "out" / "logs.csv"
    write_logs_csv(path=path, entries=logs.entries())
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Timestamp,Type")
    assert "Wallet #1" in lines[1]


def test_export_filename_uses_date() -> None:
    assert export_filename(date(2024, 3, 9)) == "trading-logs-2024-03-09.csv"


def test_listener_receives_appended_entries() -> None:
    logs = _buffer()
    seen: list[int] = []
    logs.subscribe(lambda entry: seen.append(entry.id))
    logs.append("info", 1, "a")
    logs.append("info", 1, "b")
    assert seen == [1, 2]
