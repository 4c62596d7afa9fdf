from __future__ import annotations

import logging
from collections import deque
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable

from solana_trader.errors import PreconditionError
from solana_trader.types import LOG_KINDS, LogEntry, LogKind

logger = logging.getLogger("solana_trader.logbook")

CSV_HEADER = "Timestamp,Type,Wallet,Message,Amount"
CSV_MEDIA_TYPE = "text/csv"

EntryListener = Callable[[LogEntry], None]


def _local_time() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _quote(text: str) -> str:
    # Message is always quoted; csv.writer would quote it only when needed.
    return '"' + text.replace('"', '""') + '"'


def csv_row(entry: LogEntry) -> str:
    amount = "" if entry.amount is None else str(entry.amount)
    return ",".join(
        [
            entry.timestamp,
            entry.kind,
            f"Wallet #{entry.wallet_id}",
            _quote(entry.message),
            amount,
        ]
    )


def render_csv(entries: Iterable[LogEntry]) -> str:
    return "\n".join([CSV_HEADER, *(csv_row(e) for e in entries)])


def write_logs_csv(*, path: Path, entries: list[LogEntry]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_csv(entries), encoding="utf-8")


def export_filename(day: date | None = None) -> str:
    day = day or date.today()
    return f"trading-logs-{day.isoformat()}.csv"


class LogBuffer:
    """Most recent trading log entries, oldest evicted first."""

    def __init__(self, *, capacity: int = 50, clock: Callable[[], str] = _local_time) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._clock = clock
        self._next_id = 1
        self._listeners: list[EntryListener] = []

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def subscribe(self, listener: EntryListener) -> None:
        self._listeners.append(listener)

    def append(
        self,
        kind: LogKind,
        wallet_id: int,
        message: str,
        amount: Decimal | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=self._next_id,
            timestamp=self._clock(),
            kind=kind,
            wallet_id=wallet_id,
            message=message,
            amount=amount,
        )
        self._next_id += 1
        self._entries.append(entry)
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                logger.exception("log_listener_failed")
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def total(self) -> int:
        return len(self._entries)

    @property
    def counts(self) -> dict[LogKind, int]:
        out: dict[LogKind, int] = {kind: 0 for kind in LOG_KINDS}
        for e in self._entries:
            out[e.kind] += 1
        return out

    @property
    def success(self) -> int:
        return self.counts["success"]

    @property
    def errors(self) -> int:
        return self.counts["error"]

    @property
    def volume(self) -> Decimal:
        return sum((e.amount for e in self._entries if e.amount is not None), Decimal("0"))

    def stats(self) -> dict[str, object]:
        counts = self.counts
        return {
            "total": self.total,
            "success": counts["success"],
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
            "volume_eur": str(self.volume.quantize(Decimal("0.01"))),
        }

    def export_csv(self) -> str:
        if not self._entries:
            raise PreconditionError("No Logs to Export", "Start trading to collect logs first")
        return render_csv(self._entries)
