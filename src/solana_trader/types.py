from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

LogKind = Literal["success", "error", "warning", "info"]
LOG_KINDS: tuple[LogKind, ...] = ("success", "error", "warning", "info")

SessionState = Literal["Idle", "Running"]

NoticeVariant = Literal["default", "destructive"]


@dataclass(frozen=True)
class ReadinessFlags:
    rpc_connected: bool = False
    funding_loaded: bool = False
    wallet_count: int = 0
    settings_saved: bool = False

    def complete(self) -> bool:
        return (
            self.rpc_connected
            and self.funding_loaded
            and self.wallet_count > 0
            and self.settings_saved
        )


@dataclass(frozen=True)
class WalletRecord:
    id: int
    public_key: str
    secret_key: str


@dataclass(frozen=True)
class LogEntry:
    id: int
    timestamp: str
    kind: LogKind
    wallet_id: int
    message: str
    # EUR notional; only successful buys carry one.
    amount: Decimal | None = None


@dataclass
class WalletBalance:
    id: int
    sol_balance: float
    token_balance: float
    value_eur: float


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: NoticeVariant = "default"

    @property
    def ok(self) -> bool:
        return self.variant == "default"
