from __future__ import annotations

import asyncio
import logging
import random
from contextlib import suppress
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from solana_trader.errors import PreconditionError
from solana_trader.logbook import LogBuffer
from solana_trader.setup_state import SetupState
from solana_trader.types import LogEntry, SessionState

logger = logging.getLogger("solana_trader.session")

SUCCESS_RATE = 0.7
WALLET_ID_RANGE = (1, 10)
AMOUNT_RANGE = (Decimal("2"), Decimal("10"))

SUCCESS_TEMPLATES = (
    "RPC connection established successfully",
    "Funding wallet loaded and verified",
    "Wallet #1 attempting buy order for €5.50",
    "Jupiter route found for token swap",
    "Buy order executed successfully - €5.50",
    "Wallet #2 attempting buy order for €3.20",
    "Slippage tolerance exceeded, retrying with backup route",
    "Buy order executed successfully - €3.20",
    "Wallet #3 rate limited, waiting 30 seconds",
    "Platform fee (2%) deducted: €0.11",
    "Daily limit check passed for wallet #1",
)

ERROR_MESSAGES = (
    "Transaction failed: insufficient SOL for fees",
    "Route not found, switching to fallback DEX",
    "Slippage exceeded maximum tolerance",
    "Network congestion, retrying in 10s",
)


class TradingSession:
    """
    Idle/Running toggle that feeds synthetic buy-loop outcomes into a LogBuffer.

    While running, one task sleeps a fresh random delay in [min_delay, max_delay)
    and then appends one event. The task is owned by the session: `stop()` and
    `aclose()` cancel it and wait for it to finish.
    """

    def __init__(
        self,
        *,
        setup: SetupState,
        logs: LogBuffer,
        rng: random.Random | None = None,
        min_delay_seconds: float = 1.0,
        max_delay_seconds: float = 4.0,
    ) -> None:
        if min_delay_seconds < 0 or max_delay_seconds < min_delay_seconds:
            raise ValueError("delay bounds must satisfy 0 <= min <= max")
        self._setup = setup
        self._logs = logs
        self._rng = rng or random.Random()
        self._min_delay = min_delay_seconds
        self._max_delay = max_delay_seconds
        self._task: Optional[asyncio.Task[None]] = None
        self.events_emitted = 0

    @property
    def state(self) -> SessionState:
        return "Running" if self.running else "Idle"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        if not self._setup.is_setup_complete:
            raise PreconditionError(
                "Setup Incomplete",
                "Connect RPC, load funding, add wallets and save settings first",
            )
        self._task = asyncio.create_task(self._run(), name="trading-session")
        logger.info("session_started", extra={"state": "Running"})

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info(
            "session_stopped",
            extra={"state": "Idle", "count": self.events_emitted},
        )

    async def aclose(self) -> None:
        await self.stop()

    def next_delay(self) -> float:
        return self._min_delay + self._rng.random() * (self._max_delay - self._min_delay)

    def synthesize_event(self) -> LogEntry:
        wallet_id = self._rng.randint(*WALLET_ID_RANGE)
        if self._rng.random() < SUCCESS_RATE:
            template = self._rng.choice(SUCCESS_TEMPLATES)
            low, high = AMOUNT_RANGE
            amount = (low + Decimal(self._rng.random()) * (high - low)).quantize(
                Decimal("0.01"), rounding=ROUND_DOWN
            )
            entry = self._logs.append(
                "success",
                wallet_id,
                template.replace("#1", f"#{wallet_id}", 1),
                amount,
            )
        else:
            entry = self._logs.append("error", wallet_id, self._rng.choice(ERROR_MESSAGES))
        self.events_emitted += 1
        logger.debug(
            "session_event",
            extra={"wallet_id": wallet_id, "kind": entry.kind, "amount": str(entry.amount or "")},
        )
        return entry

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.next_delay())
            try:
                self.synthesize_event()
            except Exception:
                logger.exception("session_event_failed")
