from __future__ import annotations

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal

from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState

logger = logging.getLogger("solana_trader.funding")

# ~EUR 1 per wallet plus a fee reserve, never below EUR 10.
_PER_WALLET_WITH_FEES = Decimal("1.2")
_MIN_BUDGET_FLOOR = Decimal("10")

_PROGRESS_STEP = 10
_PROGRESS_DONE = 100


def _dec(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_eur(value: Decimal | float) -> str:
    return f"€{_dec(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


def min_required_budget(wallet_count: int) -> Decimal:
    return max(Decimal(wallet_count) * _PER_WALLET_WITH_FEES, _MIN_BUDGET_FLOOR)


def per_wallet_allocation(total_budget: Decimal | float, wallet_count: int) -> Decimal:
    if wallet_count <= 0:
        return Decimal("0")
    return _dec(total_budget) / Decimal(wallet_count)


class AutoFunder:
    """Animated auto-fund: progress climbs in fixed steps until complete."""

    def __init__(self, *, setup: SetupState, tick_seconds: float = 0.3) -> None:
        self._setup = setup
        self._tick_seconds = tick_seconds
        self.progress = 0
        self.running = False

    def check(self, total_budget: Decimal | float) -> Decimal:
        if not self._setup.funding_ready:
            raise PreconditionError(
                "Prerequisites Not Met",
                "Please create wallets and configure settings first",
            )
        if self.running:
            raise PreconditionError("Auto-Funding In Progress", "Wait for the current run")
        minimum = min_required_budget(self._setup.flags.wallet_count)
        if _dec(total_budget) < minimum:
            raise PreconditionError(
                "Insufficient Budget",
                f"Minimum budget required: {format_eur(minimum)}",
            )
        return minimum

    async def run(self, total_budget: Decimal | float) -> str:
        self.check(total_budget)
        wallet_count = self._setup.flags.wallet_count
        self.running = True
        self.progress = 0
        logger.info("auto_fund_started", extra={"count": wallet_count, "amount": str(total_budget)})
        try:
            while self.progress < _PROGRESS_DONE:
                await asyncio.sleep(self._tick_seconds)
                self.progress = min(_PROGRESS_DONE, self.progress + _PROGRESS_STEP)
        finally:
            self.running = False
        logger.info("auto_fund_completed", extra={"count": wallet_count})
        return (
            f"Successfully funded {wallet_count} wallets with "
            f"{format_eur(_dec(total_budget))}"
        )
