from __future__ import annotations

import asyncio
import logging
import random

from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState
from solana_trader.types import WalletBalance

logger = logging.getLogger("solana_trader.balances")

_SOL_RANGE = (0.1, 0.6)
_TOKEN_RANGE = (100.0, 1100.0)
_VALUE_RANGE = (10.0, 60.0)


def _between(rng: random.Random, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return low + rng.random() * (high - low)


class BalanceSnapshot:
    """Per-wallet balances, regenerated wholesale on every check."""

    def __init__(
        self,
        *,
        setup: SetupState,
        rng: random.Random | None = None,
        check_seconds: float = 2.0,
        sell_seconds: float = 3.0,
        sweep_seconds: float = 2.5,
    ) -> None:
        self._setup = setup
        self._rng = rng or random.Random()
        self._check_seconds = check_seconds
        self._sell_seconds = sell_seconds
        self._sweep_seconds = sweep_seconds
        self.balances: list[WalletBalance] = []
        self.checking = False
        self.selling = False
        self.sweeping = False

    @property
    def total_sol(self) -> float:
        return sum(b.sol_balance for b in self.balances)

    @property
    def total_tokens(self) -> float:
        return sum(b.token_balance for b in self.balances)

    @property
    def total_value_eur(self) -> float:
        return sum(b.value_eur for b in self.balances)

    def summary(self) -> dict[str, object]:
        return {
            "wallets": len(self.balances),
            "total_sol": round(self.total_sol, 6),
            "total_tokens": round(self.total_tokens, 2),
            "total_value_eur": round(self.total_value_eur, 2),
            "checking": self.checking,
            "selling": self.selling,
            "sweeping": self.sweeping,
        }

    def _ensure_idle(self) -> None:
        # Check, sell and sweep all rewrite the same list, so only one runs at a time.
        if self.checking:
            raise PreconditionError("Balance Check In Progress", "Wait for the current check")
        if self.selling:
            raise PreconditionError("Sell In Progress", "Wait for the current sell run")
        if self.sweeping:
            raise PreconditionError("Sweep In Progress", "Wait for the current sweep")

    def ensure_can_check(self) -> None:
        if not self._setup.is_setup_complete:
            raise PreconditionError(
                "Prerequisites Not Met", "Please create and fund wallets first"
            )
        self._ensure_idle()

    def ensure_can_sell(self) -> None:
        if not self._setup.is_setup_complete or not self.balances:
            raise PreconditionError(
                "No Tokens to Sell", "Check balances first or ensure wallets have tokens"
            )
        self._ensure_idle()

    def ensure_can_sweep(self, residue_sol: float) -> None:
        if not self._setup.is_setup_complete or not self.balances:
            raise PreconditionError(
                "No Funds to Sweep", "Check balances first or ensure wallets have SOL"
            )
        self._ensure_idle()
        if residue_sol < 0:
            raise PreconditionError("Invalid Sweep Residue", "Residue must be >= 0")

    async def check_balances(self, wallet_count: int | None = None) -> list[WalletBalance]:
        self.ensure_can_check()
        count = self._setup.flags.wallet_count if wallet_count is None else wallet_count
        self.checking = True
        try:
            await asyncio.sleep(self._check_seconds)
            self.balances = [
                WalletBalance(
                    id=i,
                    sol_balance=_between(self._rng, _SOL_RANGE),
                    token_balance=_between(self._rng, _TOKEN_RANGE),
                    value_eur=_between(self._rng, _VALUE_RANGE),
                )
                for i in range(1, count + 1)
            ]
        finally:
            self.checking = False
        logger.info("balances_checked", extra={"count": count})
        return self.balances

    async def sell_all(self) -> None:
        self.ensure_can_sell()
        self.selling = True
        try:
            await asyncio.sleep(self._sell_seconds)
            # Sold positions no longer hold tokens or token value.
            for b in self.balances:
                b.token_balance = 0.0
                b.value_eur = 0.0
        finally:
            self.selling = False
        logger.info("sell_all_completed", extra={"count": len(self.balances)})

    async def sweep_all(self, residue_sol: float = 0.002) -> None:
        self.ensure_can_sweep(residue_sol)
        self.sweeping = True
        try:
            await asyncio.sleep(self._sweep_seconds)
            for b in self.balances:
                b.sol_balance = min(b.sol_balance, residue_sol)
        finally:
            self.sweeping = False
        logger.info("sweep_all_completed", extra={"count": len(self.balances)})
