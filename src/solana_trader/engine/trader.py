from __future__ import annotations

import asyncio
import logging
import random
from collections import deque
from contextlib import suppress
from decimal import Decimal
from typing import Any, Awaitable, Optional

from solana_trader.balances import BalanceSnapshot
from solana_trader.config.trading import TradingSettings, TradingSettingsForm
from solana_trader.errors import PreconditionError
from solana_trader.funding import (
    AutoFunder,
    format_eur,
    min_required_budget,
    per_wallet_allocation,
)
from solana_trader.logbook import LogBuffer
from solana_trader.notifications import TelegramNotifier
from solana_trader.rpc import RpcConnection
from solana_trader.session import TradingSession
from solana_trader.settings import Settings
from solana_trader.setup_state import SetupState
from solana_trader.types import Notice
from solana_trader.wallets import WalletRegistry

logger = logging.getLogger("solana_trader.trader")

_NOTICE_HISTORY = 20

_IN_PROGRESS = {
    "auto-fund": ("Auto-Funding In Progress", "Wait for the current run"),
    "check-balances": ("Balance Check In Progress", "Wait for the current check"),
    "sell-all": ("Sell In Progress", "Wait for the current sell run"),
    "sweep-all": ("Sweep In Progress", "Wait for the current sweep"),
}
_BALANCE_TASKS = ("check-balances", "sell-all", "sweep-all")


class MultiWalletTrader:
    """
    Wires the dashboard panels around one shared SetupState.

    Action methods never raise for a declined request: a PreconditionError is
    turned into a destructive Notice. Every action returns the Notice it
    produced, so callers never have to read the shared `notices` history.
    Starting a delayed action returns an acknowledgement that is not recorded;
    the completion notice is recorded when the owned task finishes.
    `aclose()` stops the session and cancels whatever is still pending.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        notifier: Optional[TelegramNotifier] = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier
        rng = rng or random.Random()
        self.setup = SetupState()
        self.rpc = RpcConnection(setup=self.setup, rpc_url=settings.rpc_url)
        self.wallets = WalletRegistry(setup=self.setup, rng=rng)
        self.trading_settings = TradingSettingsForm(setup=self.setup)
        self.funder = AutoFunder(setup=self.setup, tick_seconds=settings.funding_tick_seconds)
        self.logs = LogBuffer(capacity=settings.log_capacity)
        min_delay, max_delay = settings.session_delay_bounds()
        self.session = TradingSession(
            setup=self.setup,
            logs=self.logs,
            rng=rng,
            min_delay_seconds=min_delay,
            max_delay_seconds=max_delay,
        )
        self.balances = BalanceSnapshot(
            setup=self.setup,
            rng=rng,
            check_seconds=settings.balance_check_seconds,
            sell_seconds=settings.sell_seconds,
            sweep_seconds=settings.sweep_seconds,
        )
        self.notices: deque[Notice] = deque(maxlen=_NOTICE_HISTORY)
        self._tasks: set[asyncio.Task[Any]] = set()

    # Notices

    async def _ok(self, title: str, description: str = "") -> Notice:
        notice = Notice(title=title, description=description)
        await self._push(notice)
        return notice

    async def _declined(self, error: PreconditionError) -> Notice:
        logger.warning("action_declined", extra={"title": error.title})
        notice = Notice(title=error.title, description=error.description, variant="destructive")
        await self._push(notice)
        return notice

    async def _push(self, notice: Notice) -> None:
        self.notices.append(notice)
        await self._safe_notify(notice)

    async def _safe_notify(self, notice: Notice) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send_notice(notice)
        except Exception:
            logger.exception("notify_failed", extra={"title": notice.title})

    # Background tasks

    def spawn(self, coro: Awaitable[Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def _ensure_not_pending(self, *names: str) -> None:
        # A spawned task sets its busy flag only once it first runs.
        for task in self._tasks:
            name = task.get_name()
            if name in names and not task.done():
                raise PreconditionError(*_IN_PROGRESS[name])

    async def aclose(self) -> None:
        await self.session.aclose()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        if self._notifier is not None:
            await self._notifier.aclose()

    # RPC / funding wallet

    async def connect_rpc(self, url: str | None = None) -> Notice:
        try:
            self.rpc.connect(url)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("RPC Connected", "Successfully connected to Solana RPC")

    async def load_funding(self, secret: str) -> Notice:
        try:
            self.rpc.load_funding(secret)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Funding Wallet Loaded", "Successfully loaded funding wallet")

    # Wallets

    async def create_wallets(self, count: int) -> Notice:
        try:
            self.wallets.create(count)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Wallets Created", f"Successfully created {count} wallets")

    async def import_wallets(self, text: str) -> Notice:
        try:
            count = self.wallets.import_json(text)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Wallets Imported", f"Successfully imported {count} wallets")

    async def export_wallets(self) -> tuple[Optional[str], Notice]:
        try:
            text = self.wallets.export_json()
        except PreconditionError as e:
            return None, await self._declined(e)
        return text, await self._ok("Wallets Exported", "Wallet JSON file downloaded successfully")

    # Trading settings

    def set_token_mint(self, value: str) -> None:
        self.trading_settings.set_token_mint(value)

    async def validate_mint(self) -> Notice:
        try:
            self.trading_settings.validate_mint()
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Mint Validated", "Token mint address is valid")

    async def save_settings(self, values: TradingSettings | dict[str, Any]) -> Notice:
        try:
            self.trading_settings.save(values)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Settings Saved", "Trading configuration saved successfully")

    # Funding

    def budget(self, total_budget: Decimal | float) -> dict[str, Any]:
        count = self.setup.flags.wallet_count
        minimum = min_required_budget(count)
        return {
            "wallets": count,
            "total_budget": format_eur(total_budget),
            "min_required": format_eur(minimum),
            "per_wallet": format_eur(per_wallet_allocation(total_budget, count)),
            "sufficient": Decimal(str(total_budget)) >= minimum,
        }

    async def auto_fund(self, total_budget: Decimal | float) -> Notice:
        try:
            message = await self.funder.run(total_budget)
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Auto-Funding Complete", message)

    async def start_auto_fund(self, total_budget: Decimal | float) -> Notice:
        try:
            self.funder.check(total_budget)
            self._ensure_not_pending("auto-fund")
        except PreconditionError as e:
            return await self._declined(e)
        self.spawn(self.auto_fund(total_budget), name="auto-fund")
        wallets = self.setup.flags.wallet_count
        return Notice(
            title="Auto-Funding Started",
            description=f"Funding {wallets} wallets with {format_eur(total_budget)}",
        )

    # Session

    async def start_trading(self) -> Notice:
        try:
            await self.session.start()
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Trading Started", "Simulated trading session is running")

    async def stop_trading(self) -> Notice:
        if not self.session.running:
            return Notice(title="Trading Stopped", description="Session was not running")
        await self.session.stop()
        return await self._ok("Trading Stopped", f"{self.session.events_emitted} events emitted")

    async def export_logs(self) -> tuple[Optional[str], Notice]:
        try:
            text = self.logs.export_csv()
        except PreconditionError as e:
            return None, await self._declined(e)
        return text, Notice(title="Logs Exported", description=f"{len(self.logs)} entries")

    # Balances

    async def check_balances(self) -> Notice:
        try:
            balances = await self.balances.check_balances()
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Balances Updated", f"Checked balances for {len(balances)} wallets")

    async def sell_all(self) -> Notice:
        try:
            await self.balances.sell_all()
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Sell Orders Complete", "All tokens sold across wallets")

    async def sweep_all(self) -> Notice:
        try:
            await self.balances.sweep_all(self._sweep_residue())
        except PreconditionError as e:
            return await self._declined(e)
        return await self._ok("Sweep Complete", "All SOL swept back to funding wallet")

    def _sweep_residue(self) -> float:
        saved = self.trading_settings.settings
        return saved.sweep_residue_sol if saved is not None else TradingSettings().sweep_residue_sol

    async def start_balance_check(self) -> Notice:
        try:
            self.balances.ensure_can_check()
            self._ensure_not_pending(*_BALANCE_TASKS)
        except PreconditionError as e:
            return await self._declined(e)
        self.spawn(self.check_balances(), name="check-balances")
        return Notice(
            title="Balance Check Started",
            description=f"Checking balances for {self.setup.flags.wallet_count} wallets",
        )

    async def start_sell_all(self) -> Notice:
        try:
            self.balances.ensure_can_sell()
            self._ensure_not_pending(*_BALANCE_TASKS)
        except PreconditionError as e:
            return await self._declined(e)
        self.spawn(self.sell_all(), name="sell-all")
        return Notice(title="Selling Tokens", description="Sell orders submitted across wallets")

    async def start_sweep_all(self) -> Notice:
        try:
            self.balances.ensure_can_sweep(self._sweep_residue())
            self._ensure_not_pending(*_BALANCE_TASKS)
        except PreconditionError as e:
            return await self._declined(e)
        self.spawn(self.sweep_all(), name="sweep-all")
        return Notice(title="Sweeping Funds", description="Sweeping SOL back to funding wallet")

    # Status

    def status(self) -> dict[str, Any]:
        flags = self.setup.flags
        return {
            "setup": {
                "rpc_connected": flags.rpc_connected,
                "funding_loaded": flags.funding_loaded,
                "wallet_count": flags.wallet_count,
                "settings_saved": flags.settings_saved,
                "is_setup_complete": self.setup.is_setup_complete,
            },
            "rpc_url": self.rpc.rpc_url,
            "session": self.session.state,
            "logs": self.logs.stats(),
            "funding": {"progress": self.funder.progress, "running": self.funder.running},
            "balances": self.balances.summary(),
            "mint_validated": self.trading_settings.mint_validated,
        }
