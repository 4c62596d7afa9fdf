from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from solana_trader.types import ReadinessFlags

logger = logging.getLogger("solana_trader.setup")

SetupListener = Callable[[ReadinessFlags, bool], None]


class SetupState:
    """
    Shared readiness flags with a change channel.

    Each panel writes its own flag; readers either poll `is_setup_complete`
    or subscribe to be told whenever any flag changes.
    """

    def __init__(self) -> None:
        self._flags = ReadinessFlags()
        self._complete = False
        self._listeners: list[SetupListener] = []

    @property
    def flags(self) -> ReadinessFlags:
        return self._flags

    @property
    def is_setup_complete(self) -> bool:
        return self._complete

    @property
    def funding_ready(self) -> bool:
        f = self._flags
        return f.rpc_connected and f.funding_loaded and f.wallet_count > 0

    def subscribe(self, listener: SetupListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SetupListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_rpc_connected(self, value: bool) -> None:
        self._update(rpc_connected=bool(value))

    def set_funding_loaded(self, value: bool) -> None:
        self._update(funding_loaded=bool(value))

    def set_wallet_count(self, value: int) -> None:
        if value < 0:
            raise ValueError("wallet_count must be >= 0")
        self._update(wallet_count=int(value))

    def set_settings_saved(self, value: bool) -> None:
        self._update(settings_saved=bool(value))

    def _update(self, **changes: object) -> None:
        self._flags = replace(self._flags, **changes)
        previous = self._complete
        self._complete = self._flags.complete()
        if self._complete != previous:
            logger.info("setup_changed", extra={"state": "ready" if self._complete else "setup"})
        for listener in list(self._listeners):
            try:
                listener(self._flags, self._complete)
            except Exception:
                logger.exception("setup_listener_failed")
