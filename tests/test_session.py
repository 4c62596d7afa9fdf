import asyncio
import random
from decimal import Decimal
from typing import Sequence

import pytest

from solana_trader.errors import PreconditionError
from solana_trader.logbook import LogBuffer
from solana_trader.session import ERROR_MESSAGES, SUCCESS_TEMPLATES, TradingSession
from solana_trader.setup_state import SetupState


class _ScriptedRng:
    def __init__(self, *, randoms: list[float], wallet_id: int, index: int) -> None:
        self._randoms = list(randoms)
        self._wallet_id = wallet_id
        self._index = index

    def random(self) -> float:
        return self._randoms.pop(0)

    def randint(self, a: int, b: int) -> int:
        return self._wallet_id

    def choice(self, seq: Sequence[str]) -> str:
        return seq[self._index]


def _ready_setup() -> SetupState:
    setup = SetupState()
    setup.set_rpc_connected(True)
    setup.set_funding_loaded(True)
    setup.set_wallet_count(10)
    setup.set_settings_saved(True)
    return setup


def _session(setup: SetupState, logs: LogBuffer, rng: object = None) -> TradingSession:
    return TradingSession(
        setup=setup,
        logs=logs,
        rng=rng or random.Random(1),  # type: ignore[arg-type]
        min_delay_seconds=0,
        max_delay_seconds=0,
    )


def test_start_rejected_until_setup_complete() -> None:
    setup = SetupState()
    setup.set_rpc_connected(True)
    setup.set_funding_loaded(True)
    setup.set_wallet_count(3)
    session = _session(setup, LogBuffer())

    async def _run() -> None:
        with pytest.raises(PreconditionError) as exc:
            await session.start()
        assert exc.value.title == "Setup Incomplete"
        assert session.state == "Idle"

        setup.set_settings_saved(True)
        await session.start()
        assert session.state == "Running"
        await session.stop()
        assert session.state == "Idle"

    asyncio.run(_run())


def test_stop_is_always_allowed() -> None:
    session = _session(_ready_setup(), LogBuffer())

    async def _run() -> None:
        await session.stop()
        await session.start()
        await session.start()
        await session.stop()
        await session.stop()

    asyncio.run(_run())
    assert session.state == "Idle"


def test_running_session_appends_events_until_stopped() -> None:
    logs = LogBuffer()
    session = _session(_ready_setup(), logs)

    async def _run() -> int:
        await session.start()
        for _ in range(10):
            await asyncio.sleep(0)
        await session.stop()
        emitted = len(logs)
        for _ in range(5):
            await asyncio.sleep(0)
        assert len(logs) == emitted
        return emitted

    emitted = asyncio.run(_run())
    assert emitted >= 1
    for entry in logs.entries():
        assert 1 <= entry.wallet_id <= 10
        assert entry.kind in ("success", "error")


def test_success_event_has_amount_and_wallet_substitution() -> None:
    logs = LogBuffer(clock=lambda: "09:00:00")
    rng = _ScriptedRng(randoms=[0.1, 0.5], wallet_id=7, index=2)
    entry = _session(_ready_setup(), logs, rng).synthesize_event()

    assert entry.kind == "success"
    assert entry.wallet_id == 7
    assert SUCCESS_TEMPLATES[2].startswith("Wallet #1")
    assert entry.message.startswith("Wallet #7 attempting buy order")
    assert entry.amount == Decimal("6.00")


def test_error_event_has_no_amount() -> None:
    logs = LogBuffer()
    rng = _ScriptedRng(randoms=[0.95], wallet_id=4, index=1)
    entry = _session(_ready_setup(), logs, rng).synthesize_event()

    assert entry.kind == "error"
    assert entry.message == ERROR_MESSAGES[1]
    assert entry.amount is None


def test_amounts_and_delays_stay_in_range() -> None:
    logs = LogBuffer(capacity=500)
    session = TradingSession(
        setup=_ready_setup(),
        logs=logs,
        rng=random.Random(123),
        min_delay_seconds=1.0,
        max_delay_seconds=4.0,
    )
    for _ in range(300):
        session.synthesize_event()
        assert 1.0 <= session.next_delay() < 4.0

    amounts = [e.amount for e in logs.entries() if e.amount is not None]
    assert amounts
    assert all(Decimal("2") <= a < Decimal("10") for a in amounts)
    successes = sum(1 for e in logs.entries() if e.kind == "success")
    assert 150 < successes < 270


def test_invalid_delay_bounds() -> None:
    with pytest.raises(ValueError):
        TradingSession(
            setup=SetupState(),
            logs=LogBuffer(),
            min_delay_seconds=3,
            max_delay_seconds=1,
        )
