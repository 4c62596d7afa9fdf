import asyncio
import random

import pytest

from solana_trader.balances import BalanceSnapshot
from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState


def _ready_setup(wallets: int = 5) -> SetupState:
    setup = SetupState()
    setup.set_rpc_connected(True)
    setup.set_funding_loaded(True)
    setup.set_wallet_count(wallets)
    setup.set_settings_saved(True)
    return setup


def _snapshot(setup: SetupState, *, seconds: float = 0) -> BalanceSnapshot:
    return BalanceSnapshot(
        setup=setup,
        rng=random.Random(9),
        check_seconds=seconds,
        sell_seconds=seconds,
        sweep_seconds=seconds,
    )


def test_check_requires_setup() -> None:
    snapshot = _snapshot(SetupState())
    with pytest.raises(PreconditionError) as exc:
        asyncio.run(snapshot.check_balances())
    assert exc.value.title == "Prerequisites Not Met"


def test_check_regenerates_whole_list() -> None:
    snapshot = _snapshot(_ready_setup(5))
    first = asyncio.run(snapshot.check_balances())
    assert [b.id for b in first] == [1, 2, 3, 4, 5]
    for b in first:
        assert 0.1 <= b.sol_balance < 0.6
        assert 100 <= b.token_balance < 1100
        assert 10 <= b.value_eur < 60
    assert snapshot.total_sol == pytest.approx(sum(b.sol_balance for b in first))

    second = asyncio.run(snapshot.check_balances(2))
    assert len(second) == 2
    assert snapshot.summary()["wallets"] == 2
    assert snapshot.checking is False


def test_sell_and_sweep_need_balances() -> None:
    snapshot = _snapshot(_ready_setup())
    with pytest.raises(PreconditionError) as sell_exc:
        asyncio.run(snapshot.sell_all())
    with pytest.raises(PreconditionError) as sweep_exc:
        asyncio.run(snapshot.sweep_all())
    assert sell_exc.value.title == "No Tokens to Sell"
    assert sweep_exc.value.title == "No Funds to Sweep"


def test_sell_all_zeroes_token_positions() -> None:
    snapshot = _snapshot(_ready_setup())
    asyncio.run(snapshot.check_balances())
    sol_before = snapshot.total_sol

    asyncio.run(snapshot.sell_all())

    assert snapshot.total_tokens == 0
    assert snapshot.total_value_eur == 0
    assert snapshot.total_sol == pytest.approx(sol_before)


def test_sweep_all_leaves_residue() -> None:
    snapshot = _snapshot(_ready_setup(3))
    asyncio.run(snapshot.check_balances())

    asyncio.run(snapshot.sweep_all(0.002))

    assert all(b.sol_balance == 0.002 for b in snapshot.balances)
    assert snapshot.total_sol == pytest.approx(0.006)


def test_cancelled_sell_leaves_balances_untouched() -> None:
    setup = _ready_setup(2)
    snapshot = _snapshot(setup)
    asyncio.run(snapshot.check_balances())
    tokens_before = snapshot.total_tokens
    snapshot._sell_seconds = 10

    async def _run() -> None:
        task = asyncio.create_task(snapshot.sell_all())
        await asyncio.sleep(0)
        assert snapshot.selling is True
        with pytest.raises(PreconditionError):
            snapshot.ensure_can_sell()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
    assert snapshot.selling is False
    assert snapshot.total_tokens == pytest.approx(tokens_before)


def test_sell_and_sweep_wait_for_running_check() -> None:
    snapshot = _snapshot(_ready_setup(2))
    asyncio.run(snapshot.check_balances())
    snapshot._check_seconds = 10

    async def _run() -> None:
        task = asyncio.create_task(snapshot.check_balances())
        await asyncio.sleep(0)
        assert snapshot.checking is True
        with pytest.raises(PreconditionError) as sell_exc:
            await snapshot.sell_all()
        with pytest.raises(PreconditionError) as sweep_exc:
            await snapshot.sweep_all()
        assert sell_exc.value.title == "Balance Check In Progress"
        assert sweep_exc.value.title == "Balance Check In Progress"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
    assert snapshot.total_tokens > 0
    assert snapshot.checking is False


def test_check_waits_for_running_sell() -> None:
    snapshot = _snapshot(_ready_setup(2))
    asyncio.run(snapshot.check_balances())
    snapshot._sell_seconds = 10

    async def _run() -> None:
        task = asyncio.create_task(snapshot.sell_all())
        await asyncio.sleep(0)
        with pytest.raises(PreconditionError) as exc:
            snapshot.ensure_can_check()
        assert exc.value.title == "Sell In Progress"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
    assert snapshot.selling is False
