import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from solana_trader.app.core.state import get_trader
from solana_trader.config.trading import TradingSettings
from solana_trader.engine.trader import MultiWalletTrader
from solana_trader.logbook import CSV_MEDIA_TYPE, export_filename
from solana_trader.types import Notice
from solana_trader.wallets import EXPORT_FILENAME, EXPORT_MEDIA_TYPE

logger = logging.getLogger("solana_trader.api")


router = APIRouter(prefix="/api")


class RpcPayload(BaseModel):
    url: Optional[str] = None


class FundingPayload(BaseModel):
    secret: str


class WalletCountPayload(BaseModel):
    count: int


class WalletImportPayload(BaseModel):
    text: str


class MintPayload(BaseModel):
    token_mint: str


class SettingsPayload(BaseModel):
    slippage_bps: int = 100
    min_trade: float = 1.0
    max_trade: float = 10.0
    interval_sec: int = 30
    daily_limit_per_wallet: float = 0.0
    per_wallet_amount: float = 5.0
    sweep_residue_sol: float = 0.002


class BudgetPayload(BaseModel):
    total_budget: float


def _declined(notice: Notice) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"ok": False, "title": notice.title, "description": notice.description},
    )


def _accepted(notice: Notice, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": True,
        "title": notice.title,
        "description": notice.description,
    }
    payload.update(extra)
    return payload


@router.get("/status")
async def get_status(trader: MultiWalletTrader = Depends(get_trader)):
    return trader.status()


@router.get("/notices")
async def get_notices(trader: MultiWalletTrader = Depends(get_trader)):
    return {
        "notices": [
            {"title": n.title, "description": n.description, "variant": n.variant}
            for n in trader.notices
        ]
    }


@router.get("/logs")
async def get_logs(trader: MultiWalletTrader = Depends(get_trader)):
    return {
        "stats": trader.logs.stats(),
        "logs": [
            {
                "id": e.id,
                "timestamp": e.timestamp,
                "kind": e.kind,
                "wallet_id": e.wallet_id,
                "message": e.message,
                "amount": str(e.amount) if e.amount is not None else None,
            }
            for e in trader.logs.entries()
        ],
    }


@router.get("/logs/export")
async def export_logs(trader: MultiWalletTrader = Depends(get_trader)):
    text, notice = await trader.export_logs()
    if text is None:
        return _declined(notice)
    return Response(
        content=text,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(date.today())}"'},
    )


@router.post("/rpc/connect")
async def connect_rpc(payload: RpcPayload, trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.connect_rpc(payload.url)
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, rpc_url=trader.rpc.rpc_url)


@router.post("/funding/load")
async def load_funding(payload: FundingPayload, trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.load_funding(payload.secret)
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice)


@router.post("/wallets/create")
async def create_wallets(
    payload: WalletCountPayload, trader: MultiWalletTrader = Depends(get_trader)
):
    notice = await trader.create_wallets(payload.count)
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, wallet_count=trader.wallets.count)


@router.post("/wallets/import")
async def import_wallets(
    payload: WalletImportPayload, trader: MultiWalletTrader = Depends(get_trader)
):
    notice = await trader.import_wallets(payload.text)
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, wallet_count=trader.wallets.count)


@router.get("/wallets/export")
async def export_wallets(trader: MultiWalletTrader = Depends(get_trader)):
    text, notice = await trader.export_wallets()
    if text is None:
        return _declined(notice)
    return Response(
        content=text,
        media_type=EXPORT_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/settings/mint")
async def set_mint(payload: MintPayload, trader: MultiWalletTrader = Depends(get_trader)):
    trader.set_token_mint(payload.token_mint)
    return {"ok": True, "mint_validated": False}


@router.post("/settings/validate-mint")
async def validate_mint(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.validate_mint()
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, mint_validated=True)


@router.post("/settings")
async def save_settings(payload: SettingsPayload, trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.save_settings(payload.model_dump())
    if not notice.ok:
        return _declined(notice)
    saved: Optional[TradingSettings] = trader.trading_settings.settings
    return _accepted(notice, saved=True, settings=saved.model_dump() if saved else None)


@router.get("/funding/budget")
async def get_budget(
    total_budget: float = Query(100.0, ge=0),
    trader: MultiWalletTrader = Depends(get_trader),
):
    return trader.budget(total_budget)


@router.post("/funding/auto-fund")
async def auto_fund(payload: BudgetPayload, trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.start_auto_fund(payload.total_budget)
    if not notice.ok:
        return _declined(notice)
    logger.info("auto_fund_accepted", extra={"amount": str(payload.total_budget)})
    return _accepted(notice, running=True)


@router.post("/session/start")
async def start_session(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.start_trading()
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, session=trader.session.state)


@router.post("/session/stop")
async def stop_session(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.stop_trading()
    return _accepted(notice, session=trader.session.state)


@router.post("/balances/check")
async def check_balances(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.start_balance_check()
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, checking=True)


@router.get("/balances")
async def get_balances(trader: MultiWalletTrader = Depends(get_trader)):
    return {
        "summary": trader.balances.summary(),
        "balances": [
            {
                "id": b.id,
                "sol_balance": b.sol_balance,
                "token_balance": b.token_balance,
                "value_eur": b.value_eur,
            }
            for b in trader.balances.balances
        ],
    }


@router.post("/balances/sell")
async def sell_all(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.start_sell_all()
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, selling=True)


@router.post("/balances/sweep")
async def sweep_all(trader: MultiWalletTrader = Depends(get_trader)):
    notice = await trader.start_sweep_all()
    if not notice.ok:
        return _declined(notice)
    return _accepted(notice, sweeping=True)
