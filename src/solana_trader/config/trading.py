from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from solana_trader.errors import PreconditionError
from solana_trader.setup_state import SetupState

logger = logging.getLogger("solana_trader.settings")

_MINT_MIN_LEN = 32
_MINT_MAX_LEN = 44


class TradingSettings(BaseModel):
    token_mint: str = ""
    slippage_bps: int = Field(default=100, ge=1, le=10000)
    min_trade: float = Field(default=1.0, gt=0)
    max_trade: float = Field(default=10.0, gt=0)
    interval_sec: int = Field(default=30, ge=1)
    # 0 means no limit.
    daily_limit_per_wallet: float = Field(default=0.0, ge=0)
    per_wallet_amount: float = Field(default=5.0, gt=0)
    sweep_residue_sol: float = Field(default=0.002, ge=0)

    def validate_logic(self) -> None:
        if self.min_trade >= self.max_trade:
            raise ValueError("min_trade must be < max_trade")


class TradingConfigFile(BaseModel):
    trading: TradingSettings = Field(default_factory=TradingSettings)


def load_trading_settings(path: Path) -> TradingSettings:
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    cfg = TradingConfigFile.model_validate(raw)
    cfg.trading.validate_logic()
    return cfg.trading


def mint_is_plausible(mint: str) -> bool:
    return _MINT_MIN_LEN <= len(mint.strip()) <= _MINT_MAX_LEN


class TradingSettingsForm:
    """Token mint validation plus the save gate for trading settings."""

    def __init__(self, *, setup: SetupState) -> None:
        self._setup = setup
        self.token_mint = ""
        self.mint_validated = False
        self.saved = False
        self.settings: Optional[TradingSettings] = None

    def set_token_mint(self, value: str) -> None:
        self.token_mint = value
        self.mint_validated = False

    def validate_mint(self) -> None:
        mint = self.token_mint.strip()
        if not mint:
            raise PreconditionError("Token Mint Required", "Please enter a token mint address")
        if not mint_is_plausible(mint):
            raise PreconditionError(
                "Invalid Mint Address", "Please enter a valid Solana token mint address"
            )
        self.mint_validated = True
        logger.info("mint_validated")

    def save(self, values: TradingSettings | dict[str, Any]) -> TradingSettings:
        if not self.mint_validated:
            raise PreconditionError(
                "Validate Mint First", "Please validate the token mint address first"
            )
        raw = values.model_dump() if isinstance(values, TradingSettings) else dict(values)
        raw["token_mint"] = self.token_mint.strip()
        min_trade, max_trade = raw.get("min_trade"), raw.get("max_trade")
        if isinstance(min_trade, (int, float)) and isinstance(max_trade, (int, float)):
            if min_trade >= max_trade:
                raise PreconditionError(
                    "Invalid Trade Range", "Min trade must be less than max trade"
                )
        try:
            settings = TradingSettings.model_validate(raw)
            settings.validate_logic()
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise PreconditionError("Invalid Settings", f"Check fields: {fields}") from e
        except ValueError as e:
            raise PreconditionError("Invalid Trade Range", str(e)) from e

        self.settings = settings
        self.saved = True
        self._setup.set_settings_saved(True)
        logger.info("settings_saved", extra={"amount": str(settings.per_wallet_amount)})
        return settings
