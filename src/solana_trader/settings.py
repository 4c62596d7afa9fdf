from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # RPC (nominal only, never contacted)
    rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com",
        validation_alias="RPC_URL",
    )

    # Log buffer
    log_capacity: int = Field(default=50, ge=1, validation_alias="LOG_CAPACITY")

    # Simulation timings
    session_min_delay_seconds: float = Field(
        default=1.0, ge=0, validation_alias="SESSION_MIN_DELAY_SECONDS"
    )
    session_max_delay_seconds: float = Field(
        default=4.0, ge=0, validation_alias="SESSION_MAX_DELAY_SECONDS"
    )
    funding_tick_seconds: float = Field(default=0.3, ge=0, validation_alias="FUNDING_TICK_SECONDS")
    balance_check_seconds: float = Field(
        default=2.0, ge=0, validation_alias="BALANCE_CHECK_SECONDS"
    )
    sell_seconds: float = Field(default=3.0, ge=0, validation_alias="SELL_SECONDS")
    sweep_seconds: float = Field(default=2.5, ge=0, validation_alias="SWEEP_SECONDS")

    # Telegram
    telegram_bot_token: str = Field(default="", validation_alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: str = Field(default="", validation_alias="TELEGRAM_CHAT_ID")

    # Dashboard server
    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", validation_alias="LOG_FORMAT")

    def session_delay_bounds(self) -> tuple[float, float]:
        low = self.session_min_delay_seconds
        high = max(low, self.session_max_delay_seconds)
        return low, high
