__all__ = [
    "TradingSettings",
    "TradingSettingsForm",
    "load_trading_settings",
]

from solana_trader.config.trading import (
    TradingSettings,
    TradingSettingsForm,
    load_trading_settings,
)
