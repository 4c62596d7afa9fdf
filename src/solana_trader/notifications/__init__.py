__all__ = ["TelegramNotifier", "format_notice"]

from solana_trader.notifications.telegram import TelegramNotifier, format_notice
