"""Notification sink for spread alerts."""

from carry.notify.telegram import SendResult, TelegramNotifier, format_spread_alert

__all__ = ["SendResult", "TelegramNotifier", "format_spread_alert"]
