"""Telegram message formatting and delivery."""
