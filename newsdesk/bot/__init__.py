"""Telegram bot callback handling for the moderation loop."""
