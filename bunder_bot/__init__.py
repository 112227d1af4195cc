"""Bunder Bot: Telegram assistant backed by Gemini, canned intents and weather lookups."""

__version__ = "0.3.0"
