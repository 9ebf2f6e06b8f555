"""Conversation intelligence core for the ShopAI support copilot."""

__version__ = "0.3.0"
