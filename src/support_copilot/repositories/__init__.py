"""Persistence adapters for conversations, tickets, articles and analytics."""
