"""Shared helpers: logging, errors, caching, decoding and rule evaluation."""
