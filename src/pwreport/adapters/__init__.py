"""Adapters that turn runner output into attempt events."""
