"""Persistent run history for pwreport."""
