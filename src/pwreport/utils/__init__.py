"""Utility helpers for pwreport."""
