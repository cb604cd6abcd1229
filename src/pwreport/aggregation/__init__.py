"""Aggregation pipeline: attempts to cases, summary, metrics and report assembly."""
