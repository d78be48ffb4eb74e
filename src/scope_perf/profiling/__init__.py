"""Aggregation, statistics and report export over decoded scopes."""
