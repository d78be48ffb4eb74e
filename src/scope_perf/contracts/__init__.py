"""Conversion between domain models and JSON-friendly payloads."""
