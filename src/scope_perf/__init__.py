"""Readers and statistics for RSP scope capture files."""

__version__ = "0.1.0"
