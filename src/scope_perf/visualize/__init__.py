"""Timings charts and the chart page server."""
