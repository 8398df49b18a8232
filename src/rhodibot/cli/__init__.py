"""Command-line interface for rhodibot."""
