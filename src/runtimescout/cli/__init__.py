"""Command-line interface for RuntimeScout."""
