"""Command-line interface: one click group per API noun."""
