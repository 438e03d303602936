"""Command-line interface for teststate."""
