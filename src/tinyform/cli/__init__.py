"""Command-line interface for tinyform."""
