"""Command-line interface for freelan."""
