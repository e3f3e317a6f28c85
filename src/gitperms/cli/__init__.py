"""Command-line interface for gitperms."""
