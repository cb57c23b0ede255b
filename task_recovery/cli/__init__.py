"""Command line interface for task recovery."""
