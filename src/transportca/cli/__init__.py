"""Command line interface for transportca."""
