"""Command line interface for gitlib."""
