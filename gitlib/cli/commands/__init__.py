"""CLI commands for gitlib."""

from gitlib.cli.commands.merge import merge_status_cmd, merge_table_cmd

__all__ = ['merge_status_cmd', 'merge_table_cmd']
