"""Main CLI entry point for gitlib."""

import logging

import click
from colorama import init

from gitlib import __version__
from gitlib.cli.output import BANNER
from gitlib.cli.commands import merge_status_cmd, merge_table_cmd

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class GitlibGroup(click.Group):
    """Custom Group class to display banner before help."""

    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=GitlibGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
def cli(verbose):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')


cli.add_command(merge_status_cmd)
cli.add_command(merge_table_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
