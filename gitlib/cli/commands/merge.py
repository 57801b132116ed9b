"""Merge classification commands for gitlib."""

import click
from colorama import Fore, Style

from gitlib.core.errors import UnreachableMergeStatus
from gitlib.cli.output import success, error, info, warning
from gitlib.operations.merge import ModificationKind, MERGE_TABLE, merge_status


def _parse_kind(ctx, param, value):
    try:
        return ModificationKind.parse(value)
    except ValueError:
        choices = ', '.join(kind.value for kind in ModificationKind)
        raise click.BadParameter(f"'{value}' is not one of {choices}")


@click.command('merge-status')
@click.argument('left', callback=_parse_kind)
@click.argument('right', callback=_parse_kind)
@click.pass_context
def merge_status_cmd(ctx, left, right):
    """
    Classify a path changed on both sides of a merge.

    LEFT and RIGHT are how the path changed on each side relative to the
    common ancestor: Unchanged, Modified, Added, Deleted or TypeChanged.

    Exits 0 when the path merges cleanly, 1 on a conflict, and 2 when
    the pair cannot arise from a common ancestor.

    Examples:
        gitlib merge-status Modified Deleted
        gitlib merge-status added added
    """
    try:
        status = merge_status(left, right)
    except UnreachableMergeStatus as e:
        click.echo(error(str(e)))
        ctx.exit(2)

    if status.is_conflict:
        click.echo(warning(status.value))
        ctx.exit(1)
    click.echo(success(status.value))


@click.command('merge-table')
def merge_table_cmd():
    """
    Show every left/right classification and its merge status.

    Rows are the left side, columns the right side. Pairs that cannot
    arise from a common ancestor are shown as '-'.
    """
    kinds = list(ModificationKind)
    width = max(len(status.value) for status in MERGE_TABLE.values()) + 2

    header = ' ' * 13 + ''.join(kind.value.ljust(width) for kind in kinds)
    click.echo(f"{Style.BRIGHT}{header.rstrip()}{Style.RESET_ALL}")

    for left in kinds:
        cells = []
        for right in kinds:
            status = MERGE_TABLE.get((left, right))
            if status is None:
                cells.append(f"{Fore.WHITE}{'-'.ljust(width)}{Style.RESET_ALL}")
            elif status.is_conflict:
                cells.append(f"{Fore.RED}{status.value.ljust(width)}{Style.RESET_ALL}")
            else:
                cells.append(f"{Fore.GREEN}{status.value.ljust(width)}{Style.RESET_ALL}")
        click.echo(f"{Style.BRIGHT}{left.value.ljust(13)}{Style.RESET_ALL}" + ''.join(cells))

    click.echo(info("Rows are the left side, columns the right side"))
