"""Command line interface for schemaguard."""

import click

from .check import check
from .lint import lint


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """schemaguard CLI"""
    if ctx.invoked_subcommand is None:
        # Show help when no subcommand is provided
        click.echo(ctx.get_help())


cli.add_command(lint)
cli.add_command(check)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
