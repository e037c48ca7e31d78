# stocky/cli/__main__.py

"""
Stocky CLI

Usage: python -m stocky.cli [command] [options]
"""

import atexit
from pathlib import Path

import click

from stocky.cli.context import CLIContext
from stocky.core.logging import StockyLogger

cli_context = CLIContext()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Stocky CLI - reward ledger and valuation tool

    Admit rewards, read portfolio views, manage quotes and the schema.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['cli_context'] = cli_context

    StockyLogger.reset()
    StockyLogger.configure(
        log_dir=Path.cwd() / "logs",
        log_level="DEBUG" if verbose else "WARNING",
        console_enabled=True,
        file_enabled=False,
        structured_format=False,
    )


from stocky.cli.commands.db import db
from stocky.cli.commands.reward import reward
from stocky.cli.commands.prices import prices
from stocky.cli.commands.events import events

cli.add_command(db)
cli.add_command(reward)
cli.add_command(prices)
cli.add_command(events)


def cleanup():
    cli_context.shutdown()


atexit.register(cleanup)


def main():
    cli()


if __name__ == '__main__':
    main()
