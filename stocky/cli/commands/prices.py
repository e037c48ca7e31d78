# stocky/cli/commands/prices.py

"""Quote lookup and refresh commands"""

import signal

import click

from ..context import to_json
from ...clients.interfaces import PriceSourceError
from ...core.errors import StockyError
from ..errors import StockyCommandError


@click.group()
def prices():
    """Price cache operations"""
    pass


@prices.command()
@click.argument('symbol')
@click.pass_context
def get(ctx, symbol):
    """Show the cached quote for SYMBOL, fetching it on a miss"""
    price_cache = ctx.obj['cli_context'].app.price_cache

    try:
        quote = price_cache.get_price(symbol)
    except StockyError as e:
        raise StockyCommandError(e)
    except PriceSourceError as e:
        raise click.ClickException(str(e))

    click.echo(to_json({
        "symbol": quote.symbol,
        "price": quote.price,
        "updated_at": quote.updated_at,
        "is_stale": price_cache.is_stale(quote),
    }))


@prices.command()
@click.pass_context
def refresh(ctx):
    """Refresh every tracked symbol once"""
    refresher = ctx.obj['cli_context'].app.refresher

    try:
        summary = refresher.refresh_all()
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(summary))
    if summary['failed']:
        ctx.exit(1)


@prices.command()
@click.pass_context
def run(ctx):
    """Run the refresher loop until SIGINT or SIGTERM"""
    app = ctx.obj['cli_context'].app

    def handle_signal(signum, frame):
        click.echo(f"Received signal {signum}, stopping price refresher", err=True)
        app.shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    click.echo(f"Refreshing prices every {app.config.pricing.refresh_interval_seconds}s", err=True)
    app.refresher.run_forever()
