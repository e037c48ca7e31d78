# stocky/cli/commands/reward.py

"""Reward admission and the per-user read views"""

import click

from ..context import to_json
from ...core.errors import StockyError
from ..errors import StockyCommandError
from ...types import CreateRewardRequest


@click.group()
def reward():
    """Reward admission and portfolio views"""
    pass


@reward.command()
@click.argument('user_id')
@click.option('--symbol', 'stock_symbol', required=True, help='Stock symbol, e.g. RELIANCE')
@click.option('--shares', required=True, help='Share quantity as a decimal string')
@click.option('--rewarded-at', required=True, help='RFC 3339 timestamp of the reward')
@click.option('--idempotency-key', default='', help='Client idempotency key')
@click.pass_context
def create(ctx, user_id, stock_symbol, shares, rewarded_at, idempotency_key):
    """Admit a reward and write its ledger entries

    Examples:
        reward create user-1 --symbol TCS --shares 2.5 --rewarded-at 2025-09-01T10:00:00Z
    """
    service = ctx.obj['cli_context'].app.reward_service
    request = CreateRewardRequest(stock_symbol=stock_symbol, shares=shares, rewarded_at=rewarded_at)

    try:
        result = service.create_reward(user_id, request, idempotency_key=idempotency_key)
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(result))


@reward.command()
@click.argument('user_id')
@click.option('--date', 'day', help='UTC date YYYY-MM-DD (default: today)')
@click.pass_context
def today(ctx, user_id, day):
    """List rewards granted on one UTC day"""
    service = ctx.obj['cli_context'].app.reward_service

    try:
        rewards = service.list_rewards_for_date(user_id, day)
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(rewards))


@reward.command()
@click.argument('user_id')
@click.option('--from', 'start', help='RFC 3339 lower bound (inclusive)')
@click.option('--to', 'end', help='RFC 3339 upper bound (inclusive)')
@click.option('--page', type=int, default=1, show_default=True)
@click.option('--size', type=int, default=50, show_default=True)
@click.pass_context
def historical(ctx, user_id, start, end, page, size):
    """Per-day INR value of past rewards"""
    service = ctx.obj['cli_context'].app.reward_service

    try:
        points = service.get_historical_inr(user_id, start, end, page=page, size=size)
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(points))


@reward.command()
@click.argument('user_id')
@click.option('--today', 'only_today', is_flag=True, help="Only today's rewards")
@click.pass_context
def stats(ctx, user_id, only_today):
    """Shares per symbol and their current value"""
    service = ctx.obj['cli_context'].app.reward_service

    try:
        result = service.get_stats(user_id, "today" if only_today else "all")
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(result))


@reward.command()
@click.argument('user_id')
@click.pass_context
def portfolio(ctx, user_id):
    """Holdings valued at current prices"""
    service = ctx.obj['cli_context'].app.reward_service

    try:
        result = service.get_portfolio(user_id)
    except StockyError as e:
        raise StockyCommandError(e)

    click.echo(to_json(result))
