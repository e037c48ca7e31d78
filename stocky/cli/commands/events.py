# stocky/cli/commands/events.py

"""Reward event stream commands"""

import signal

import click
import msgspec


@click.group()
def events():
    """Reward event stream"""
    pass


@events.command()
@click.pass_context
def tail(ctx):
    """Print RewardCreated events from the subscription until SIGINT or SIGTERM

    Needs STOCKY_PUBSUB_PROJECT_ID (or STOCKY_GCP_PROJECT_ID) and an existing
    subscription on the reward-events topic (STOCKY_PUBSUB_SUBSCRIPTION).
    """
    from ...clients.pubsub_subscriber import RewardEventListener

    config = ctx.obj['cli_context'].config.publisher
    if not config.project_id:
        raise click.ClickException("No Pub/Sub project configured")

    listener = RewardEventListener(config)

    def handle_signal(signum, frame):
        click.echo(f"Received signal {signum}, stopping listener", err=True)
        listener.stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    click.echo(f"Listening on {listener.subscription_path}", err=True)
    listener.run(on_event=lambda event: click.echo(msgspec.json.encode(event).decode()))
