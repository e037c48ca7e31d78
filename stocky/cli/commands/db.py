# stocky/cli/commands/db.py

"""Schema and connectivity commands"""

import click


@click.group()
def db():
    """Database schema management"""
    pass


@db.command()
@click.option('--revision', default='head', help='Target revision (default: head)')
@click.pass_context
def upgrade(ctx, revision):
    """Apply schema migrations

    Examples:
        db upgrade
        db upgrade --revision 3f1c2a9d7b10
    """
    cli_context = ctx.obj['cli_context']

    try:
        manager = cli_context.get_migration_manager()
        manager.upgrade(revision)
        click.echo(f"✅ Database at revision {manager.current()}")
    except Exception as e:
        raise click.ClickException(f"Upgrade failed: {e}")


@db.command()
@click.pass_context
def current(ctx):
    """Show the applied schema revision"""
    cli_context = ctx.obj['cli_context']

    try:
        revision = cli_context.get_migration_manager().current()
    except Exception as e:
        raise click.ClickException(f"Could not read revision: {e}")

    click.echo(revision or "(no revision applied)")


@db.command()
@click.pass_context
def check(ctx):
    """Check connectivity and whether the schema is at head"""
    cli_context = ctx.obj['cli_context']

    if not cli_context.db_manager.health_check():
        raise click.ClickException("Database is not reachable")

    manager = cli_context.get_migration_manager()
    current_rev, head_rev = manager.current(), manager.head()
    if current_rev != head_rev:
        raise click.ClickException(f"Schema out of date: at {current_rev}, head is {head_rev}")

    click.echo(f"✅ Database reachable, schema at head ({head_rev})")
