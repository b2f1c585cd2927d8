"""Main CLI entry point - Root command group with global options."""

import click

from config import DEFAULT_CONFIG_PATH
from version import __version__


@click.group()
@click.option('--config', '-c', default=DEFAULT_CONFIG_PATH, envvar='SNAPSHOT_COSMOS_CONFIG',
              show_default=True, help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging and tracebacks')
@click.version_option(version=__version__, prog_name='snapshot-cosmos')
@click.pass_context
def cli(ctx, config, verbose):
    """snapshot-cosmos - Multi-node Cosmos-like blockchain snapshot service.

    Creates compressed snapshots of blockchain node data directories,
    uploads them to S3 and prunes old snapshots locally and in the bucket.

    Examples:
        # Show configured nodes
        python -m main list

        # One-shot snapshot of a node
        python -m main create cosmoshub

        # Upload an existing snapshot file
        python -m main upload cosmoshub /tmp/snapshot-cosmos/cosmoshub/cosmoshub-4/<file>.tar.gz

        # Run periodic snapshots until interrupted
        python -m main daemon cosmoshub
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose


@cli.command('version')
def version():
    """Show version information."""
    click.echo(f"snapshot-cosmos {__version__}")


def register_all_commands():
    """Register all command modules with the main CLI."""
    from cli import (
        config_commands,
        list_commands,
        snapshot_commands,
    )

    config_commands.register_commands(cli)
    list_commands.register_commands(cli)
    snapshot_commands.register_commands(cli)


# Register all commands when module is imported
register_all_commands()
