"""Configuration management commands."""

from pathlib import Path

import click

from config import create_default_config, format_duration
from cli.utils import get_node, handle_error, mask_secret


def register_commands(cli):
    """Register config commands with main CLI."""

    @cli.group('config')
    @click.pass_context
    def config_group(ctx):
        """Configuration management commands.

        Initialize and inspect the node configuration file.
        """
        pass

    @config_group.command('init')
    @click.option('--force', is_flag=True, help='Overwrite an existing file without asking')
    @click.pass_context
    def init_config(ctx, force):
        """Create a default configuration file.

        Examples:
            # Create default nodes.json
            python -m main config init

            # Create config at custom location
            python -m main --config /etc/snapshot-cosmos/nodes.json config init
        """
        config_path = ctx.obj['config_path']

        if Path(config_path).exists() and not force:
            click.echo(f"Configuration file already exists: {config_path}")
            if not click.confirm("Overwrite existing configuration?"):
                return

        try:
            create_default_config(config_path)
        except OSError as e:
            handle_error(e, ctx.obj['verbose'])

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo("\nNext steps:")
        click.echo("  1. Set home_dir and chain_id for each node")
        click.echo("  2. Set the S3 bucket, region and path_prefix")
        click.echo("  3. Check the result with: python -m main config show <node>")

    @config_group.command('show')
    @click.argument('node_name')
    @click.pass_context
    def show_config(ctx, node_name):
        """Show the resolved configuration for a node (secrets masked)."""
        try:
            _, node_cfg = get_node(ctx, node_name)
        except Exception as e:
            handle_error(e, ctx.obj['verbose'])
            return

        click.echo(f"Node: {node_name}")
        click.echo(f"  Chain ID: {node_cfg.node.chain_id}")
        click.echo(f"  Binary: {node_cfg.node.binary_path}")
        click.echo(f"  Data Path: {node_cfg.data_path}")
        click.echo(f"  RPC Endpoint: {node_cfg.node.rpc_endpoint}")
        click.echo(f"  Snapshot Dir: {node_cfg.snapshot_dir}")
        click.echo(f"  Snapshot Interval: {format_duration(node_cfg.snapshot.interval)}")
        click.echo(f"  Retention: {node_cfg.snapshot.retention} snapshots")
        click.echo(f"  Compression: {node_cfg.snapshot.compression}")
        click.echo(f"  S3 Bucket: {node_cfg.s3.bucket}")
        click.echo(f"  S3 Region: {node_cfg.s3.region}")
        click.echo(f"  S3 Path: {node_cfg.s3.path_prefix}")
        click.echo(f"  S3 Endpoint: {node_cfg.s3.endpoint or '(AWS default)'}")
        click.echo(f"  Access Key: {mask_secret(node_cfg.s3.access_key) or '(default chain)'}")
        click.echo(f"  Secret Key: {mask_secret(node_cfg.s3.secret_key) or '(default chain)'}")
