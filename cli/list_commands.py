"""List commands for configured nodes and their snapshots."""

import datetime as dt
import posixpath

import click

from config import format_duration
from cli.utils import (
    echo_table,
    format_size,
    get_node,
    handle_error,
    load_app_config,
    setup_logging,
)
from s3_backup.gateway import S3Gateway
from snapshot.orchestrator import list_prefix
from snapshot.retention import RetentionPruner


def register_commands(cli):
    """Register list commands with main CLI."""

    @cli.group('list', invoke_without_command=True)
    @click.pass_context
    def list_group(ctx):
        """List configured blockchain nodes.

        Without a subcommand, shows every enabled node and its settings.

        Examples:
            python -m main list
            python -m main list snapshots cosmoshub --remote
        """
        if ctx.invoked_subcommand is not None:
            return

        verbose = ctx.obj['verbose']
        try:
            config = load_app_config(ctx.obj['config_path'])
            setup_logging(config, verbose)

            enabled_nodes = config.get_enabled_nodes()

            rows = []
            for name in enabled_nodes:
                node_cfg = config.get_node_config(name)
                rows.append([
                    name,
                    node_cfg.node.chain_id,
                    str(node_cfg.data_path),
                    format_duration(node_cfg.snapshot.interval),
                    node_cfg.snapshot.retention,
                    f"s3://{node_cfg.s3.bucket}/{node_cfg.s3.path_prefix}",
                ])

            click.echo("Configured blockchain nodes:\n")
            echo_table(rows, ['Node', 'Chain ID', 'Data Path', 'Interval', 'Retention', 'S3 Path'])
            click.echo(f"\nTotal enabled nodes: {len(enabled_nodes)}")
        except Exception as e:
            handle_error(e, verbose)

    @list_group.command('snapshots')
    @click.argument('node_name')
    @click.option('--remote', is_flag=True, help='List snapshots in S3 instead of local ones')
    @click.pass_context
    def list_snapshots(ctx, node_name, remote):
        """List a node's snapshots, oldest first.

        Examples:
            python -m main list snapshots cosmoshub
            python -m main list snapshots cosmoshub --remote
        """
        verbose = ctx.obj['verbose']
        try:
            _, node_cfg = get_node(ctx, node_name)
            pruner = RetentionPruner(node_cfg.snapshot.retention)
            chain_id = node_cfg.node.chain_id

            if remote:
                gateway = S3Gateway(node_cfg.s3)
                keys = pruner.list_remote(gateway, list_prefix(node_cfg.s3.path_prefix), chain_id)
                if not keys:
                    click.echo(f"No snapshots found in s3://{node_cfg.s3.bucket}/{node_cfg.s3.path_prefix}")
                    return
                echo_table([[posixpath.basename(k), k] for k in keys], ['Snapshot', 'Key'])
                click.echo(f"\nTotal: {len(keys)} (retention: {node_cfg.snapshot.retention})")
                return

            snapshots = pruner.list_local(node_cfg.snapshot_dir, chain_id)
            if not snapshots:
                click.echo(f"No snapshots found in {node_cfg.snapshot_dir}")
                return

            rows = []
            for path in snapshots:
                st = path.stat()
                modified = dt.datetime.fromtimestamp(st.st_mtime).strftime('%Y-%m-%d %H:%M:%S')
                rows.append([path.name, format_size(st.st_size), modified])
            echo_table(rows, ['Snapshot', 'Size', 'Modified'])
            click.echo(f"\nTotal: {len(snapshots)} (retention: {node_cfg.snapshot.retention})")
        except Exception as e:
            handle_error(e, verbose)
