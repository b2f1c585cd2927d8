"""Snapshot commands: create, upload, download and daemon."""

import os
import posixpath
import signal
import threading
from pathlib import Path

import click

from config import format_duration, parse_duration
from cli.utils import (
    build_orchestrator,
    format_size,
    get_node,
    handle_error,
)
from s3_backup.gateway import S3Gateway
from snapshot.archiver import snapshot_time
from snapshot.daemon import SnapshotDaemon
from snapshot.errors import ConfigurationError
from snapshot.orchestrator import remote_key


def register_commands(cli):
    """Register snapshot commands with main CLI."""

    @cli.command('create')
    @click.argument('node_name')
    @click.option('--output', '-o', type=click.Path(file_okay=False),
                  help='Output directory (default: <temp_dir>/<chain_id>)')
    @click.option('--compress/--no-compress', default=None,
                  help='Gzip the archive (default: snapshot.compression from config)')
    @click.pass_context
    def create(ctx, node_name, output, compress):
        """Create a new snapshot of a node's data directory.

        Examples:
            python -m main create cosmoshub
            python -m main create cosmoshub --output /mnt/backups --no-compress
        """
        verbose = ctx.obj['verbose']
        try:
            _, node_cfg = get_node(ctx, node_name)
            click.echo(f"Creating snapshot of {node_name} ({node_cfg.node.chain_id})")
            click.echo(f"  Data path: {node_cfg.data_path}")

            orchestrator = build_orchestrator(node_cfg, upload=False, compress=compress)
            artifact = orchestrator.create(output)

            click.echo(f"✓ Snapshot created: {artifact.path}")
            click.echo(f"  Entries: {artifact.entry_count}")
            click.echo(f"  Size: {format_size(artifact.size_bytes)}")
        except Exception as e:
            handle_error(e, verbose)

    @cli.command('upload')
    @click.argument('node_name')
    @click.argument('file_path', type=click.Path())
    @click.option('--key', help='S3 object key (default: <path_prefix>/<file name>)')
    @click.pass_context
    def upload(ctx, node_name, file_path, key):
        """Upload an existing snapshot file to S3.

        Examples:
            python -m main upload cosmoshub ./cosmoshub-4-snapshot-2024-01-01-00-00-00.tar.gz
        """
        verbose = ctx.obj['verbose']
        try:
            _, node_cfg = get_node(ctx, node_name)
            orchestrator = build_orchestrator(node_cfg)
            stored_key = orchestrator.upload_existing(file_path, key)
            click.echo(f"✓ Uploaded {file_path} to s3://{node_cfg.s3.bucket}/{stored_key}")
        except Exception as e:
            handle_error(e, verbose)

    @cli.command('download')
    @click.argument('node_name')
    @click.argument('key')
    @click.argument('destination', required=False, type=click.Path())
    @click.pass_context
    def download(ctx, node_name, key, destination):
        """Download a snapshot from S3.

        KEY may be a full object key or a bare file name under the node's
        path_prefix. DESTINATION defaults to the current directory. The file
        mtime is set to the creation time in its name.

        Examples:
            python -m main download cosmoshub cosmoshub-4-snapshot-2024-01-01-00-00-00.tar.gz
        """
        verbose = ctx.obj['verbose']
        try:
            _, node_cfg = get_node(ctx, node_name)
            if '/' not in key:
                key = remote_key(node_cfg.s3.path_prefix, key)

            dest = Path(destination) if destination else Path.cwd()
            if dest.is_dir():
                dest = dest / posixpath.basename(key)

            gateway = S3Gateway(node_cfg.s3)
            gateway.get(key, dest)

            created_at = snapshot_time(dest.name)
            if created_at is not None:
                timestamp = created_at.timestamp()
                os.utime(dest, (timestamp, timestamp))

            click.echo(f"✓ Downloaded s3://{node_cfg.s3.bucket}/{key} to {dest}")
        except Exception as e:
            handle_error(e, verbose)

    @cli.command('daemon')
    @click.argument('node_name')
    @click.option('--interval', help='Snapshot interval, e.g. 6h or 90m (overrides config)')
    @click.option('--upload/--no-upload', default=True, show_default=True,
                  help='Upload snapshots and prune the bucket')
    @click.pass_context
    def daemon(ctx, node_name, interval, upload):
        """Run periodic snapshots for a node until interrupted.

        A snapshot is taken immediately, then once per interval. SIGINT or
        SIGTERM stop the daemon after the current snapshot finishes.

        Examples:
            python -m main daemon cosmoshub
            python -m main daemon cosmoshub --interval 6h --no-upload
        """
        verbose = ctx.obj['verbose']
        try:
            _, node_cfg = get_node(ctx, node_name)

            interval_seconds = node_cfg.snapshot.interval
            if interval:
                try:
                    interval_seconds = parse_duration(interval)
                except ValueError as e:
                    raise ConfigurationError(f"--interval: {e}") from e
            if interval_seconds <= 0:
                raise ConfigurationError("snapshot interval must be positive")

            orchestrator = build_orchestrator(node_cfg, upload=upload, show_progress=False)
            snapshot_daemon = SnapshotDaemon(orchestrator, interval_seconds)

            click.echo(f"Starting snapshot daemon for {node_name} ({node_cfg.node.chain_id})")
            click.echo(f"  Interval: {format_duration(interval_seconds)}")
            click.echo(f"  Retention: {node_cfg.snapshot.retention} snapshots")
            click.echo(f"  Upload: {'enabled' if upload else 'disabled'}")

            cycles = _run_until_signalled(snapshot_daemon)
            click.echo(f"✓ Daemon stopped gracefully after {cycles} cycle(s)")
        except Exception as e:
            handle_error(e, verbose)


def _run_until_signalled(snapshot_daemon: SnapshotDaemon) -> int:
    """Run the daemon with SIGINT/SIGTERM wired to its stop event."""
    stop_event = threading.Event()

    def _on_signal(signum, frame):
        click.echo(f"\nReceived {signal.Signals(signum).name}, stopping after current snapshot...", err=True)
        stop_event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _on_signal)
    try:
        return snapshot_daemon.run(stop_event)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
