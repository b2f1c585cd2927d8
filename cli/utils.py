"""Shared utilities for CLI commands."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from tabulate import tabulate

from config import load_config, Config, NodeConfig
from s3_backup.gateway import S3Gateway
from snapshot.archiver import Archiver, format_bytes as format_size
from snapshot.orchestrator import SnapshotOrchestrator
from snapshot.retention import RetentionPruner

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def load_app_config(config_path: str) -> Config:
    """Load application configuration.

    Args:
        config_path: Path to configuration file

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    return load_config(config_path)


def setup_logging(config: Optional[Config] = None, verbose: bool = False):
    """Set up root logging from configuration.

    Console logs go to stderr so stdout stays clean for command output.

    Args:
        config: Application configuration (None for defaults)
        verbose: Log at DEBUG level regardless of configuration
    """
    level_name = config.logging.level if config else 'INFO'
    log_level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if config and config.logging.file:
        log_file = Path(config.logging.file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)

    # Quiet all libraries
    for name in ('boto3', 'botocore', 's3transfer', 'urllib3'):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_node(ctx: click.Context, node_name: str) -> Tuple[Config, NodeConfig]:
    """Load configuration, set up logging and resolve one node.

    Raises:
        ConfigurationError: config invalid, node unknown or disabled
    """
    config = load_app_config(ctx.obj['config_path'])
    setup_logging(config, ctx.obj['verbose'])
    return config, config.get_node_config(node_name)


def build_orchestrator(node_cfg: NodeConfig, upload: bool = True,
                       show_progress: bool = True,
                       compress: Optional[bool] = None) -> SnapshotOrchestrator:
    """Wire Archiver, S3Gateway and RetentionPruner for a node."""
    archiver = Archiver(compress=node_cfg.snapshot.compression if compress is None else compress)
    gateway = S3Gateway(node_cfg.s3, show_progress=show_progress) if upload else None
    pruner = RetentionPruner(node_cfg.snapshot.retention)
    return SnapshotOrchestrator(node_cfg, archiver, gateway, pruner, upload=upload)


def handle_error(error: Exception, verbose: bool = False):
    """Handle and display errors consistently.

    Args:
        error: Exception to handle
        verbose: Whether to show full traceback
    """
    if verbose:
        import traceback
        click.echo(f"Error: {error}", err=True)
        click.echo(traceback.format_exc(), err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def mask_secret(value: str) -> str:
    """Hide all but the last four characters of a credential."""
    if not value:
        return ''
    if len(value) <= 4:
        return '****'
    return '*' * (len(value) - 4) + value[-4:]


def echo_table(rows: List[list], headers: List[str]):
    """Print rows as a simple table."""
    click.echo(tabulate(rows, headers=headers, tablefmt='simple'))
