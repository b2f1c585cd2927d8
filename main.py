#!/usr/bin/env python3
"""snapshot-cosmos - Blockchain node snapshot service.

Examples:
    # Get help
    python -m main --help
    python -m main daemon --help

    # Basic workflow
    python -m main config init                 # Write a default nodes.json
    python -m main list                        # Show configured nodes
    python -m main create cosmoshub            # One-shot local snapshot
    python -m main upload cosmoshub <file>     # Upload an existing snapshot
    python -m main daemon cosmoshub            # Snapshot, upload and prune on a schedule

    # Inspect snapshots
    python -m main list snapshots cosmoshub --remote
"""

from cli.main import cli

if __name__ == '__main__':
    cli()
