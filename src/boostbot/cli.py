"""Command-line interface for BoostBot."""

import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path

import click

from .config import Config
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """BoostBot - Relay Helipad boosts to Nostr."""
    pass


@cli.command()
@click.option(
    "--api-host",
    type=str,
    help="API server host (default: 0.0.0.0)",
)
@click.option(
    "--api-port",
    type=int,
    help="API server port (default: 4444)",
)
@click.option(
    "--api-bearer-token",
    type=str,
    help="Bearer token for API authentication (Helipad webhook token)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (default: INFO)",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    help="Log format (default: json)",
)
@click.option(
    "--metrics/--no-metrics",
    default=None,
    help="Enable/disable Prometheus metrics (default: enabled)",
)
@click.option(
    "--relays",
    type=str,
    help="Comma-separated list of Nostr relay URLs",
)
@click.option(
    "--publish-timeout",
    type=float,
    help="Per-relay publish timeout in seconds (default: 30)",
)
@click.option(
    "--test-mode/--live",
    default=None,
    help="Log boosts instead of posting them (default: live)",
)
@click.option(
    "--allowed-senders",
    type=str,
    help="Comma-separated sender names whose boosts are posted (default: all)",
)
@click.option(
    "--sessions-file",
    type=click.Path(),
    help="Path to persisted boost sessions (default: ./data/boost-sessions.json)",
)
@click.option(
    "--mentions-file",
    type=click.Path(),
    help="JSON file mapping shows and names to npubs",
)
@click.option(
    "--bucket-seconds",
    type=int,
    help="Session key time bucket width in seconds (default: 120)",
)
@click.option(
    "--grace-seconds",
    type=float,
    help="Delay after the fee-bearing split before posting (default: 30)",
)
@click.option(
    "--duplicate-window",
    type=float,
    help="Duplicate screening window in seconds (default: 300)",
)
@click.option(
    "--similarity-threshold",
    type=float,
    help="Similarity above which a post is a duplicate (default: 0.9)",
)
def server(**kwargs):
    """Start the BoostBot webhook server."""
    from .__main__ import Application

    # Filter out None values (unspecified options)
    cli_args = {k: v for k, v in kwargs.items() if v is not None}

    # Load configuration from args and environment
    config = Config.from_args_and_env(cli_args)

    setup_logging(level=config.log_level, format_type=config.log_format)

    app = Application(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        app.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        loop.run_until_complete(app.run())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt")
    finally:
        loop.close()


def _resolve_sessions_file(sessions_file) -> Path:
    cli_args = {}
    if sessions_file is not None:
        cli_args["sessions_file"] = sessions_file
    return Path(Config.from_args_and_env(cli_args).sessions_file)


@cli.command()
@click.option(
    "--sessions-file",
    type=click.Path(),
    help="Path to persisted boost sessions",
)
def sessions(sessions_file):
    """Show persisted boost sessions and their time left.

    Examples:

      boostbot sessions

      boostbot sessions --sessions-file /var/lib/boostbot/boost-sessions.json
    """
    path = _resolve_sessions_file(sessions_file)

    if not path.exists():
        click.echo(f"No boost sessions file found at {path}")
        return

    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, ValueError) as e:
        click.echo(f"Error reading {path}: {e}", err=True)
        sys.exit(1)

    if not records:
        click.echo("No active boost sessions")
        return

    now_ms = int(time.time() * 1000)
    click.echo(f"Found {len(records)} boost session(s) in {path}:")
    click.echo("")
    for record in records:
        winner = record.get("winningSplit") or {}
        remaining = (record.get("expiresAtEpochMillis", 0) - now_ms) / 1000
        status = f"{remaining:.0f}s left" if remaining > 0 else "EXPIRED"
        if remaining > 0 and not record.get("armed", True):
            status += ", waiting for fee split"
        click.echo(f"  {record.get('sessionKey')}")
        click.echo(
            f"    Sender: {winner.get('sender_label') or 'Unknown'} | "
            f"Amount: {(winner.get('total_amount_msat') or 0) // 1000} sats | "
            f"Splits: {len(record.get('allSplits') or [])} | {status}"
        )


@cli.command("clear-sessions")
@click.option(
    "--sessions-file",
    type=click.Path(),
    help="Path to persisted boost sessions",
)
@click.option(
    "--yes",
    is_flag=True,
    help="Do not ask for confirmation",
)
def clear_sessions(sessions_file, yes):
    """Delete persisted boost sessions so they are never posted."""
    path = _resolve_sessions_file(sessions_file)

    if not path.exists():
        click.echo(f"No boost sessions file found at {path}")
        return

    if not yes:
        click.confirm(f"Delete {path}?", abort=True)

    try:
        path.unlink()
    except OSError as e:
        click.echo(f"Error deleting {path}: {e}", err=True)
        sys.exit(1)

    click.echo(f"Cleared boost sessions: {path}")
