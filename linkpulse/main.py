"""Main entry point for the linkpulse command-line tool.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Annotated, Any, Coroutine, Dict, List, Optional

import typer

from linkpulse import VERSION
from linkpulse.core.client import LinkPulseClient
from linkpulse.core.command_handler import CommandHandler
from linkpulse.infrastructure.cli.display import ConsoleDisplay
from linkpulse.infrastructure.config.settings import (
    ConfigurationError, build_sdk_config, get_config, load_configuration,
)
from linkpulse.infrastructure.monitoring.logger_setup import setup_logging
from linkpulse.infrastructure.storage.state_store import DiskStateStore

logger = logging.getLogger(__name__)

# Values from global options, applied on top of the loaded configuration
_overrides: Dict[str, Any] = {}
_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    ui = ConsoleDisplay()

    load_configuration()
    log_level_name = str(get_config('logging.level', 'WARNING')).upper()
    log_level = getattr(logging, log_level_name, logging.WARNING)
    log_file = get_config('logging.file')
    log_format = get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    setup_logging(log_level=log_level, log_file=log_file, log_format=log_format)

    try:
        config = build_sdk_config(**_overrides)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        ui.display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)

    state_store = DiskStateStore(config.state_dir)

    def client_factory() -> LinkPulseClient:
        return LinkPulseClient(config, state_store=state_store)

    logger.info("All dependencies initialized successfully.")
    return {
        'ui': ui,
        'config': config,
        'state_store': state_store,
        'command_handler': CommandHandler(client_factory=client_factory, state_store=state_store, ui=ui),
    }


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def close_dependencies() -> None:
    global _dependencies
    if _dependencies is not None:
        store = _dependencies.get('state_store')
        if isinstance(store, DiskStateStore):
            store.close()
    _dependencies = None


def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']


# --- Typer App Definition ---
app = typer.Typer(
    name="linkpulse",
    help=f"linkpulse v{VERSION}: analytics, in-app messages, referrals and deferred links from the command line.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs a handler coroutine from a sync Typer command and maps its outcome to an exit code."""
    try:
        succeeded = asyncio.run(coro)
    finally:
        close_dependencies()
    if not succeeded:
        raise typer.Exit(code=1)


def _parse_properties(values: Optional[List[str]]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{item}'", param_hint="--property")
        properties[key.strip()] = value
    return properties


# --- CLI Commands ---

@app.command()
def track(
    event_type: Annotated[str, typer.Argument(help="Event type, e.g. 'custom.signup'.")],
    prop: Annotated[
        Optional[List[str]],
        typer.Option("--property", "-P", help="Event property as key=value (repeatable).")
    ] = None,
):
    """Queue an analytics event and deliver it immediately."""
    properties = _parse_properties(prop)
    run_async(_handler().handle_track(event_type, properties))


@app.command()
def messages(
    trigger: Annotated[Optional[str], typer.Option("--trigger", "-t", help="Only messages for this trigger.")] = None,
):
    """List in-app messages this device may show, highest priority first."""
    run_async(_handler().handle_messages(trigger))


@app.command()
def dismiss(
    message_id: Annotated[str, typer.Argument(help="ID of the message to dismiss.")],
):
    """Record a dismissal for a message."""
    run_async(_handler().handle_dismiss(message_id))


@app.command(name="referral-create")
def referral_create(
    user_id: Annotated[str, typer.Argument(help="ID of the referring user.")],
    user_name: Annotated[Optional[str], typer.Option("--name", help="Display name for the leaderboard.")] = None,
):
    """Create a referral code for a user."""
    run_async(_handler().handle_referral_create(user_id, user_name))


@app.command(name="referral-get")
def referral_get(
    code: Annotated[str, typer.Argument(help="Referral code.")],
):
    """Show the details of a referral."""
    run_async(_handler().handle_referral_get(code))


@app.command()
def leaderboard(
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", min=1, help="Maximum entries to show.")] = None,
):
    """Show the referral leaderboard."""
    run_async(_handler().handle_leaderboard(limit))


@app.command(name="claim-reward")
def claim_reward(
    code: Annotated[str, typer.Argument(help="Referral code whose reward to claim.")],
):
    """Claim the reward of a completed referral."""
    run_async(_handler().handle_claim_reward(code))


@app.command(name="deferred-claim")
def deferred_claim(
    token: Annotated[Optional[str], typer.Argument(help="Deferred link token.")] = None,
    appspace: Annotated[
        Optional[str],
        typer.Option("--appspace", help="Appspace ID for a device-signal claim (used when no token is given).")
    ] = None,
):
    """Claim a deferred deep link by token or by device signals."""
    run_async(_handler().handle_deferred_claim(token, appspace))


@app.command(name="clear-state")
def clear_state():
    """Forget local impression counts and dismissals."""
    try:
        _handler().handle_clear_state()
    finally:
        close_dependencies()


@app.callback()
def main_callback(
    api_key: Annotated[Optional[str], typer.Option("--api-key", help="API key (overrides LINKPULSE_API_KEY).")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="API base URL.")] = None,
    user_id: Annotated[Optional[str], typer.Option("--user-id", help="User ID for targeting and attribution.")] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Verbose SDK logging.")] = False,
):
    """Global options applied before any command runs."""
    _overrides.clear()
    _overrides.update({
        'api_key': api_key,
        'base_url': base_url,
        'user_id': user_id,
        'debug': True if debug else None,
    })


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
