"""
CLI — inspect and exercise multi-notifier configuration.

Commands:
    multi-notifier providers     — Show configured providers and their status
    multi-notifier validate      — Validate a config file
    multi-notifier test          — Send a test notification to all active providers
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from multinotifier import __version__

console = Console()

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/multi-notifier/config.yaml)",
)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """multi-notifier — chat notifications for agent sessions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command(name="providers")
@_config_option
def list_providers(config_path: Optional[Path]) -> None:
    """Show configured providers and their status."""
    from multinotifier.core import load_config_file
    from multinotifier.errors import ConfigError

    try:
        config = load_config_file(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1)

    if not config.enabled:
        console.print("[dim]Notifications are disabled.[/dim]")
        console.print("[dim]Enable them under notifier.enabled in the config file[/dim]")
        return

    if not config.providers:
        console.print("[yellow]All providers are disabled.[/yellow]")
        return

    console.print("\n[bold]Active notification providers[/bold]\n")
    for key in config.providers:
        console.print(f"  [green]>[/green] [bold]{key}[/bold]")


@main.command()
@_config_option
def validate(config_path: Optional[Path]) -> None:
    """Validate a config file."""
    from multinotifier.core import load_config_file
    from multinotifier.errors import ConfigError

    try:
        config = load_config_file(config_path)
    except ConfigError as exc:
        console.print(f"[red]Invalid config:[/red] {exc}")
        raise SystemExit(1)

    count = len(config.providers or {})
    console.print(f"[green]>[/green] Config is valid ({count} active provider(s))")


@main.command(name="test")
@_config_option
@click.option(
    "--event",
    "event_type",
    type=click.Choice(["session.idle", "permission.asked"]),
    default="session.idle",
    help="Event type to simulate",
)
def send_test(config_path: Optional[Path], event_type: str) -> None:
    """Send a test notification to all active providers."""
    from multinotifier.core import load_config_file
    from multinotifier.errors import ConfigError
    from multinotifier.notifications.dispatcher import dispatch
    from multinotifier.notifications.events import EventType, NotificationPayload
    from multinotifier.notifications.registry import get_providers

    try:
        config = load_config_file(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1)

    active = get_providers(config)
    if not active:
        console.print("[red]No active providers. Check the config file.[/red]")
        raise SystemExit(1)

    kind = EventType(event_type)
    payload = NotificationPayload(
        event_type=kind,
        session_id="test-notification",
        project_name="multi-notifier",
        model_name="test-model",
        last_text="If you see this, your notification channel is working!",
        pending_command="echo hello" if kind == EventType.PERMISSION_ASKED else None,
    )

    async def _send():
        for provider in active:
            await provider.connect()
        try:
            return await dispatch(active, kind, payload)
        finally:
            for provider in active:
                await provider.disconnect()

    outcomes = asyncio.run(_send())
    for outcome in outcomes:
        if outcome.success:
            console.print(f"[green]>[/green] {outcome.provider}: sent")
        else:
            console.print(f"[red]x[/red] {outcome.provider}: {outcome.error}")

    if not all(o.success for o in outcomes):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
