"""CLI entry point for app-auth.

Invoked as::

    app-auth [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m app_auth.cli.main

Commands
--------
records list     List every stored installation
records show     Show the installation registered for an API URL
records set      Store credentials for an API URL
records delete   Remove the installation for an API URL
status           Run the store's readiness and configuration probes
patch scan       Show where the SDK signature verifier is loaded
"""
from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from app_auth.apl import AuthRecord, AuthStoreError, HttpsEnforcingAuthStore
from app_auth.config import SettingsError, build_auth_store, load_settings
from app_auth.logging_config import configure_logging

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="app-auth-layer")
@click.option(
    "--apl",
    type=click.Choice(["memory", "file", "rest", "upstash"]),
    default=None,
    help="Auth store backend (overrides $APL).",
)
@click.option(
    "--file-path",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON file for the file backend (overrides $FILE_APL_PATH).",
)
@click.option(
    "--log-level",
    default=None,
    help="Root log level (overrides $APP_LOG_LEVEL).",
)
@click.pass_context
def cli(ctx: click.Context, apl: str | None, file_path: str | None, log_level: str | None) -> None:
    """Inspect and manage app installation credentials"""
    try:
        settings = load_settings()
    except SettingsError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    overrides: dict[str, object] = {}
    if apl:
        overrides["apl"] = apl
    if file_path:
        overrides["file_apl_path"] = Path(file_path)
    if log_level:
        overrides["log_level"] = log_level
    settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    ctx.obj = settings


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from app_auth import __version__

    console.print(f"[bold]app-auth[/bold] v{__version__}")


# ------------------------------------------------------------------
# records command group
# ------------------------------------------------------------------


@cli.group(name="records")
def records_group() -> None:
    """Manage stored installation credentials."""


@records_group.command(name="list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List every stored installation."""
    store = _open_store(ctx)
    records = _run(store.get_all())

    if not records:
        console.print("[yellow]No installations stored.[/yellow]")
        return

    table = Table(title="Installations", show_header=True)
    table.add_column("API URL", style="cyan")
    table.add_column("App ID")
    table.add_column("JWKS", justify="center")

    for record in records:
        jwks_str = "[green]Yes[/green]" if record.jwks else "[red]No[/red]"
        table.add_row(record.api_url, record.app_id, jwks_str)

    console.print(table)
    console.print(f"\nTotal: {len(records)} installation(s)")


@records_group.command(name="show")
@click.argument("api_url")
@click.pass_context
def show_command(ctx: click.Context, api_url: str) -> None:
    """Show the installation registered for API_URL (either scheme)."""
    store = _open_store(ctx)
    record = _run(store.get(api_url))
    if record is None:
        console.print(f"[red]Error:[/red] no installation registered for {api_url!r}")
        sys.exit(1)

    console.print(f"[bold]{record.api_url}[/bold]")
    console.print(f"  App ID: {record.app_id}")
    console.print(f"  Token:  {_mask(record.token)}")
    console.print(f"  JWKS:   {'present' if record.jwks else '(none)'}")


@records_group.command(name="set")
@click.argument("api_url")
@click.option("--app-id", required=True, help="Identifier assigned by the platform.")
@click.option("--token", required=True, help="App token for API calls.")
@click.option("--jwks", default=None, help="JSON Web Key Set for webhook signatures.")
@click.pass_context
def set_command(
    ctx: click.Context,
    api_url: str,
    app_id: str,
    token: str,
    jwks: str | None,
) -> None:
    """Store credentials for API_URL. The URL is saved with https://."""
    store = _open_store(ctx)
    record = AuthRecord(app_id=app_id, api_url=api_url, token=token, jwks=jwks)
    _run(store.set(record))
    console.print(f"[green]Stored[/green] installation for [bold]{record.with_canonical_url().api_url}[/bold]")


@records_group.command(name="delete")
@click.argument("api_url")
@click.pass_context
def delete_command(ctx: click.Context, api_url: str) -> None:
    """Remove the installation for API_URL."""
    store = _open_store(ctx)
    _run(store.delete(api_url))
    console.print(f"[green]Deleted[/green] installation for [bold]{api_url}[/bold]")


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------


@cli.command(name="status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """Run the configured store's readiness and configuration probes."""
    store = _open_store(ctx)
    ready = _run(store.is_ready())
    configured = _run(store.is_configured())

    failed = False
    for label, probe in (("configured", configured), ("ready", ready)):
        if probe.ok:
            console.print(f"  [green]PASS[/green]  store is {label}")
        else:
            failed = True
            console.print(f"  [red]FAIL[/red]  store is not {label}: {probe.error}")

    if failed:
        sys.exit(1)


# ------------------------------------------------------------------
# patch command group
# ------------------------------------------------------------------


@cli.group(name="patch")
def patch_group() -> None:
    """Inspect the SDK signature verification patch."""


@patch_group.command(name="scan")
@click.option(
    "--import",
    "imports",
    multiple=True,
    help="Module to import before scanning (repeatable).",
)
def scan_command(imports: tuple[str, ...]) -> None:
    """List loaded SDK modules exposing the signature verifier, without patching."""
    from app_auth.patching import SignatureVerificationPatcher, is_override

    for name in imports:
        try:
            importlib.import_module(name)
        except ImportError as exc:
            console.print(f"[yellow]Warning:[/yellow] could not import {name}: {exc}")

    patcher = SignatureVerificationPatcher()
    targets = patcher.scan()
    if not targets:
        console.print("[yellow]No signature verification functions found.[/yellow]")
        return

    table = Table(title="Signature verification targets", show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Via default", justify="center")
    table.add_column("Patched", justify="center")

    for target in targets:
        owner = sys.modules[target.module_name]
        if target.via_default:
            owner = owner.default
        patched = is_override(getattr(owner, target.attribute))
        table.add_row(
            target.module_name,
            "Yes" if target.via_default else "No",
            "[green]Yes[/green]" if patched else "[red]No[/red]",
        )

    console.print(table)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _open_store(ctx: click.Context) -> HttpsEnforcingAuthStore:
    try:
        return build_auth_store(ctx.obj)
    except (SettingsError, AuthStoreError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _run(coro):  # type: ignore[no-untyped-def]
    """Run a store coroutine, turning store errors into a CLI failure."""
    try:
        return asyncio.run(coro)
    except AuthStoreError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


if __name__ == "__main__":
    cli()
