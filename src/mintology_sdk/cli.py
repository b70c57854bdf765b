"""
Mintology CLI entry point.

Usage:
    mintology [OPTIONS] COMMAND [ARGS]...
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .aggregation import ProjectAggregator, generate_tenant_fingerprint
from .client import MintologyClient
from .config import load_settings
from .host import InMemoryCache, StaticTenantKeyStore
from .logging_config import setup_logging
from .models.errors import MintologyError
from .pricing import PricingEngine, ProjectsApiDetails

console = Console()

T = TypeVar("T")


def _count(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict) and isinstance(value.get("data"), list):
        return str(len(value["data"]))
    if isinstance(value, list):
        return str(len(value))
    if isinstance(value, dict) and "total" in value:
        return str(value["total"])
    return "?"


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return escape(str(value))


def _run(ctx: click.Context, work: Callable[[MintologyClient], Awaitable[T]]) -> T:
    """Run ``work`` against a client built from the CLI context."""
    settings = ctx.obj["settings"]
    key_store = StaticTenantKeyStore(
        {settings.tenant_key_option: ctx.obj["tenant_key"]} if ctx.obj.get("tenant_key") else {}
    )

    async def runner() -> T:
        async with MintologyClient(
            settings=settings,
            key_store=key_store,
            transport=ctx.obj.get("transport"),
        ) as client:
            return await work(client)

    return asyncio.run(runner())


@click.group()
@click.version_option(version=__version__, message="%(prog)s %(version)s")
@click.option("--tenant-key", envvar="MINTOLOGY_TENANT_KEY", help="Tenant API key")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, tenant_key: Optional[str], verbose: bool):
    """Mintology CLI - projects, pricing and status from the command line."""
    ctx.ensure_object(dict)
    settings = load_settings()
    if verbose:
        setup_logging(level="DEBUG", json_format=settings.log_json)

    ctx.obj["settings"] = settings
    ctx.obj["tenant_key"] = tenant_key
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("key")
def fingerprint(key: str):
    """Show the cache fingerprint of a tenant key."""
    console.print(generate_tenant_fingerprint(key))


@cli.command()
@click.option("--refresh", is_flag=True, help="Bypass the cached snapshot")
@click.pass_context
def projects(ctx: click.Context, refresh: bool):
    """List projects with premint and token totals."""

    async def work(client: MintologyClient):
        aggregator = ProjectAggregator(client, InMemoryCache())
        return await aggregator.list_projects_with_derived_data(force_refresh=refresh)

    try:
        result = _run(ctx, work)
    except MintologyError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        ctx.exit(1)

    if result.is_err:
        console.print(f"[red]Error: {result.error.message}[/red]")
        ctx.exit(1)

    snapshot = result.value
    if not snapshot.projects:
        console.print("[dim]No projects found[/dim]")
        return

    table = Table(title=f"Projects ({snapshot.fingerprint})")
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Contract", style="green")
    table.add_column("Wallet", style="green")
    table.add_column("Premints", justify="right")
    table.add_column("Tokens", justify="right")

    for project in snapshot.projects:
        table.add_row(
            project.project_id,
            _text(project.status, "draft"),
            _text(project.contract_type),
            _text(project.wallet_type),
            _count(project.premints),
            _count(project.token),
        )

    console.print(table)


@cli.command()
@click.argument("project_id")
@click.option("--country", default=None, help="Billing country (ISO alpha-2)")
@click.pass_context
def price(ctx: click.Context, project_id: str, country: Optional[str]):
    """Show the order summary for a project."""

    async def work(client: MintologyClient):
        engine = PricingEngine(
            client.payments,
            ProjectsApiDetails(client.projects),
            settings=client.settings,
        )
        return await engine.build_order_summary(project_id, country)

    try:
        result = _run(ctx, work)
    except MintologyError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        ctx.exit(1)

    if result.is_err:
        console.print(f"[red]Error: {result.error.message}[/red]")
        ctx.exit(1)

    summary = result.value
    table = Table(title=f"Order summary: {project_id} ({summary.order.country_code})")
    table.add_column("Item")
    table.add_column("Amount", style="yellow", justify="right")
    for item in summary.line_items:
        table.add_row(item.label, item.formatted)
    table.add_row("Subtotal", summary.subtotal)
    if summary.gst_amount:
        table.add_row(summary.gst_label, summary.gst_amount)
    table.add_row("[bold]Total Price[/bold]", f"[bold]{summary.total}[/bold]")

    console.print(table)


@cli.command()
@click.argument("project_id")
@click.pass_context
def status(ctx: click.Context, project_id: str):
    """Show a project's deployment status."""

    async def work(client: MintologyClient):
        return await client.projects.status(project_id)

    try:
        result = _run(ctx, work)
    except MintologyError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        ctx.exit(1)

    if result.is_err:
        console.print(f"[red]Error: {result.error.message}[/red]")
        ctx.exit(1)

    console.print(f"{project_id}: [cyan]{result.value}[/cyan]")


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
