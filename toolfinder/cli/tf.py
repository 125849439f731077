#!/usr/bin/env python3
"""
Command line front end for the toolfinder search engine.

Usage:
    toolfinder search "query"     - Ranked utilities for a query
    toolfinder suggest "query"    - Live-typing suggestions
    toolfinder use ID             - Mark a utility as used
    toolfinder favorite ID        - Toggle a favorite
    toolfinder recent             - Recently used utilities
    toolfinder favorites          - Favorite utilities
    toolfinder categories         - Categories and their utilities
    toolfinder history clear      - Forget recents, favorites and searches
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..engine.bus import Event, EventBus
from ..engine.categories import all_categories
from ..engine.config import Config
from ..engine.controller import SearchController
from ..engine.errors import CatalogError
from ..engine.highlight import highlight
from ..engine.main import build_controller
from ..engine.models import SuggestionType
from ..engine.personalization import format_time_since

console = Console()


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def get_controller(ctx: click.Context) -> SearchController:
    """Build the controller on first use and keep it on the context."""
    if ctx.obj.get("controller") is None:
        # Verbose runs report each settled search through the event bus
        event_bus = EventBus() if ctx.obj.get("verbose") else None
        try:
            ctx.obj["controller"] = build_controller(ctx.obj["config"], event_bus=event_bus)
        except CatalogError as e:
            console.print(f"[red]Cannot load catalog:[/red] {e}")
            ctx.exit(1)
    return ctx.obj["controller"]


def warn_if_memory_only(controller: SearchController) -> None:
    if not controller.store.persistent:
        console.print("[yellow]Storage unavailable, changes are kept in memory only[/yellow]")


def highlighted(text: str, query: str) -> Text:
    rendered = Text()
    for segment, is_match in highlight(text, query):
        rendered.append(segment, style="bold yellow" if is_match else None)
    return rendered


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, path_type=Path),
              help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging and search timings")
@click.pass_context
def cli(ctx, config_path: Optional[Path], verbose: bool):
    """toolfinder - search the utility catalog."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config.load_or_default(config_path)
    ctx.obj["verbose"] = verbose
    ctx.obj.setdefault("controller", None)


@cli.command()
@click.argument("query")
@click.option("--limit", "-l", default=10, help="Max results")
@click.pass_context
def search(ctx, query: str, limit: int):
    """Search for utilities."""
    controller = get_controller(ctx)
    asyncio.run(run_search(controller, query))
    if controller.recent_searches is not None:
        controller.recent_searches.add(query)
    display_results(controller, query, limit)


async def run_search(controller: SearchController, query: str, live: bool = False) -> None:
    """Submit a query and wait for the debounced evaluation."""
    bus = controller.event_bus

    def report(event: Event) -> None:
        data = event.data
        console.print(
            f"[dim]{data['query']!r} settled in {data['latency_ms']:.1f}ms: "
            f"{data['result_count']} results, {data['suggestion_count']} suggestions[/dim]"
        )

    if bus is not None:
        bus.subscribe("search.settled", report)
        await bus.start()

    try:
        if live:
            controller.handle_live_search(query)
        else:
            controller.perform_search(query)
        await controller.wait_until_settled()
    finally:
        if bus is not None:
            await bus.stop()
            bus.unsubscribe("search.settled", report)
            logger.debug(f"Event bus stats: {bus.get_stats()}")


def display_results(controller: SearchController, query: str, limit: int) -> None:
    """Display search results in a table."""
    results = controller.results[:limit]

    if not results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(title=f"Search Results for '{query}'")
    table.add_column("Utility", style="cyan", no_wrap=False)
    table.add_column("Category", style="magenta")
    table.add_column("Score", justify="right")
    table.add_column("Matched", style="dim")
    table.add_column("Description", no_wrap=False)

    favorite_ids = {u.id for u in controller.favorites}
    for r in results:
        name = highlighted(r.utility.name, query)
        if r.utility.id in favorite_ids:
            name.append(" ★", style="yellow")
        table.add_row(
            name,
            r.utility.category,
            f"{r.relevance_score:.2f}",
            ", ".join(sorted(r.matched_fields)),
            highlighted(r.utility.description, query)
        )

    console.print(table)


@cli.command()
@click.argument("query")
@click.pass_context
def suggest(ctx, query: str):
    """Show live-typing suggestions for a partial query."""
    controller = get_controller(ctx)
    asyncio.run(run_search(controller, query, live=True))

    suggestions = controller.suggestions
    if not suggestions:
        console.print("[yellow]No suggestions[/yellow]")
        return

    colors = {
        SuggestionType.UTILITY: "cyan",
        SuggestionType.CATEGORY: "magenta",
        SuggestionType.KEYWORD: "green",
    }
    for i, s in enumerate(suggestions, 1):
        color = colors[s.type]
        console.print(f"{i}. [{color}]{s.type.value.upper()}[/{color}]: {s.text}")


@cli.command()
@click.argument("utility_id")
@click.pass_context
def use(ctx, utility_id: str):
    """Mark a utility as used."""
    controller = get_controller(ctx)
    utility = controller.catalog.get(utility_id)
    if utility is None:
        console.print(f"[red]Unknown utility:[/red] {utility_id}")
        ctx.exit(1)

    controller.record_use(utility_id)
    console.print(f"[green]✓[/green] {utility.name} -> {utility.route}")
    warn_if_memory_only(controller)


@cli.command()
@click.argument("utility_id")
@click.pass_context
def favorite(ctx, utility_id: str):
    """Toggle a utility's favorite status."""
    controller = get_controller(ctx)
    utility = controller.catalog.get(utility_id)
    if utility is None:
        console.print(f"[red]Unknown utility:[/red] {utility_id}")
        ctx.exit(1)

    if controller.toggle_favorite(utility_id):
        console.print(f"[yellow]★[/yellow] Added {utility.name} to favorites")
    else:
        console.print(f"Removed {utility.name} from favorites")
    warn_if_memory_only(controller)


@cli.command()
@click.pass_context
def recent(ctx):
    """List recently used utilities."""
    controller = get_controller(ctx)
    entries = {e.utility_id: e for e in controller.store.recent_entries()}
    utilities = controller.recently_used

    if not utilities:
        console.print("[green]No recently used utilities[/green]")
        return

    table = Table(title="Recently Used")
    table.add_column("Utility", style="cyan")
    table.add_column("Last used")
    table.add_column("Uses", justify="right")
    for utility in utilities:
        entry = entries[utility.id]
        table.add_row(utility.name, format_time_since(entry.last_used_at), str(entry.use_count))
    console.print(table)


@cli.command()
@click.pass_context
def favorites(ctx):
    """List favorite utilities."""
    controller = get_controller(ctx)
    utilities = controller.favorites

    if not utilities:
        console.print("[green]No favorites yet[/green]")
        return

    for utility in utilities:
        console.print(f"[yellow]★[/yellow] {utility.name} [dim]({utility.id})[/dim]")


@cli.command()
@click.pass_context
def categories(ctx):
    """List categories with their utility counts."""
    controller = get_controller(ctx)

    table = Table(title="Categories")
    table.add_column("Category", style="magenta")
    table.add_column("Utilities", justify="right")
    table.add_column("Description", no_wrap=False)
    for category in all_categories():
        count = len(controller.catalog.by_category(category.id))
        table.add_row(category.name, str(count), category.description)
    console.print(table)


@cli.group()
def history():
    """Manage search and usage history."""
    pass


@history.command(name="clear")
@click.confirmation_option(prompt="Forget recents, favorites and recent searches?")
@click.pass_context
def clear_history(ctx):
    """Clear recents, favorites and recent searches."""
    controller = get_controller(ctx)
    controller.clear_history()
    console.print("[green]History cleared[/green]")
    warn_if_memory_only(controller)


@history.command(name="searches")
@click.pass_context
def recent_searches(ctx):
    """Show recent search queries."""
    controller = get_controller(ctx)
    queries = controller.recent_searches.get() if controller.recent_searches else []

    if not queries:
        console.print("[green]No recent searches[/green]")
        return

    for query in queries:
        console.print(f"  • {query}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
