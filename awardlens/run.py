"""Command-line entry point for AwardLens."""

import functools
import json
import logging
import sys
from datetime import datetime
from typing import Any, Callable, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import settings
from .explorer import ContractExplorer
from .filters import DATE_PRESETS, FilterState
from .ranking import SORT_CHOICES
from .soda_client import FetchError
from .utils import format_currency, format_number, truncate

console = Console()
err_console = Console(stderr=True)


# Configure logging
def setup_logging(level: str, json_lines: Optional[bool] = None) -> None:
    """Set up logging with Rich handler or JSON lines."""
    log_level = getattr(logging, level.upper())
    use_json = settings.log_json if json_lines is None else json_lines
    if use_json:

        class JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
                    "message": record.getMessage(),
                    "name": record.name,
                }
                return json.dumps(payload)

        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=log_level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=log_level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
            force=True,
        )


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def build_filter_state(
    start_date: Optional[str],
    end_date: Optional[str],
    preset: Optional[str],
    min_amount: float,
    search: str,
    vendors: Tuple[str, ...],
    agencies: Tuple[str, ...],
    sort_by: str,
) -> FilterState:
    """Translate CLI options into a FilterState snapshot."""
    state = FilterState.reset(settings.default_start_date)
    if preset:
        state = state.with_preset(preset, default_start=settings.default_start_date)
    if start_date:
        state = state.replace(start_date=start_date, active_preset=None)
    if end_date:
        state = state.replace(end_date=end_date, active_preset=None)
    return state.replace(
        min_amount=min_amount,
        search_query=search or "",
        selected_vendors=frozenset(vendors),
        selected_agencies=frozenset(agencies),
        sort_by=sort_by,
    )


def filter_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Shared filter options; passes a ready ContractExplorer as ``explorer``."""

    @click.option(
        "--start-date",
        type=click.DateTime(formats=[DATE_FORMAT]),
        default=None,
        help="Earliest start date (YYYY-MM-DD)",
    )
    @click.option(
        "--end-date",
        type=click.DateTime(formats=[DATE_FORMAT]),
        default=None,
        help="Latest start date (YYYY-MM-DD)",
    )
    @click.option("--preset", type=click.Choice(DATE_PRESETS), default=None)
    @click.option("--min-amount", default=0.0, type=float, show_default=True)
    @click.option("--search", default="", help="Case-insensitive text search")
    @click.option("--vendor", "vendors", multiple=True, help="Vendor (repeatable)")
    @click.option("--agency", "agencies", multiple=True, help="Agency (repeatable)")
    @click.option(
        "--sort", "sort_by", type=click.Choice(SORT_CHOICES), default="amount-desc",
        show_default=True,
    )
    @functools.wraps(func)
    def wrapper(
        start_date: Optional[datetime],
        end_date: Optional[datetime],
        preset: Optional[str],
        min_amount: float,
        search: str,
        vendors: Tuple[str, ...],
        agencies: Tuple[str, ...],
        sort_by: str,
        **kwargs: Any,
    ) -> Any:
        state = build_filter_state(
            start_date.date().isoformat() if start_date else None,
            end_date.date().isoformat() if end_date else None,
            preset,
            min_amount,
            search,
            vendors,
            agencies,
            sort_by,
        )
        explorer = ContractExplorer(filters=state)
        try:
            try:
                explorer.refresh()
            except FetchError as e:
                console.print(f"[red]❌ Failed to load data:[/red] {e}")
                sys.exit(1)
            return func(explorer=explorer, **kwargs)
        finally:
            explorer.client.close()

    return wrapper


@click.group()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Set logging level",
)
@click.option("--json-logs", is_flag=True, default=False, help="Log as JSON lines")
def main(log_level: str, json_logs: bool) -> None:
    """Explore NYC contract awards by vendor and agency."""
    settings.log_level = log_level
    setup_logging(settings.log_level, json_lines=json_logs or None)


@main.command()
@filter_options
def summary(explorer: ContractExplorer) -> None:
    """Show contract count and total amount for the filtered set."""
    stats = explorer.stats()
    console.print(
        f"[bold]{format_number(stats.contracts)}[/bold] contracts, "
        f"[bold]{format_currency(stats.total_amount)}[/bold] total"
    )


@main.command()
@filter_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON")
@click.option("--contracts", is_flag=True, default=False, help="Include contracts")
def flow(explorer: ContractExplorer, as_json: bool, contracts: bool) -> None:
    """Show vendor → agency flows (heaviest links first)."""
    graph = explorer.flow_view()
    if as_json:
        click.echo(json.dumps(graph.to_dict(include_contracts=contracts)))
        return
    if graph.is_empty:
        console.print("[yellow]No contracts match the current filters.[/yellow]")
        return

    table = Table(title="Vendor → Agency")
    table.add_column("Vendor")
    table.add_column("Agency")
    table.add_column("Amount", justify="right")
    table.add_column("Contracts", justify="right")
    for link in graph.links:
        table.add_row(
            truncate(link.vendor, 30),
            truncate(link.agency, 30),
            format_currency(link.value),
            format_number(link.count),
        )
    console.print(table)


@main.command()
@filter_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON")
def matrix(explorer: ContractExplorer, as_json: bool) -> None:
    """Show the vendor × agency matrix."""
    grid = explorer.matrix_view()
    if as_json:
        click.echo(json.dumps(grid.to_dict()))
        return
    if grid.is_empty:
        console.print("[yellow]No contracts match the current filters.[/yellow]")
        return

    table = Table(title="Vendor / Agency")
    table.add_column("Vendor")
    for agency in grid.agencies:
        table.add_column(truncate(agency, 20), justify="right")
    table.add_column("Total", justify="right", style="bold")

    for vendor, row, total in zip(grid.vendors, grid.cells, grid.vendor_totals):
        table.add_row(
            truncate(vendor, 30),
            *[format_currency(c.amount) if c.amount > 0 else "-" for c in row],
            format_currency(total),
        )
    table.add_row(
        "Total",
        *[format_currency(t) for t in grid.agency_totals],
        format_currency(grid.grand_total),
        style="bold",
    )
    console.print(table)


@main.command()
@filter_options
def options(explorer: ContractExplorer) -> None:
    """List vendors and agencies available for filtering."""
    click.echo(json.dumps(explorer.filter_options().to_dict()))


if __name__ == "__main__":
    main()
