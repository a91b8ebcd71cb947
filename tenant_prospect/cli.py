"""
Tenant Prospect CLI

Examples:
    # Basic ranking around Times Square
    tenant-prospect rank "cafe" --lat 40.7580 --lon -73.9855

    # JSON output, piped to jq
    tenant-prospect rank "bakery" --lat 40.7128 --lon -74.0060 -f json -q | jq '.[:5]'

    # Only strong prospects, saved to a file
    tenant-prospect rank "gym" --lat 40.73 --lon -73.99 --min-score 5 -o gyms.csv

    # Check configuration
    tenant-prospect check
"""

import asyncio
import csv
import io
import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .api import UNABLE_TO_LOAD, rank_prospects_async
from .config import Settings, load_config
from .export import COLUMNS, export_prospects, prospect_row
from .models import Coordinate, ProspectScore
from .sources import AuthenticationError, SourceError

# Progress to stderr, data to stdout
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, quiet: bool, debug: bool) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def format_output(
    prospects: list[ProspectScore],
    output_format: str,
    no_headers: bool = False,
) -> str:
    """Format prospects for output."""
    if output_format == "json":
        return json.dumps([p.to_dict() for p in prospects], indent=2, default=str)

    elif output_format == "jsonl":
        return "\n".join(json.dumps(p.to_dict(), default=str) for p in prospects)

    elif output_format in ("csv", "tsv"):
        delimiter = "\t" if output_format == "tsv" else ","
        output = io.StringIO()

        writer = csv.DictWriter(output, fieldnames=COLUMNS, delimiter=delimiter)

        if not no_headers:
            writer.writeheader()

        for i, p in enumerate(prospects, start=1):
            writer.writerow(prospect_row(i, p))

        return output.getvalue()

    else:
        raise ValueError(f"Unknown format: {output_format}")


def display_summary(prospects: list[ProspectScore]) -> None:
    """Display a summary table of top prospects."""
    table = Table(title="Top Prospects", show_header=True, header_style="bold magenta")

    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan", max_width=30)
    table.add_column("Score", justify="right")
    table.add_column("Chain", justify="right")
    table.add_column("News", justify="right")
    table.add_column("Reviews", justify="right")
    table.add_column("Rating", justify="right")

    for i, p in enumerate(prospects, start=1):
        # Max score is 9.0
        color = "green" if p.score >= 6 else "yellow" if p.score >= 3 else "red"

        table.add_row(
            str(i),
            p.name[:30],
            f"[{color}]{p.formatted_score}[/{color}]",
            str(p.chain_count),
            str(p.news_hits),
            str(p.candidate.review_count),
            f"{p.candidate.rating:.1f}",
        )

    console.print(table)


# ============================================================================
# CLI Group
# ============================================================================

@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx):
    """Rank nearby businesses as prospective commercial tenants."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============================================================================
# Rank Command
# ============================================================================

@cli.command()
@click.argument("category")
@click.option("--lat", "latitude", type=float, required=True, help="Latitude of search centre")
@click.option("--lon", "longitude", type=float, required=True, help="Longitude of search centre")
@click.option("-l", "--limit", type=int, default=None, help="Max prospects to output")
@click.option("-o", "--output", type=click.Path(), help="Output file (default: stdout)")
@click.option("-f", "--format", "output_format",
              type=click.Choice(["csv", "json", "jsonl", "tsv"]),
              default="csv", help="Output format")
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress, only emit data")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--no-headers", is_flag=True, help="Omit headers in CSV/TSV")
@click.option("--min-score", type=float, default=0, help="Minimum expansion score")
@click.option("--radius", type=int, help="Search radius in metres")
@click.option("--config", type=click.Path(exists=True), help="YAML config file")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def rank(
    category: str,
    latitude: float,
    longitude: float,
    limit: Optional[int],
    output: Optional[str],
    output_format: str,
    quiet: bool,
    verbose: bool,
    no_headers: bool,
    min_score: float,
    radius: Optional[int],
    config: Optional[str],
    debug: bool,
):
    """
    Rank prospective tenants for CATEGORY around a coordinate.

    Output goes to stdout by default (use -o for file).
    Progress goes to stderr (use -q to suppress).

    Examples:

        tenant-prospect rank "cafe" --lat 40.7580 --lon -73.9855

        tenant-prospect rank "bakery" --lat 40.7128 --lon -74.0060 -f json -q
    """
    setup_logging(verbose, quiet, debug)

    settings = load_config(config) if config else Settings()
    if radius:
        settings.search_radius_m = radius

    try:
        coordinate = Coordinate(latitude, longitude)
    except ValueError as e:
        raise click.BadParameter(str(e))

    try:
        if quiet:
            prospects = asyncio.run(rank_prospects_async(category, coordinate, settings))
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(f"[cyan]Ranking {category} prospects...", total=None)
                prospects = asyncio.run(rank_prospects_async(category, coordinate, settings))
    except AuthenticationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("[yellow]Set YELP_API_KEY and NEWS_API_KEY (or add them to .env)[/yellow]")
        sys.exit(1)
    except SourceError as e:
        logger.debug("Ranking failed: %s", e)
        console.print(f"[red]{UNABLE_TO_LOAD}.[/red] {e}")
        console.print("[dim]Check your connection and try again.[/dim]")
        sys.exit(1)

    if min_score:
        prospects = [p for p in prospects if p.score >= min_score]
    if limit is not None:
        prospects = prospects[:limit]

    if not quiet:
        console.print(f"[green]Prospects:[/green] {len(prospects)}")

    if output:
        output_path = export_prospects(prospects, output, output_format, no_headers)
        if not quiet:
            console.print(f"\n[green]Saved:[/green] {output_path}")
            display_summary(prospects[:10])
    else:
        click.echo(format_output(prospects, output_format, no_headers))

    # Exit code: 0 if results, 1 if empty
    sys.exit(0 if prospects else 1)


# ============================================================================
# Check Command
# ============================================================================

@cli.command()
def check():
    """Check configuration."""
    settings = Settings()

    for label, key in (("YELP_API_KEY", settings.yelp_api_key), ("NEWS_API_KEY", settings.news_api_key)):
        if key:
            click.echo(f"✓ {label}: {key[:6]}...")
        else:
            click.echo(f"✗ {label}: not set")

    click.echo(f"  Chain size area: {settings.chain_location} ({settings.chain_radius_m} m)")
    click.echo(f"  News window: {settings.news_window_days} days")

    sys.exit(0 if settings.yelp_api_key and settings.news_api_key else 1)


# ============================================================================
# Version Command
# ============================================================================

@cli.command()
def version():
    """Show version info."""
    click.echo(f"tenant-prospect {__version__}")


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    cli()
