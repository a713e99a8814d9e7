"""Participant homes map query CLI.

Renders the participant home marker statement for a set of filters, and runs
it against a DuckDB copy of the community database.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import duckdb
import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from communitytracker.data.participant_homes.constants import DEFAULT_PAGE_LIMIT
from communitytracker.data.participant_homes.logging import configure_logging

app = typer.Typer(
    name="participant-homes",
    help="Participant home map markers - build and run venue count queries",
)
console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Warnings only"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write debug logs to this file"
    ),
) -> None:
    """Participant home map markers."""
    configure_logging(1 if verbose else -1 if quiet else 0, log_file)


@app.command("sql")
def show_sql(
    venue_id: Optional[List[str]] = typer.Option(
        None, "--venue-id", help="Venue UUID (repeatable)"
    ),
    population_id: Optional[List[str]] = typer.Option(
        None, "--population-id", help="Population UUID (repeatable)"
    ),
    role_id: Optional[List[str]] = typer.Option(
        None, "--role-id", help="Role UUID (repeatable)"
    ),
    age_cohort: Optional[List[str]] = typer.Option(
        None, "--age-cohort", help="Age cohort name, e.g. 'Youth' (repeatable)"
    ),
    start_date: Optional[datetime] = typer.Option(
        None, "--start-date", formats=DATE_FORMATS, help="Window start"
    ),
    end_date: Optional[datetime] = typer.Option(
        None, "--end-date", formats=DATE_FORMATS, help="Window end"
    ),
    bbox: Optional[str] = typer.Option(
        None, "--bbox", help="Viewport as minLat,maxLat,minLon,maxLon"
    ),
    page: int = typer.Option(1, help="Page number (1-based)"),
    limit: int = typer.Option(DEFAULT_PAGE_LIMIT, help="Markers per page"),
    reference_date: Optional[datetime] = typer.Option(
        None, "--reference-date", formats=DATE_FORMATS, help="Age cohort anchor"
    ),
) -> None:
    """Print the marker statement and its bound parameters.

    Examples:

        participant-homes sql --venue-id 7c9e6679-7425-40de-944b-e07fc1f90ae7 \\
            --start-date 2024-01-01 --end-date 2024-06-01 --bbox=-10,10,-10,10
    """
    from communitytracker.data.participant_homes.map_data import build_query_params
    from communitytracker.data.participant_homes.query_builder import (
        ParticipantHomeMarkerQueryBuilder,
    )

    try:
        params = build_query_params(
            venue_ids=venue_id,
            population_ids=population_id,
            role_ids=role_id,
            age_cohorts=age_cohort or None,
            start_date=start_date,
            end_date=end_date,
            bounding_box=_parse_bbox(bbox),
            page=page,
            limit=limit,
            reference_date=reference_date,
        )
        builder = ParticipantHomeMarkerQueryBuilder(params)
        statement = builder.build()
    except ValueError as e:
        _fail(e)

    console.print(f"[bold blue]Variant:[/bold blue] {builder.get_variant()}")
    console.print(Syntax(statement, "sql", word_wrap=True))
    console.print("\n[bold]Parameters:[/bold]")
    for i, value in enumerate(builder.get_params(), start=1):
        console.print(f"  ${i} = {value!r}")


@app.command("init-db")
def init_db(
    database: Path = typer.Option(
        ...,
        "--database",
        "-d",
        envvar="PARTICIPANT_HOMES_DATABASE",
        help="DuckDB database file",
    ),
) -> None:
    """Create the tables read by the marker query."""
    from communitytracker.data.participant_homes.map_data import MapDataService

    try:
        MapDataService(database=database).init_schema()
    except duckdb.Error as e:
        _fail(e)
    console.print(f"[green]Schema ready in {database}[/green]")


@app.command()
def markers(
    database: Path = typer.Option(
        ...,
        "--database",
        "-d",
        envvar="PARTICIPANT_HOMES_DATABASE",
        help="DuckDB database file",
    ),
    venue_id: Optional[List[str]] = typer.Option(
        None, "--venue-id", help="Venue UUID (repeatable)"
    ),
    population_id: Optional[List[str]] = typer.Option(
        None, "--population-id", help="Population UUID (repeatable)"
    ),
    role_id: Optional[List[str]] = typer.Option(
        None, "--role-id", help="Role UUID (repeatable)"
    ),
    age_cohort: Optional[List[str]] = typer.Option(
        None, "--age-cohort", help="Age cohort name (repeatable)"
    ),
    start_date: Optional[datetime] = typer.Option(
        None, "--start-date", formats=DATE_FORMATS, help="Window start"
    ),
    end_date: Optional[datetime] = typer.Option(
        None, "--end-date", formats=DATE_FORMATS, help="Window end"
    ),
    bbox: Optional[str] = typer.Option(
        None, "--bbox", help="Viewport as minLat,maxLat,minLon,maxLon"
    ),
    page: int = typer.Option(1, help="Page number (1-based)"),
    limit: int = typer.Option(DEFAULT_PAGE_LIMIT, help="Markers per page"),
    reference_date: Optional[datetime] = typer.Option(
        None, "--reference-date", formats=DATE_FORMATS, help="Age cohort anchor"
    ),
) -> None:
    """Run one page of participant home markers and print it."""
    from communitytracker.data.participant_homes.map_data import MapDataService

    try:
        result = MapDataService(database=database).get_participant_home_markers(
            venue_ids=venue_id,
            population_ids=population_id,
            role_ids=role_id,
            age_cohorts=age_cohort or None,
            start_date=start_date,
            end_date=end_date,
            bounding_box=_parse_bbox(bbox),
            page=page,
            limit=limit,
            reference_date=reference_date,
        )
    except (ValueError, duckdb.Error) as e:
        _fail(e)

    table = Table(title="Participant homes")
    table.add_column("Venue", no_wrap=True)
    table.add_column("Lat", justify="right", no_wrap=True)
    table.add_column("Lon", justify="right", no_wrap=True)
    table.add_column("Count", justify="right")
    for marker in result.data:
        table.add_row(
            marker.venue_id,
            f"{marker.latitude:.6f}",
            f"{marker.longitude:.6f}",
            str(marker.participant_count),
        )
    console.print(table)
    console.print(
        f"Page {result.page}/{result.total_pages} | "
        f"{result.total:,} venues | {result.limit} per page"
    )


def _parse_bbox(value: str | None):
    """Parse ``minLat,maxLat,minLon,maxLon`` into a BoundingBox."""
    from communitytracker.data.participant_homes.query_builder import BoundingBox

    if value is None:
        return None
    parts = value.split(",")
    if len(parts) != 4:
        raise ValueError(
            f"--bbox expects minLat,maxLat,minLon,maxLon, got {value!r}"
        )
    min_lat, max_lat, min_lon, max_lon = (float(p) for p in parts)
    return BoundingBox(min_lat, max_lat, min_lon, max_lon)


def _fail(error: Exception) -> None:
    console.print(f"[red bold]Error: {escape(str(error))}[/red bold]")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
