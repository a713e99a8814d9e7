"""Participant home markers for the map view.

Validates incoming filters, runs the marker statement on a DuckDB connection
and maps raw rows to paginated markers.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb
import pandas as pd
from loguru import logger

from communitytracker.data.participant_homes import sql
from communitytracker.data.participant_homes.age_cohorts import validate_age_cohorts
from communitytracker.data.participant_homes.constants import (
    DEFAULT_PAGE_LIMIT,
    MARKER_COLUMNS,
    MAX_PAGE_LIMIT,
    UUID_PATTERN,
)
from communitytracker.data.participant_homes.query_builder import (
    BoundingBox,
    CohortToDateRange,
    ParticipantHomeMarkerQueryBuilder,
    QueryParams,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(frozen=True)
class ParticipantHomeMarkerRow:
    """Raw result row of the marker statement."""

    venue_id: str
    latitude: Decimal
    longitude: Decimal
    participant_count: int
    total_count: int

    @classmethod
    def from_record(cls, record: Sequence) -> ParticipantHomeMarkerRow:
        venue_id, latitude, longitude, participant_count, total_count = record
        return cls(
            venue_id=str(venue_id),
            latitude=Decimal(str(latitude)),
            longitude=Decimal(str(longitude)),
            # COUNT columns come back as BIGINT
            participant_count=int(participant_count),
            total_count=int(total_count),
        )


@dataclass(frozen=True)
class ParticipantHomeMarker:
    venue_id: str
    latitude: float
    longitude: float
    participant_count: int


@dataclass(frozen=True)
class PaginatedMarkers:
    data: list[ParticipantHomeMarker]
    page: int
    limit: int
    total: int
    total_pages: int


def normalize_ids(ids: Iterable[str] | None, label: str = "id") -> tuple[str, ...]:
    """Trim, drop blanks and de-duplicate ids, rejecting non-UUID values.

    The marker statement inlines these ids verbatim, so this is the place
    malformed input must be stopped.
    """
    if not ids:
        return ()

    normalized: list[str] = []
    seen: set[str] = set()
    for raw in ids:
        value = raw.strip() if isinstance(raw, str) else raw
        if value in ("", None):
            continue
        if not isinstance(value, str) or not UUID_PATTERN.match(value):
            raise ValueError(f"Invalid {label} {raw!r}: expected a UUID")
        if value not in seen:
            seen.add(value)
            normalized.append(value)
    return tuple(normalized)


def normalize_age_cohorts(
    cohorts: Iterable[str] | None,
) -> tuple[str, ...] | None:
    """Trim cohort names, keeping unknown names (they are ignored downstream).

    None means no age filter; an empty sequence stays empty and matches
    everyone.
    """
    if cohorts is None:
        return None
    names = tuple(c.strip() for c in cohorts if c and c.strip())
    if not validate_age_cohorts(list(names)):
        logger.warning("Unrecognised age cohort in filter: {}", list(names))
    return names


def build_query_params(
    venue_ids: Iterable[str] | None = None,
    population_ids: Iterable[str] | None = None,
    role_ids: Iterable[str] | None = None,
    age_cohorts: Iterable[str] | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    bounding_box: BoundingBox | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    reference_date: datetime | None = None,
) -> QueryParams:
    """Validate raw filters and a page request into builder parameters.

    Rejects ``page`` or ``limit`` below 1 and caps ``limit`` at
    ``MAX_PAGE_LIMIT``, so ``skip`` is never negative.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    effective_limit = min(limit, MAX_PAGE_LIMIT)
    return QueryParams(
        limit=effective_limit,
        skip=(page - 1) * effective_limit,
        reference_date=reference_date or datetime.now(),
        venue_ids=normalize_ids(venue_ids, "venue id"),
        population_ids=normalize_ids(population_ids, "population id"),
        role_ids=normalize_ids(role_ids, "role id"),
        age_cohorts=normalize_age_cohorts(age_cohorts),
        start_date=start_date,
        end_date=end_date,
        bounding_box=bounding_box,
    )


class MapDataService:
    """Participant home markers backed by a DuckDB connection.

    Example:
        service = MapDataService(database="community.duckdb")
        page = service.get_participant_home_markers(
            venue_ids=[...], start_date=datetime(2024, 1, 1), page=1
        )
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection | None = None,
        database: str | Path = ":memory:",
        cohort_to_date_range: CohortToDateRange | None = None,
    ) -> None:
        self.conn = conn if conn is not None else duckdb.connect(str(database))
        self.cohort_to_date_range = cohort_to_date_range

    def init_schema(self) -> MapDataService:
        """Create the tables read by the marker query, if missing."""
        for statement in sql.CREATE_SCHEMA:
            self.conn.execute(statement)
        return self

    def get_participant_home_markers(
        self,
        venue_ids: Iterable[str] | None = None,
        population_ids: Iterable[str] | None = None,
        role_ids: Iterable[str] | None = None,
        age_cohorts: Iterable[str] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        bounding_box: BoundingBox | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
        reference_date: datetime | None = None,
    ) -> PaginatedMarkers:
        """Return one page of participant home markers grouped by venue."""
        params = build_query_params(
            venue_ids=venue_ids,
            population_ids=population_ids,
            role_ids=role_ids,
            age_cohorts=age_cohorts,
            start_date=start_date,
            end_date=end_date,
            bounding_box=bounding_box,
            page=page,
            limit=limit,
            reference_date=reference_date,
        )
        effective_limit = params.limit

        rows = self.query_rows(params)

        total = rows[0].total_count if rows else 0
        markers = [
            ParticipantHomeMarker(
                venue_id=row.venue_id,
                latitude=float(row.latitude),
                longitude=float(row.longitude),
                participant_count=row.participant_count,
            )
            for row in rows
        ]
        return PaginatedMarkers(
            data=markers,
            page=page,
            limit=effective_limit,
            total=total,
            total_pages=math.ceil(total / effective_limit),
        )

    def query_rows(self, params: QueryParams) -> list[ParticipantHomeMarkerRow]:
        """Execute the marker statement for already-validated parameters."""
        builder = self._builder(params)
        statement = builder.build()

        start = time.perf_counter()
        records = self.conn.execute(statement, builder.get_params()).fetchall()
        elapsed_ms = (time.perf_counter() - start) * 1000

        rows = [ParticipantHomeMarkerRow.from_record(r) for r in records]
        logger.debug(
            "Participant home markers query ({}) in {:.1f}ms: {} rows, total {}",
            builder.get_variant(),
            elapsed_ms,
            len(rows),
            rows[0].total_count if rows else 0,
        )
        return rows

    def to_pandas(self, params: QueryParams) -> pd.DataFrame:
        """Run the marker statement and return the raw rows as a DataFrame."""
        builder = self._builder(params)
        statement = builder.build()
        df = self.conn.execute(statement, builder.get_params()).df()
        return df[MARKER_COLUMNS]

    def _builder(self, params: QueryParams) -> ParticipantHomeMarkerQueryBuilder:
        if self.cohort_to_date_range is None:
            return ParticipantHomeMarkerQueryBuilder(params)
        return ParticipantHomeMarkerQueryBuilder(params, self.cohort_to_date_range)
