"""Query builder for participant home map markers.

Assembles one CTE-based statement that counts, per venue, the distinct
participants whose most recent known address matches the requested filters:

1. ``filtered_venues`` (optional): inline venue id allow-list
2. ``filtered_populations`` (optional): inline population id allow-list
3. ``current_addresses``: latest address row per participant
4. ``active_addresses`` (optional): current addresses active in a date window
5. main query: grouped by venue, with a window total for pagination

Identifier lists are inlined as quoted literals instead of bound parameters,
which keeps statements with tens of thousands of ids under the database's
bind variable limit. Callers must pass canonical UUIDs only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Optional

from loguru import logger

from communitytracker.data.participant_homes import sql
from communitytracker.data.participant_homes.age_cohorts import (
    DateRange,
    cohort_to_date_range,
)
from communitytracker.data.participant_homes.constants import (
    AGE_COHORT_UNKNOWN,
    UUID_PATTERN,
)

# (cohort name, reference date) -> date-of-birth bounds, None if unconvertible
CohortToDateRange = Callable[[str, date], Optional[DateRange]]


@dataclass(frozen=True)
class BoundingBox:
    """Map viewport in decimal degrees.

    ``min_lon > max_lon`` means the box wraps across the antimeridian.
    """

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_lon > self.max_lon


@dataclass(frozen=True)
class QueryParams:
    """Filters and pagination window for one marker query."""

    limit: int
    skip: int
    reference_date: date | datetime
    venue_ids: tuple[str, ...] = ()
    population_ids: tuple[str, ...] = ()
    role_ids: tuple[str, ...] = ()
    # None: no age filter. Empty: filter present but matches everyone (1=1)
    age_cohorts: tuple[str, ...] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    bounding_box: BoundingBox | None = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


@dataclass
class ParameterBinder:
    """Positional parameter list for ``$n`` placeholders."""

    params: list[Any] = field(default_factory=list)
    index: int = 1

    def bind(self, value: Any) -> str:
        """Append a value and return its placeholder."""
        self.params.append(value)
        placeholder = f"${self.index}"
        self.index += 1
        return placeholder


@dataclass(frozen=True)
class CteFragment:
    name: str
    body: str

    def render(self) -> str:
        return f"{self.name} AS (\n{self.body}\n)"


def trusted_literal(value: str) -> str:
    """Quote an identifier for inlining into SQL text.

    Only UUIDs are accepted: anything else would bypass parameter escaping.
    """
    if not isinstance(value, str) or not UUID_PATTERN.match(value):
        raise ValueError(f"Refusing to inline non-UUID identifier {value!r}")
    return f"'{value}'"


def literal_list(values: tuple[str, ...] | list[str]) -> str:
    """Comma-separated quoted UUIDs, e.g. for an ``IN (...)`` list."""
    return ", ".join(trusted_literal(v) for v in values)


class ParticipantHomeMarkerQueryBuilder:
    """Build the participant home marker statement and its parameters.

    A builder is single-use: ``build()`` accumulates bound parameters, so a
    second call on the same instance raises ``RuntimeError``.

    Example:
        builder = ParticipantHomeMarkerQueryBuilder(
            QueryParams(limit=100, skip=0, reference_date=datetime.now())
        )
        statement = builder.build()
        rows = conn.execute(statement, builder.get_params()).fetchall()
    """

    def __init__(
        self,
        query_params: QueryParams,
        cohort_to_date_range: CohortToDateRange = cohort_to_date_range,
    ) -> None:
        self.query_params = query_params
        self.cohort_to_date_range = cohort_to_date_range
        self._binder = ParameterBinder()
        self._built = False

    def build(self) -> str:
        """Return the complete SQL statement."""
        if self._built:
            raise RuntimeError(
                "ParticipantHomeMarkerQueryBuilder.build() already called; "
                "create a new builder for each query"
            )
        self._built = True

        # Order matters: parameters are numbered as each fragment is built
        fragment_builders = [
            self._filtered_venues_cte,
            self._filtered_populations_cte,
            self._current_addresses_cte,
            self._active_addresses_cte,
        ]
        ctes = []
        for build_fragment in fragment_builders:
            fragment = build_fragment()
            if fragment is not None:
                ctes.append(fragment)

        statement = sql.MARKER_STATEMENT.format(
            ctes=",\n".join(cte.render() for cte in ctes),
            main_query=self._main_query(ctes[-1].name),
        )

        logger.debug(
            "Built participant home marker query ({}): {} CTEs, {} params",
            self.get_variant(),
            len(ctes),
            len(self._binder.params),
        )
        return statement

    def get_params(self) -> list[Any]:
        """Bound values, in ``$1..$n`` order."""
        return list(self._binder.params)

    def get_variant(self) -> str:
        """Short tag of the active filters, for logging only."""
        qp = self.query_params
        features = []
        if qp.venue_ids:
            features.append("geographic")
        if qp.population_ids:
            features.append("population")
        if qp.role_ids:
            features.append("role")
        if qp.age_cohorts:
            features.append("age")
        if qp.has_date_range:
            features.append("temporal")
        if qp.bounding_box:
            features.append("coordinates")
        return "+".join(features) if features else "base"

    # -------------------------------------------------------------------------
    # CTE fragments
    # -------------------------------------------------------------------------

    def _filtered_venues_cte(self) -> CteFragment | None:
        return self._filtered_ids_cte("filtered_venues", self.query_params.venue_ids)

    def _filtered_populations_cte(self) -> CteFragment | None:
        return self._filtered_ids_cte(
            "filtered_populations", self.query_params.population_ids
        )

    @staticmethod
    def _filtered_ids_cte(name: str, ids: tuple[str, ...]) -> CteFragment | None:
        if not ids:
            return None
        id_rows = ", ".join(f"({trusted_literal(i)})" for i in ids)
        return CteFragment(name, sql.FILTERED_IDS.format(id_rows=id_rows))

    def _current_addresses_cte(self) -> CteFragment:
        qp = self.query_params

        joins = []
        if qp.venue_ids:
            joins.append(sql.JOIN_FILTERED_VENUES)
        if qp.role_ids:
            joins.append(sql.JOIN_ASSIGNMENTS)
        if qp.age_cohorts is not None:
            joins.append(sql.JOIN_PARTICIPANTS)

        conditions = ["v.latitude IS NOT NULL", "v.longitude IS NOT NULL"]
        if qp.bounding_box:
            conditions.extend(self._coordinate_conditions(qp.bounding_box))
        if qp.role_ids:
            conditions.append(f'asn."roleId" IN ({literal_list(qp.role_ids)})')
        if qp.age_cohorts is not None:
            conditions.append(self._age_cohort_condition(qp.age_cohorts))
        if qp.population_ids:
            conditions.append(sql.POPULATION_EXISTS)

        body = sql.CURRENT_ADDRESSES.format(
            joins="".join(joins),
            conditions="\n      AND ".join(conditions),
        )
        return CteFragment("current_addresses", body)

    def _active_addresses_cte(self) -> CteFragment | None:
        """Keep current addresses that were home at some point in the window.

        An address counts when it had started by ``end_date`` and no newer
        address had superseded it by ``start_date``.
        """
        qp = self.query_params
        if not qp.has_date_range:
            return None

        # end_date is bound first when both are present
        conditions = []
        if qp.end_date is not None:
            conditions.append(
                sql.ACTIVE_STARTED_IN_TIME.format(
                    end_date=self._binder.bind(qp.end_date)
                )
            )
        if qp.start_date is not None:
            conditions.append(
                sql.ACTIVE_NOT_SUPERSEDED.format(
                    start_date=self._binder.bind(qp.start_date)
                )
            )

        body = sql.ACTIVE_ADDRESSES.format(
            conditions="\n      AND ".join(conditions)
        )
        return CteFragment("active_addresses", body)

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def _coordinate_conditions(self, box: BoundingBox) -> list[str]:
        bind = self._binder.bind
        conditions = [
            f"v.latitude >= {bind(box.min_lat)}",
            f"v.latitude <= {bind(box.max_lat)}",
        ]

        min_lon = bind(box.min_lon)
        max_lon = bind(box.max_lon)
        if box.crosses_antimeridian:
            conditions.append(
                f"(v.longitude >= {min_lon} OR v.longitude <= {max_lon})"
            )
        else:
            conditions.append(f"v.longitude >= {min_lon}")
            conditions.append(f"v.longitude <= {max_lon}")
        return conditions

    def _age_cohort_condition(self, cohorts: tuple[str, ...]) -> str:
        """OR of date-of-birth ranges, one per cohort.

        Falls back to ``1=1`` when no cohort yields a predicate, so a bad
        cohort name never hides every participant.
        """
        bind = self._binder.bind
        reference_date = self.query_params.reference_date
        column = 'p."dateOfBirth"'
        predicates = []

        for cohort in cohorts:
            if cohort == AGE_COHORT_UNKNOWN:
                predicates.append(f"{column} IS NULL")
                continue

            date_range = self.cohort_to_date_range(cohort, reference_date)
            if date_range is None:
                continue

            if date_range.min is not None and date_range.max is not None:
                predicates.append(
                    f"({column} >= {bind(date_range.min)} "
                    f"AND {column} < {bind(date_range.max)})"
                )
            elif date_range.min is not None:
                predicates.append(f"{column} > {bind(date_range.min)}")
            elif date_range.max is not None:
                predicates.append(f"{column} < {bind(date_range.max)}")

        if not predicates:
            return "1=1"
        if len(predicates) == 1:
            return predicates[0]
        return "(" + " OR ".join(predicates) + ")"

    # -------------------------------------------------------------------------
    # Main query
    # -------------------------------------------------------------------------

    def _main_query(self, source: str) -> str:
        limit = self._binder.bind(self.query_params.limit)
        offset = self._binder.bind(self.query_params.skip)
        return sql.PARTICIPANT_HOME_MARKERS.format(
            source=source, limit=limit, offset=offset
        )
