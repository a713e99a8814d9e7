"""CTE and main-query templates for participant home markers.

Placeholders written as ``{name}`` are filled by the query builder; bound
values appear as ``$n`` positional parameters produced by its binder.
"""

__all__ = [
    "ACTIVE_ADDRESSES",
    "ACTIVE_NOT_SUPERSEDED",
    "ACTIVE_STARTED_IN_TIME",
    "CURRENT_ADDRESSES",
    "FILTERED_IDS",
    "JOIN_ASSIGNMENTS",
    "JOIN_FILTERED_VENUES",
    "JOIN_PARTICIPANTS",
    "MARKER_STATEMENT",
    "PARTICIPANT_HOME_MARKERS",
    "POPULATION_EXISTS",
]

# Inline identifier list, one VALUES row per id.
# {id_rows} = "('uuid-1'), ('uuid-2'), ..."
FILTERED_IDS = """\
    SELECT id::text AS id FROM (VALUES {id_rows}) AS t(id)"""

JOIN_FILTERED_VENUES = """
    JOIN filtered_venues fv ON v.id = fv.id"""

JOIN_ASSIGNMENTS = """
    JOIN assignments asn ON asn."participantId" = pah."participantId\""""

JOIN_PARTICIPANTS = """
    JOIN participants p ON p.id = pah."participantId\""""

# Most recent address per participant. NULL effectiveFrom sorts after any
# dated row, so an undated address only wins when nothing newer is known.
CURRENT_ADDRESSES = """\
    SELECT DISTINCT ON (pah."participantId")
        pah."participantId",
        pah."venueId",
        pah."effectiveFrom",
        v.latitude,
        v.longitude
    FROM participant_address_history pah
    JOIN venues v ON pah."venueId" = v.id{joins}
    WHERE {conditions}
    ORDER BY pah."participantId", pah."effectiveFrom" DESC NULLS LAST"""

POPULATION_EXISTS = """EXISTS (
        SELECT 1 FROM participant_populations pp
        JOIN filtered_populations fp ON pp."populationId" = fp.id
        WHERE pp."participantId" = pah."participantId"
    )"""

ACTIVE_ADDRESSES = """\
    SELECT
        ca."participantId",
        ca."venueId",
        ca.latitude,
        ca.longitude
    FROM current_addresses ca
    WHERE {conditions}"""

# Address had started by the end of the window (undated = always active)
ACTIVE_STARTED_IN_TIME = (
    '(ca."effectiveFrom" IS NULL OR ca."effectiveFrom" <= {end_date})'
)

# No newer address had taken over by the start of the window
ACTIVE_NOT_SUPERSEDED = """NOT EXISTS (
        SELECT 1 FROM participant_address_history pah2
        WHERE pah2."participantId" = ca."participantId"
          AND (
              (ca."effectiveFrom" IS NULL AND pah2."effectiveFrom" IS NOT NULL)
              OR (pah2."effectiveFrom" > ca."effectiveFrom")
          )
          AND pah2."effectiveFrom" <= {start_date}
    )"""

# Per-venue distinct participant counts, with the total number of venue rows
# repeated on every row so one query serves pagination.
PARTICIPANT_HOME_MARKERS = """\
SELECT
    {source}."venueId"::text AS "venueId",
    {source}.latitude,
    {source}.longitude,
    COUNT(DISTINCT {source}."participantId") AS "participantCount",
    COUNT(*) OVER() AS total_count
FROM {source}
GROUP BY {source}."venueId", {source}.latitude, {source}.longitude
ORDER BY {source}."venueId"
LIMIT {limit} OFFSET {offset}"""

MARKER_STATEMENT = """\
WITH {ctes}
{main_query}"""
