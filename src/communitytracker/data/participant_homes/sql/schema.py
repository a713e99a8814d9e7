"""Table definitions read by the marker query.

Column names follow the application database (quoted camelCase), so the same
statements run unchanged on PostgreSQL and DuckDB.
"""

__all__ = [
    "CREATE_ADDRESS_HISTORY",
    "CREATE_ASSIGNMENTS",
    "CREATE_PARTICIPANT_POPULATIONS",
    "CREATE_PARTICIPANTS",
    "CREATE_SCHEMA",
    "CREATE_VENUES",
]

CREATE_VENUES = """
CREATE TABLE IF NOT EXISTS venues (
    id VARCHAR PRIMARY KEY,
    name VARCHAR NOT NULL,
    address VARCHAR,
    latitude DECIMAL(10, 8),
    longitude DECIMAL(11, 8)
)
"""

CREATE_PARTICIPANTS = """
CREATE TABLE IF NOT EXISTS participants (
    id VARCHAR PRIMARY KEY,
    name VARCHAR NOT NULL,
    "dateOfBirth" DATE
)
"""

# One row per move; the row with the latest effectiveFrom is the current home.
# A NULL effectiveFrom means the start of the address is unknown.
CREATE_ADDRESS_HISTORY = """
CREATE TABLE IF NOT EXISTS participant_address_history (
    id VARCHAR PRIMARY KEY,
    "participantId" VARCHAR NOT NULL,
    "venueId" VARCHAR NOT NULL,
    "effectiveFrom" TIMESTAMP
)
"""

CREATE_ASSIGNMENTS = """
CREATE TABLE IF NOT EXISTS assignments (
    id VARCHAR PRIMARY KEY,
    "activityId" VARCHAR NOT NULL,
    "participantId" VARCHAR NOT NULL,
    "roleId" VARCHAR NOT NULL
)
"""

CREATE_PARTICIPANT_POPULATIONS = """
CREATE TABLE IF NOT EXISTS participant_populations (
    "participantId" VARCHAR NOT NULL,
    "populationId" VARCHAR NOT NULL
)
"""

CREATE_SCHEMA = [
    CREATE_VENUES,
    CREATE_PARTICIPANTS,
    CREATE_ADDRESS_HISTORY,
    CREATE_ASSIGNMENTS,
    CREATE_PARTICIPANT_POPULATIONS,
]
