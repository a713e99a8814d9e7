"""Constants for participant home map queries."""

import re

# Age cohort names as exposed by the participants API
AGE_COHORT_CHILD = "Child"
AGE_COHORT_JUNIOR_YOUTH = "Junior Youth"
AGE_COHORT_YOUTH = "Youth"
AGE_COHORT_YOUNG_ADULT = "Young Adult"
AGE_COHORT_ADULT = "Adult"
AGE_COHORT_UNKNOWN = "Unknown"

AGE_COHORTS = [
    AGE_COHORT_CHILD,
    AGE_COHORT_JUNIOR_YOUTH,
    AGE_COHORT_YOUTH,
    AGE_COHORT_YOUNG_ADULT,
    AGE_COHORT_ADULT,
    AGE_COHORT_UNKNOWN,
]

# Cohort boundaries in completed years: [lower, upper)
# None means open-ended on that side.
AGE_COHORT_BOUNDS = {
    AGE_COHORT_CHILD: (None, 11),
    AGE_COHORT_JUNIOR_YOUTH: (11, 15),
    AGE_COHORT_YOUTH: (15, 21),
    AGE_COHORT_YOUNG_ADULT: (21, 30),
    AGE_COHORT_ADULT: (30, None),
}

# Pagination
DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 100

# Identifiers are inlined into SQL text, so only canonical UUIDs are accepted
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Output columns of the marker query, in SQL output order
MARKER_COLUMNS = [
    "venueId",
    "latitude",
    "longitude",
    "participantCount",
    "total_count",
]
