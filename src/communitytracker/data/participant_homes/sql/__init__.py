"""SQL templates for participant home map queries.

All SQL text is centralized here for maintainability.
Templates use string formatting with named placeholders.

Submodules are grouped by purpose; wildcard re-exports preserve
the flat ``sql.TEMPLATE_NAME`` access pattern for all consumers.
"""

from communitytracker.data.participant_homes.sql.markers import *  # noqa: F403
from communitytracker.data.participant_homes.sql.schema import *  # noqa: F403
