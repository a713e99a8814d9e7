"""Participant home map queries for the community activity tracker."""

from communitytracker.data.participant_homes.logging import configure_logging
from communitytracker.data.participant_homes.map_data import (
    MapDataService,
    PaginatedMarkers,
    ParticipantHomeMarker,
    ParticipantHomeMarkerRow,
)
from communitytracker.data.participant_homes.query_builder import (
    BoundingBox,
    ParticipantHomeMarkerQueryBuilder,
    QueryParams,
)

__all__ = [
    "BoundingBox",
    "MapDataService",
    "PaginatedMarkers",
    "ParticipantHomeMarker",
    "ParticipantHomeMarkerQueryBuilder",
    "ParticipantHomeMarkerRow",
    "QueryParams",
    "configure_logging",
]
