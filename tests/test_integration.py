"""Integration tests against a real community database exported to DuckDB.

These tests need a DuckDB file with the application tables and are skipped
by default. Run with:

    PARTICIPANT_HOMES_DATABASE=data/community.duckdb \\
        uv run python -m pytest tests/ -v --run-integration -m integration
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from communitytracker.data.participant_homes.map_data import MapDataService
from communitytracker.data.participant_homes.query_builder import BoundingBox

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def live_service():
    path = os.environ.get("PARTICIPANT_HOMES_DATABASE")
    if not path or not Path(path).exists():
        pytest.skip("PARTICIPANT_HOMES_DATABASE not set or missing")
    return MapDataService(database=path)


def test_pages_cover_total(live_service):
    """Walking every page returns each venue once and matches the total."""
    first = live_service.get_participant_home_markers(page=1, limit=100)
    seen = [m.venue_id for m in first.data]
    for page in range(2, first.total_pages + 1):
        result = live_service.get_participant_home_markers(page=page, limit=100)
        assert result.total == first.total
        seen.extend(m.venue_id for m in result.data)

    assert len(seen) == len(set(seen)) == first.total


def test_world_viewport_matches_unfiltered(live_service):
    """A box covering the globe excludes nothing."""
    unfiltered = live_service.get_participant_home_markers()
    world = live_service.get_participant_home_markers(
        bounding_box=BoundingBox(-90, 90, -180, 180)
    )
    assert world.total == unfiltered.total


def test_date_window_is_subset(live_service):
    """Restricting to a window never adds venues."""
    everything = live_service.get_participant_home_markers()
    windowed = live_service.get_participant_home_markers(
        start_date=datetime(2024, 1, 1), end_date=datetime(2024, 6, 30)
    )
    assert windowed.total <= everything.total
