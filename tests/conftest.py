"""Pytest configuration and fixtures."""

from datetime import datetime

import pytest

# Venues
VENUE_CITY = "00000000-0000-4000-8000-000000000001"  # (10, 10)
VENUE_WEST_OF_SEAM = "00000000-0000-4000-8000-000000000002"  # (-5, 175)
VENUE_EAST_OF_SEAM = "00000000-0000-4000-8000-000000000003"  # (-5, -175)
VENUE_NOT_GEOCODED = "00000000-0000-4000-8000-000000000004"

# Participants
CHILD = "00000000-0000-4000-8000-000000000101"
YOUTH = "00000000-0000-4000-8000-000000000102"
MOVER = "00000000-0000-4000-8000-000000000103"  # no date of birth
ADULT = "00000000-0000-4000-8000-000000000104"
UNGEOCODED_ADULT = "00000000-0000-4000-8000-000000000105"

POPULATION = "00000000-0000-4000-8000-000000000201"
ROLE_TUTOR = "00000000-0000-4000-8000-000000000301"
ROLE_HOST = "00000000-0000-4000-8000-000000000302"

REFERENCE_DATE = datetime(2024, 6, 1)


def pytest_addoption(parser):
    """Add --run-integration CLI option."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (needs PARTICIPANT_HOMES_DATABASE)",
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests unless --run-integration is passed."""
    if not config.getoption("--run-integration"):
        skip_marker = pytest.mark.skip(reason="need --run-integration to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_marker)


@pytest.fixture
def service():
    """MapDataService on an empty in-memory database with the schema."""
    from communitytracker.data.participant_homes.map_data import MapDataService

    return MapDataService().init_schema()


@pytest.fixture
def seeded_service(service):
    """MapDataService with a small community seeded.

    Current homes (unfiltered): CHILD, YOUTH, MOVER -> VENUE_CITY;
    ADULT -> VENUE_EAST_OF_SEAM; UNGEOCODED_ADULT -> VENUE_NOT_GEOCODED.
    MOVER lived at VENUE_WEST_OF_SEAM from 2019 until moving on 2024-03-01.
    """
    conn = service.conn
    conn.execute(f"""
        INSERT INTO venues VALUES
            ('{VENUE_CITY}', 'Community Centre', '1 Main St', 10.0, 10.0),
            ('{VENUE_WEST_OF_SEAM}', 'Island Hall', '2 Shore Rd', -5.0, 175.0),
            ('{VENUE_EAST_OF_SEAM}', 'Harbour House', '3 Quay', -5.0, -175.0),
            ('{VENUE_NOT_GEOCODED}', 'Unknown Place', NULL, NULL, NULL)
    """)
    conn.execute(f"""
        INSERT INTO participants VALUES
            ('{CHILD}', 'Ana', DATE '2015-01-01'),
            ('{YOUTH}', 'Ben', DATE '2006-03-01'),
            ('{MOVER}', 'Cai', NULL),
            ('{ADULT}', 'Dee', DATE '1980-05-05'),
            ('{UNGEOCODED_ADULT}', 'Eli', DATE '1990-02-02')
    """)
    conn.execute(f"""
        INSERT INTO participant_address_history VALUES
            ('h1', '{CHILD}', '{VENUE_CITY}', TIMESTAMP '2020-01-01'),
            ('h2', '{YOUTH}', '{VENUE_CITY}', NULL),
            ('h3', '{MOVER}', '{VENUE_WEST_OF_SEAM}', TIMESTAMP '2019-01-01'),
            ('h4', '{MOVER}', '{VENUE_CITY}', TIMESTAMP '2024-03-01'),
            ('h5', '{ADULT}', '{VENUE_EAST_OF_SEAM}', TIMESTAMP '2023-07-01'),
            ('h6', '{UNGEOCODED_ADULT}', '{VENUE_NOT_GEOCODED}',
             TIMESTAMP '2021-01-01')
    """)
    conn.execute(f"""
        INSERT INTO assignments VALUES
            ('a1', 'act-1', '{YOUTH}', '{ROLE_TUTOR}'),
            ('a2', 'act-2', '{YOUTH}', '{ROLE_TUTOR}'),
            ('a3', 'act-1', '{ADULT}', '{ROLE_HOST}')
    """)
    conn.execute(f"""
        INSERT INTO participant_populations VALUES
            ('{CHILD}', '{POPULATION}'),
            ('{ADULT}', '{POPULATION}')
    """)
    return service
