"""Age cohort helpers.

Maps named age cohorts to date-of-birth ranges anchored at a reference date,
and computes the cohort of a given birth date. ``cohort_to_date_range`` is the
default converter used by the marker query builder.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from loguru import logger

from communitytracker.data.participant_homes.constants import (
    AGE_COHORT_ADULT,
    AGE_COHORT_BOUNDS,
    AGE_COHORT_CHILD,
    AGE_COHORT_JUNIOR_YOUTH,
    AGE_COHORT_UNKNOWN,
    AGE_COHORT_YOUNG_ADULT,
    AGE_COHORT_YOUTH,
    AGE_COHORTS,
)


@dataclass(frozen=True)
class DateRange:
    """Date-of-birth bounds for a cohort.

    ``min`` is the earliest birth date (oldest member), ``max`` the exclusive
    latest birth date (youngest member). Either side may be open.
    """

    min: date | None = None
    max: date | None = None


def years_before(reference: date, years: int) -> date:
    """Return the same calendar day ``years`` years before ``reference``.

    Works for both ``date`` and ``datetime``. Feb 29 rolls over to Mar 1 when
    the target year has no leap day.
    """
    target_year = reference.year - years
    try:
        return reference.replace(year=target_year)
    except ValueError:
        return reference.replace(year=target_year, month=3, day=1)


def cohort_to_date_range(cohort: str, reference_date: date) -> DateRange | None:
    """Convert a cohort name to a date-of-birth range.

    Bounds are shaped for the marker query predicates: ``min <= dob < max``
    when both are set, ``dob > min`` or ``dob < max`` when only one is. With
    those predicates a birth date lands in the same cohort as
    ``calculate_age_cohort`` gives it, birthdays included.

    Returns None for ``Unknown`` (matched on a NULL date of birth instead) and
    for names that are not a known cohort.
    """
    if cohort == AGE_COHORT_UNKNOWN:
        return None

    bounds = AGE_COHORT_BOUNDS.get(cohort)
    if bounds is None:
        logger.warning("Unrecognised age cohort {!r}, ignoring", cohort)
        return None

    if isinstance(reference_date, datetime):
        reference_date = reference_date.date()

    lower_age, upper_age = bounds
    one_day = timedelta(days=1)

    # age >= lower_age  <=>  dob <= ref - lower_age years
    if upper_age is None:
        return DateRange(max=years_before(reference_date, lower_age) + one_day)
    # age < upper_age  <=>  dob > ref - upper_age years
    if lower_age is None:
        return DateRange(min=years_before(reference_date, upper_age))
    return DateRange(
        min=years_before(reference_date, upper_age) + one_day,
        max=years_before(reference_date, lower_age) + one_day,
    )


def calculate_age_cohort(
    date_of_birth: date | None, reference_date: date | None = None
) -> str:
    """Return the cohort name for a date of birth (``Unknown`` when missing)."""
    if date_of_birth is None:
        return AGE_COHORT_UNKNOWN

    ref = reference_date or datetime.now()
    age = ref.year - date_of_birth.year
    if (ref.month, ref.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1

    if age < 11:
        return AGE_COHORT_CHILD
    if age < 15:
        return AGE_COHORT_JUNIOR_YOUTH
    if age < 21:
        return AGE_COHORT_YOUTH
    if age < 30:
        return AGE_COHORT_YOUNG_ADULT
    return AGE_COHORT_ADULT


def validate_age_cohorts(cohorts: list[str]) -> bool:
    """Check that every name is a known age cohort."""
    return all(cohort in AGE_COHORTS for cohort in cohorts)
