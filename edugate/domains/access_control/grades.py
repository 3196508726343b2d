# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade level parsing and grade-to-tier mapping.

Grade levels arrive either as integers (the legacy profiles.grade column)
or as strings ("1".."12", "college", "university"). College and university
learners are treated as grade 13 for feature access.
"""

from __future__ import annotations

import re
from enum import Enum

COLLEGE_GRADE = 13
COLLEGE_ACCESS_MIN_GRADE = 12

_HIGHER_EDUCATION = frozenset({"college", "university"})
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class GradeBand(str, Enum):
    """Feature-access band derived from a numeric grade."""

    ELEMENTARY = "elementary"
    HIGH_SCHOOL = "high_school"
    COLLEGE_UNIVERSITY = "college_university"


class SubscriptionTier(str, Enum):
    """Grade-based subscription plan tiers."""

    ELEMENTARY = "elementary"
    HIGH_SCHOOL = "high_school"
    COLLEGE_UNIVERSITY = "college_university"


GradeInput = int | str | None


def _parse_leading_int(value: str) -> int | None:
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


def get_numeric_grade(grade_level: GradeInput) -> int | None:
    """Convert a grade level into a numeric grade.

    Args:
        grade_level: Integer grade, grade string, "college"/"university" or None.

    Returns:
        Numeric grade, 13 for college/university, or None when the grade is
        missing or unrecognized. Values below 1 count as unrecognized.

    Example:
        >>> get_numeric_grade("10")
        10
        >>> get_numeric_grade("university")
        13
    """
    if grade_level is None or grade_level == "" or grade_level == 0:
        return None

    if isinstance(grade_level, bool):
        return None

    if isinstance(grade_level, int):
        return grade_level if grade_level >= 1 else None

    if isinstance(grade_level, str):
        numeric = _parse_leading_int(grade_level)
        if numeric is not None:
            return numeric if numeric >= 1 else None
        if grade_level.strip().lower() in _HIGHER_EDUCATION:
            return COLLEGE_GRADE

    return None


def get_grade_band(numeric_grade: int | None) -> GradeBand | None:
    """Map a numeric grade onto its feature-access band.

    Grade 12 belongs to the college/university band for feature access.

    Args:
        numeric_grade: Result of get_numeric_grade().

    Returns:
        The band, or None for an unknown grade.
    """
    if numeric_grade is None or numeric_grade < 1:
        return None
    if numeric_grade <= 7:
        return GradeBand.ELEMENTARY
    if numeric_grade <= 11:
        return GradeBand.HIGH_SCHOOL
    return GradeBand.COLLEGE_UNIVERSITY


def get_subscription_tier_from_grade(grade_level: GradeInput) -> SubscriptionTier:
    """Pick the subscription plan a learner should be offered.

    Plan ranges differ from feature bands: grade 12 is billed on the high
    school plan. Anything unrecognized falls back to college/university.

    Args:
        grade_level: Integer grade, grade string or None.

    Returns:
        The matching subscription tier.
    """
    numeric: int | None = None
    if isinstance(grade_level, int) and not isinstance(grade_level, bool):
        numeric = grade_level
    elif isinstance(grade_level, str):
        numeric = _parse_leading_int(grade_level)

    if numeric is not None:
        if 1 <= numeric <= 7:
            return SubscriptionTier.ELEMENTARY
        if 8 <= numeric <= 12:
            return SubscriptionTier.HIGH_SCHOOL

    return SubscriptionTier.COLLEGE_UNIVERSITY


def should_have_college_access(grade_level: GradeInput) -> bool:
    """Check whether a learner qualifies for college content (grade 12+).

    Args:
        grade_level: Integer grade, grade string or None.

    Returns:
        True for grade 12 and above, or "college"/"university".
    """
    if isinstance(grade_level, int) and not isinstance(grade_level, bool):
        return grade_level >= COLLEGE_ACCESS_MIN_GRADE

    if isinstance(grade_level, str):
        numeric = _parse_leading_int(grade_level)
        if numeric is not None:
            return numeric >= COLLEGE_ACCESS_MIN_GRADE
        return grade_level.strip().lower() in _HIGHER_EDUCATION

    return False
