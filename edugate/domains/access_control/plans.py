# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade-based subscription plan catalog."""

from decimal import Decimal

from edugate.domains.access_control.grades import (
    GradeInput,
    SubscriptionTier,
    get_subscription_tier_from_grade,
)
from edugate.models.access_control import PlanPricing, SubscriptionPlan

GRADE_SUBSCRIPTION_PLANS: dict[SubscriptionTier, SubscriptionPlan] = {
    SubscriptionTier.ELEMENTARY: SubscriptionPlan(
        tier=SubscriptionTier.ELEMENTARY.value,
        name="Elementary Plan",
        grade_range="Grades 1-7",
        description=(
            "Perfect for elementary students with essential learning tools "
            "and interactive content."
        ),
        pricing=PlanPricing(monthly=Decimal("5.99"), yearly=Decimal("54.99")),
        features=[
            "Access to all elementary courses (Grades 1-7)",
            "Interactive learning games and activities",
            "Basic progress tracking",
            "Parent reports and updates",
            "Math, reading, and science fundamentals",
            "Homework help and support",
        ],
    ),
    SubscriptionTier.HIGH_SCHOOL: SubscriptionPlan(
        tier=SubscriptionTier.HIGH_SCHOOL.value,
        name="High School Plan",
        grade_range="Grades 8-12",
        description=(
            "Advanced learning for high school students with college prep "
            "and comprehensive subjects."
        ),
        pricing=PlanPricing(monthly=Decimal("9.99"), yearly=Decimal("99.90")),
        features=[
            "Access to all high school courses (Grades 8-12)",
            "Advanced STEM subjects and AP courses",
            "College preparation materials",
            "SAT/ACT prep resources",
            "Live teacher sessions and tutoring",
            "Research tools and academic writing support",
            "Grade 12+ students get college content access",
        ],
    ),
    SubscriptionTier.COLLEGE_UNIVERSITY: SubscriptionPlan(
        tier=SubscriptionTier.COLLEGE_UNIVERSITY.value,
        name="College & University Plan",
        grade_range="College & University",
        description=(
            "Comprehensive higher education support with specialized courses "
            "and career development."
        ),
        pricing=PlanPricing(monthly=Decimal("99.00"), yearly=Decimal("799.00")),
        features=[
            "Access to all college and university courses",
            "Specialized degree program support",
            "Advanced research database access",
            "Thesis and dissertation assistance",
            "Career counseling and internship opportunities",
            "Professional networking and industry connections",
            "Graduate school preparation",
        ],
    ),
}


def get_plan(tier: SubscriptionTier | str) -> SubscriptionPlan:
    """Look up a plan by tier.

    Raises:
        KeyError: If the tier is not a known plan tier.
    """
    try:
        return GRADE_SUBSCRIPTION_PLANS[SubscriptionTier(tier)]
    except ValueError as e:
        raise KeyError(f"Unknown subscription tier: {tier}") from e


def list_plans() -> list[SubscriptionPlan]:
    """Return all plans ordered from elementary to college/university."""
    return list(GRADE_SUBSCRIPTION_PLANS.values())


def recommend_plan(grade_level: GradeInput) -> SubscriptionPlan:
    """Return the plan a learner at the given grade should subscribe to."""
    return GRADE_SUBSCRIPTION_PLANS[get_subscription_tier_from_grade(grade_level)]
