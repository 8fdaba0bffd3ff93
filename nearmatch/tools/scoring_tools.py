"""Deterministic compatibility scoring between two users."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from math import fsum
from typing import Any, Union

from nearmatch.models import UserAttributes, coerce_model
from nearmatch.utils.geo import distance_between

INTEREST_WEIGHT = 0.3
ACTIVITY_WEIGHT = 0.3
AGE_WEIGHT = 0.2
LOCATION_WEIGHT = 0.2

AGE_CUTOFF_YEARS = 10
LOCATION_CUTOFF_KM = 5

UserLike = Union[UserAttributes, Mapping[str, Any]]


def jaccard_index(a: Iterable[str], b: Iterable[str]) -> float:
    """Size of the intersection over size of the union; 0 for two empty sets."""

    set_a = set(a)
    set_b = set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def interest_score(user_a: UserAttributes, user_b: UserAttributes) -> float:
    """Weighted overlap of interests, in [0, INTEREST_WEIGHT]."""

    return jaccard_index(user_a.interests, user_b.interests) * INTEREST_WEIGHT


def activity_score(user_a: UserAttributes, user_b: UserAttributes) -> float:
    """Weighted overlap of activities, in [0, ACTIVITY_WEIGHT]."""

    return jaccard_index(user_a.activities, user_b.activities) * ACTIVITY_WEIGHT


def age_score(user_a: UserAttributes, user_b: UserAttributes) -> float:
    """Full credit for the same age, nothing at AGE_CUTOFF_YEARS apart."""

    gap = abs(user_a.age - user_b.age)
    return max(0.0, 1 - gap / AGE_CUTOFF_YEARS) * AGE_WEIGHT


def location_score(user_a: UserAttributes, user_b: UserAttributes) -> float:
    """Full credit at the same spot, nothing at LOCATION_CUTOFF_KM apart."""

    distance = distance_between(user_a.location, user_b.location)
    return max(0.0, 1 - distance / LOCATION_CUTOFF_KM) * LOCATION_WEIGHT


def score_breakdown(user_a: UserLike, user_b: UserLike) -> dict[str, float]:
    """Return each weighted component and the combined similarity.

    Raises:
        InvalidInputError: If either user lacks an age or a location.
    """

    a = coerce_model(UserAttributes, user_a)
    b = coerce_model(UserAttributes, user_b)

    components = {
        "interests": interest_score(a, b),
        "activities": activity_score(a, b),
        "age": age_score(a, b),
        "location": location_score(a, b),
    }
    total = fsum(components.values())
    components["total"] = min(max(total, 0.0), 1.0)
    return components


def similarity_score(user_a: UserLike, user_b: UserLike) -> float:
    """Compatibility of two users in [0, 1].

    Interests and activities each contribute 30% via the Jaccard index, so a
    few tags shared out of few beat the same overlap buried in long lists.
    Age and location each contribute 20% with a linear falloff.
    """

    return score_breakdown(user_a, user_b)["total"]
