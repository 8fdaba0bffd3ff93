"""Nearby filtering and ranking for users and places.

These helpers take candidates the app already fetched (database RPC, places
search) and turn them into distance-sorted lists. Candidates that cannot be
located or scored are dropped rather than failing the whole request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from nearmatch.config import config
from nearmatch.models import (
    USER_ID_KEYS,
    Coordinate,
    Place,
    UserAttributes,
    UserProfile,
    coerce_model,
)
from nearmatch.tools.scoring_tools import UserLike, similarity_score
from nearmatch.utils.errors import InvalidInputError
from nearmatch.utils.geo import (
    distance_between,
    format_distance,
    get_bearing,
    get_cardinal_direction,
)
from nearmatch.utils.logging_config import logger

def _record_id(record: Any) -> str | None:
    """First id-like value on a user record, as a string."""

    if isinstance(record, Mapping):
        for key in USER_ID_KEYS:
            value = record.get(key)
            if value is not None and value != "":
                return str(value)
        return None
    value = getattr(record, "id", None)
    return None if value is None else str(value)


def _extract_coordinate(item: Mapping[str, Any]) -> Coordinate | None:
    location = item.get("location")
    if location is None and item.get("locationLat") is not None:
        location = {
            "latitude": item.get("locationLat"),
            "longitude": item.get("locationLng"),
        }
    if location is None:
        return None
    try:
        return coerce_model(Coordinate, location)
    except InvalidInputError:
        return None


def attach_distances(
    origin: Coordinate | Mapping[str, Any], items: Iterable[Mapping[str, Any]]
) -> list[dict]:
    """Return copies of items annotated with distance_km and distance_label.

    Items without a valid location are skipped.
    """

    origin_coord = coerce_model(Coordinate, origin)
    annotated: list[dict] = []

    for item in items:
        coord = _extract_coordinate(item)
        if coord is None:
            logger.debug("attach_distances skipped item id=%s", item.get("id"))
            continue

        distance = distance_between(origin_coord, coord)
        annotated.append(
            {
                **item,
                "distance_km": distance,
                "distance_label": format_distance(distance),
                "direction": get_cardinal_direction(
                    get_bearing(
                        origin_coord.latitude,
                        origin_coord.longitude,
                        coord.latitude,
                        coord.longitude,
                    )
                ),
            }
        )

    return annotated


def filter_nearby_users(
    origin_user: UserLike,
    candidates: Iterable[Mapping[str, Any]],
    radius_km: float,
    min_similarity: float = 0.0,
) -> list[dict]:
    """Users within radius_km of origin_user, closest first.

    The requesting user is excluded by id. Each result carries its
    similarity to the origin user; equal distances rank the more similar
    user first.

    Raises:
        InvalidInputError: If origin_user has no age or location.
    """

    origin = coerce_model(UserAttributes, origin_user)
    origin_id = _record_id(origin_user)

    others = [
        c for c in candidates if origin_id is None or _record_id(c) != origin_id
    ]

    nearby: list[dict] = []
    for item in attach_distances(origin.location, others):
        if item["distance_km"] > radius_km:
            continue

        try:
            profile = coerce_model(UserProfile, item)
        except InvalidInputError as exc:
            logger.debug("filter_nearby_users dropped candidate: %s", exc)
            continue

        score = similarity_score(origin, profile)
        if score < min_similarity:
            continue

        nearby.append({**item, "id": profile.id, "similarity": score})

    nearby.sort(key=lambda x: (x["distance_km"], -x["similarity"]))
    logger.debug("filter_nearby_users result=%s", len(nearby))
    return nearby


def filter_nearby_places(
    origin: Coordinate | Mapping[str, Any],
    places: Iterable[Mapping[str, Any]],
    radius_km: float,
    categories: Iterable[str] | None = None,
) -> list[dict]:
    """Places within radius_km of origin, closest first then best rated.

    Raises:
        InvalidInputError: If origin is not a valid coordinate.
    """

    wanted = {c.lower() for c in categories} if categories else None

    nearby: list[dict] = []
    for item in attach_distances(origin, places):
        if item["distance_km"] > radius_km:
            continue

        try:
            place = coerce_model(Place, item)
        except InvalidInputError as exc:
            logger.debug("filter_nearby_places dropped place: %s", exc)
            continue

        if wanted is not None and place.category not in wanted:
            continue

        nearby.append(
            {
                **item,
                "id": place.id,
                "category": place.category,
                "rating": place.rating,
            }
        )

    nearby.sort(key=lambda x: (x["distance_km"], -x["rating"]))
    logger.debug("filter_nearby_places result=%s", len(nearby))
    return nearby


def has_moved_significantly(
    previous: Coordinate | Mapping[str, Any] | None,
    current: Coordinate | Mapping[str, Any],
    threshold_km: float | None = None,
) -> bool:
    """Whether a location update is worth a fresh nearby query.

    Always True when there is no previous location. The threshold defaults
    to config.MIN_MOVE_KM.
    """

    if previous is None:
        return True
    if threshold_km is None:
        threshold_km = config.MIN_MOVE_KM

    return distance_between(
        coerce_model(Coordinate, previous), coerce_model(Coordinate, current)
    ) >= threshold_km
