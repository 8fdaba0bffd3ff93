"""Shared LangGraph state definitions.

All graph states are TypedDicts so state is explicit, serializable, and
consistent across graph nodes.
"""

from __future__ import annotations

from typing import TypedDict

JsonDict = dict[str, object]
JsonList = list[JsonDict]


class NearbyUsersState(TypedDict, total=False):
    """State for the nearby users graph.

    Fields are optional at runtime because nodes populate them progressively.
    """

    # Profile of the requesting user (needs age and location).
    user: JsonDict
    # Candidate profiles supplied by the caller.
    candidates: JsonList
    # Radius, similarity floor and result limit from the request.
    preferences: JsonDict
    # Effective radius after defaults and capping.
    radius_km: float
    # Candidates inside the radius with distance and similarity attached.
    nearby: JsonList
    # Final matches returned to the caller.
    final_matches: JsonList
    # Error string if any node fails.
    error: str
    # Response metadata for observability.
    response_metadata: JsonDict


class NearbyPlacesState(TypedDict, total=False):
    """State for the nearby places graph."""

    # Where the user currently is.
    location: JsonDict
    # Place listings supplied by the caller.
    places: JsonList
    # Radius, categories and result limit from the request.
    preferences: JsonDict
    # Effective radius after defaults and capping.
    radius_km: float
    # Places inside the radius, closest first.
    nearby: JsonList
    # Final places returned to the caller.
    final_places: JsonList
    # Error string if any node fails.
    error: str
    # Response metadata for observability.
    response_metadata: JsonDict
