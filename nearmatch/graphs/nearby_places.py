"""Nearby places graph: radius and category filtering of place listings."""

from __future__ import annotations

from langgraph.graph import StateGraph

from nearmatch.config import config
from nearmatch.graphs.base_graph import BaseGraph
from nearmatch.models import Coordinate, coerce_model
from nearmatch.state import NearbyPlacesState
from nearmatch.tools.proximity_tools import filter_nearby_places
from nearmatch.utils.errors import InvalidInputError


def _with_state(state: NearbyPlacesState, **updates) -> NearbyPlacesState:
    """Return a new state dict with updates applied."""

    return {**state, **updates}


class NearbyPlacesGraph(BaseGraph):
    """Filter place listings around the user's current location."""

    def build_graph(self) -> StateGraph:
        graph = StateGraph(NearbyPlacesState)
        graph.add_node("validate_request", self.node_validate_request)
        graph.add_node("filter_places", self.node_filter_places)
        graph.add_node("finalize_response", self.node_finalize_response)

        graph.set_entry_point("validate_request")
        graph.add_edge("validate_request", "filter_places")
        graph.add_edge("filter_places", "finalize_response")
        graph.set_finish_point("finalize_response")
        return graph

    def node_validate_request(self, state: NearbyPlacesState) -> NearbyPlacesState:
        self._log_node_execution("validate_request", state)
        try:
            if not state.get("location"):
                raise InvalidInputError("location is required")
            coerce_model(Coordinate, state["location"])
            radius = self._resolve_radius(state.get("preferences") or {})
            return _with_state(state, radius_km=radius)
        except InvalidInputError as exc:
            self._log_node_error("validate_request", exc)
            return _with_state(state, error=str(exc))

    def node_filter_places(self, state: NearbyPlacesState) -> NearbyPlacesState:
        if state.get("error"):
            return state

        try:
            self._log_node_execution("filter_places", state)
            preferences = state.get("preferences") or {}
            nearby = filter_nearby_places(
                state["location"],
                state.get("places", []),
                radius_km=state["radius_km"],
                categories=preferences.get("categories"),
            )
            limit = self._resolve_limit(preferences)
            return _with_state(state, nearby=nearby[:limit])
        except Exception as exc:
            self._log_node_error("filter_places", exc)
            return _with_state(
                state,
                error="Place filtering failed. Returning empty results.",
                nearby=[],
            )

    def node_finalize_response(self, state: NearbyPlacesState) -> NearbyPlacesState:
        places = state.get("places")
        total = len(places) if isinstance(places, list) else 0

        if state.get("error"):
            return _with_state(
                state,
                final_places=[],
                response_metadata={
                    "success": False,
                    "error": state.get("error"),
                    "total_places": total,
                    "filtered_count": 0,
                },
            )

        final_places = [
            {
                "id": place.get("id"),
                "name": place.get("name"),
                "category": place.get("category"),
                "rating": place.get("rating"),
                "distance_km": place["distance_km"],
                "distance_label": place["distance_label"],
                "direction": place["direction"],
            }
            for place in state.get("nearby", [])
        ]

        return _with_state(
            state,
            final_places=final_places,
            response_metadata={
                "success": True,
                "error": None,
                "radius_km": state.get("radius_km"),
                "total_places": total,
                "filtered_count": len(final_places),
            },
        )


def create_nearby_places_graph():
    """Build and compile the nearby places graph for server usage."""

    graph_builder = NearbyPlacesGraph(timeout=config.GRAPH_TIMEOUT)
    return graph_builder.compile()
