"""Nearby users graph: radius filtering, compatibility scoring and ranking."""

from __future__ import annotations

from langgraph.graph import StateGraph

from nearmatch.config import config
from nearmatch.graphs.base_graph import BaseGraph
from nearmatch.models import UserAttributes, coerce_model
from nearmatch.state import NearbyUsersState
from nearmatch.tools.proximity_tools import filter_nearby_users
from nearmatch.utils.errors import InvalidInputError

SORT_KEYS = ("distance", "similarity")


def _with_state(state: NearbyUsersState, **updates) -> NearbyUsersState:
    """Return a new state dict with updates applied."""

    return {**state, **updates}


class NearbyUsersGraph(BaseGraph):
    """Find users around the requester and rank them."""

    def build_graph(self) -> StateGraph:
        graph = StateGraph(NearbyUsersState)

        graph.add_node("validate_request", self.node_validate_request)
        graph.add_node("filter_nearby", self.node_filter_nearby)
        graph.add_node("rank_matches", self.node_rank_matches)
        graph.add_node("finalize_response", self.node_finalize_response)

        graph.set_entry_point("validate_request")
        graph.add_edge("validate_request", "filter_nearby")
        graph.add_edge("filter_nearby", "rank_matches")
        graph.add_edge("rank_matches", "finalize_response")
        graph.set_finish_point("finalize_response")

        return graph

    def node_validate_request(self, state: NearbyUsersState) -> NearbyUsersState:
        """Check the requesting profile and resolve the search radius."""

        self._log_node_execution("validate_request", state)
        try:
            if not state.get("user"):
                raise InvalidInputError("user is required")
            if not isinstance(state.get("candidates", []), list):
                raise InvalidInputError("candidates must be a list")
            coerce_model(UserAttributes, state["user"])
            radius = self._resolve_radius(state.get("preferences") or {})
            return _with_state(state, radius_km=radius)
        except InvalidInputError as exc:
            self._log_node_error("validate_request", exc)
            return _with_state(state, error=str(exc))

    def node_filter_nearby(self, state: NearbyUsersState) -> NearbyUsersState:
        """Keep candidates inside the radius and score them."""

        if state.get("error"):
            return state

        try:
            self._log_node_execution("filter_nearby", state)
            preferences = state.get("preferences") or {}
            min_similarity = float(
                preferences.get("minSimilarity", config.MIN_SIMILARITY)
            )
            nearby = filter_nearby_users(
                state["user"],
                state.get("candidates", []),
                radius_km=state["radius_km"],
                min_similarity=min_similarity,
            )
            return _with_state(state, nearby=nearby)
        except Exception as exc:
            self._log_node_error("filter_nearby", exc)
            return _with_state(
                state,
                error="Filtering failed. Returning empty matches.",
                nearby=[],
            )

    def node_rank_matches(self, state: NearbyUsersState) -> NearbyUsersState:
        """Order by the requested key and trim to the result limit."""

        if state.get("error"):
            return state

        try:
            self._log_node_execution("rank_matches", state)
            preferences = state.get("preferences") or {}
            sort_by = preferences.get("sortBy", "distance")
            if sort_by not in SORT_KEYS:
                raise InvalidInputError(
                    f"sortBy must be one of {', '.join(SORT_KEYS)}"
                )

            ranked = list(state.get("nearby", []))
            if sort_by == "similarity":
                ranked.sort(key=lambda x: (-x["similarity"], x["distance_km"]))

            limit = self._resolve_limit(preferences)
            return _with_state(state, nearby=ranked[:limit])
        except InvalidInputError as exc:
            self._log_node_error("rank_matches", exc)
            return _with_state(state, error=str(exc), nearby=[])

    def node_finalize_response(self, state: NearbyUsersState) -> NearbyUsersState:
        """Construct final matches and response metadata."""

        candidates = state.get("candidates")
        total = len(candidates) if isinstance(candidates, list) else 0

        if state.get("error"):
            return _with_state(
                state,
                final_matches=[],
                response_metadata={
                    "success": False,
                    "error": state.get("error"),
                    "total_candidates": total,
                    "filtered_count": 0,
                },
            )

        final_matches = [
            {
                "id": match.get("id"),
                "name": match.get("name"),
                "distance_km": match["distance_km"],
                "distance_label": match["distance_label"],
                "direction": match["direction"],
                "similarity": round(match["similarity"], 4),
            }
            for match in state.get("nearby", [])
        ]

        return _with_state(
            state,
            final_matches=final_matches,
            response_metadata={
                "success": True,
                "error": None,
                "radius_km": state.get("radius_km"),
                "total_candidates": total,
                "filtered_count": len(final_matches),
            },
        )


def create_nearby_users_graph():
    """Build and compile the nearby users graph for server usage."""

    graph_builder = NearbyUsersGraph(timeout=config.GRAPH_TIMEOUT)
    return graph_builder.compile()
