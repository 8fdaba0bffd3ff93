"""
Unit tests for the nearby users and nearby places graphs.

Graphs are compiled and invoked directly; nodes must never raise, so every
failure shows up as response_metadata.success == False.
"""

import pytest
from nearmatch.graphs.base_graph import BaseGraph
from nearmatch.graphs.nearby_places import NearbyPlacesGraph, create_nearby_places_graph
from nearmatch.graphs.nearby_users import NearbyUsersGraph, create_nearby_users_graph
from nearmatch.utils.errors import GraphExecutionError


@pytest.fixture
def users_graph():
    return create_nearby_users_graph()


@pytest.fixture
def places_graph():
    return create_nearby_places_graph()


class TestNearbyUsersGraph:
    """End-to-end runs of the nearby users graph."""

    def test_returns_nearby_matches(self, users_graph, origin_user, candidate_users):
        result = users_graph.invoke(
            {
                "user": origin_user,
                "candidates": candidate_users,
                "preferences": {"radiusKm": 5},
            }
        )
        assert [m["id"] for m in result["final_matches"]] == ["near"]
        match = result["final_matches"][0]
        assert match["name"] == "Alex"
        assert match["distance_label"] == "1.1km away"
        assert 0 <= match["similarity"] <= 1

        metadata = result["response_metadata"]
        assert metadata["success"] is True
        assert metadata["total_candidates"] == len(candidate_users)
        assert metadata["filtered_count"] == 1
        assert metadata["radius_km"] == 5.0

    def test_default_radius_from_config(self, users_graph, origin_user, candidate_users):
        result = users_graph.invoke({"user": origin_user, "candidates": candidate_users})
        assert result["radius_km"] == 5.0

    def test_radius_capped(self, users_graph, origin_user, candidate_users):
        result = users_graph.invoke(
            {
                "user": origin_user,
                "candidates": candidate_users,
                "preferences": {"radiusKm": 10_000},
            }
        )
        assert result["radius_km"] == 50.0
        assert [m["id"] for m in result["final_matches"]] == ["near", "far"]

    def test_sort_by_similarity(self, users_graph, origin_user):
        spot_close = {"latitude": 40.001, "longitude": -74.0}
        spot_far = {"latitude": 40.02, "longitude": -74.0}
        candidates = [
            {"id": "close", "age": 70, "location": spot_close},
            {
                "id": "kindred",
                "age": 28,
                "interests": ["Photography", "Coffee", "Hiking"],
                "activities": ["Running", "Yoga"],
                "location": spot_far,
            },
        ]
        by_distance = users_graph.invoke(
            {"user": origin_user, "candidates": candidates}
        )
        by_similarity = users_graph.invoke(
            {
                "user": origin_user,
                "candidates": candidates,
                "preferences": {"sortBy": "similarity"},
            }
        )
        assert [m["id"] for m in by_distance["final_matches"]] == ["close", "kindred"]
        assert [m["id"] for m in by_similarity["final_matches"]] == ["kindred", "close"]

    def test_limit(self, users_graph, origin_user, candidate_users):
        result = users_graph.invoke(
            {
                "user": origin_user,
                "candidates": candidate_users,
                "preferences": {"radiusKm": 50, "limit": 1},
            }
        )
        assert [m["id"] for m in result["final_matches"]] == ["near"]

    def test_invalid_sort_key(self, users_graph, origin_user, candidate_users):
        result = users_graph.invoke(
            {
                "user": origin_user,
                "candidates": candidate_users,
                "preferences": {"sortBy": "age"},
            }
        )
        assert result["final_matches"] == []
        assert "sortBy" in result["response_metadata"]["error"]

    def test_missing_user(self, users_graph, candidate_users):
        result = users_graph.invoke({"candidates": candidate_users})
        assert result["final_matches"] == []
        assert result["response_metadata"]["success"] is False
        assert result["response_metadata"]["error"] == "user is required"

    def test_user_without_location(self, users_graph, candidate_users):
        result = users_graph.invoke(
            {"user": {"id": "me", "age": 30}, "candidates": candidate_users}
        )
        assert result["response_metadata"]["success"] is False
        assert "location" in result["response_metadata"]["error"]

    def test_negative_radius(self, users_graph, origin_user):
        result = users_graph.invoke(
            {"user": origin_user, "candidates": [], "preferences": {"radiusKm": -1}}
        )
        assert result["response_metadata"]["error"] == "radiusKm cannot be negative"

    def test_graph_nodes(self):
        graph = NearbyUsersGraph().build_graph()
        assert set(graph.nodes) == {
            "validate_request",
            "filter_nearby",
            "rank_matches",
            "finalize_response",
        }


class TestNearbyPlacesGraph:
    """End-to-end runs of the nearby places graph."""

    def test_returns_places(self, places_graph, sample_places):
        result = places_graph.invoke(
            {
                "location": {"latitude": 40.0, "longitude": -74.0},
                "places": sample_places,
                "preferences": {"radiusKm": 5},
            }
        )
        assert [p["id"] for p in result["final_places"]] == ["bar-1", "cafe-1", "club-1"]
        assert result["final_places"][0]["distance_label"] == "600m away"
        assert result["response_metadata"]["total_places"] == 4
        assert result["response_metadata"]["filtered_count"] == 3

    def test_category_preference(self, places_graph, sample_places):
        result = places_graph.invoke(
            {
                "location": {"latitude": 40.0, "longitude": -74.0},
                "places": sample_places,
                "preferences": {"radiusKm": 50, "categories": ["gym"]},
            }
        )
        assert [p["id"] for p in result["final_places"]] == ["gym-1"]

    def test_missing_location(self, places_graph, sample_places):
        result = places_graph.invoke({"places": sample_places})
        assert result["final_places"] == []
        assert result["response_metadata"]["error"] == "location is required"

    def test_invalid_location(self, places_graph, sample_places):
        result = places_graph.invoke(
            {"location": {"latitude": 123.0, "longitude": 0.0}, "places": sample_places}
        )
        assert result["response_metadata"]["success"] is False

    def test_graph_nodes(self):
        graph = NearbyPlacesGraph().build_graph()
        assert set(graph.nodes) == {
            "validate_request",
            "filter_places",
            "finalize_response",
        }


class TestBaseGraphCompile:
    """Build failures surface as GraphExecutionError."""

    def test_build_failure_wrapped(self):
        class BrokenGraph(BaseGraph):
            def build_graph(self):
                raise RuntimeError("missing node")

        with pytest.raises(GraphExecutionError, match="BrokenGraph: missing node"):
            BrokenGraph().compile()
