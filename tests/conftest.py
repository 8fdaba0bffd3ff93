"""
Pytest configuration and shared fixtures for all tests.

This file is automatically loaded by pytest and provides:
  - Test configuration (env vars)
  - Sample user profiles and places shared across unit and integration tests
"""

import os
import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """
    Setup test environment variables before running any tests.

    This ensures tests run with predictable configuration and don't
    depend on local .env files.
    """
    test_env = {
        "DEFAULT_RADIUS_KM": "5.0",
        "MAX_RADIUS_KM": "50.0",
        "SERVICE_TOKEN": "",
        "DEBUG": "True",
    }

    for key, value in test_env.items():
        os.environ[key] = value


@pytest.fixture
def origin_user():
    """The requesting user, standing at 40.0, -74.0."""
    return {
        "id": "me",
        "name": "Sam",
        "age": 28,
        "interests": ["Photography", "Coffee", "Hiking"],
        "activities": ["Running", "Yoga"],
        "location": {"latitude": 40.0, "longitude": -74.0},
    }


@pytest.fixture
def candidate_users(origin_user):
    """
    Candidates around the origin user.

    - "me": the requester (must be excluded)
    - "near": 1.1 km north, similar tastes
    - "far": 11.1 km north
    - "noloc": no location at all
    - "noage": close by but missing age, cannot be scored
    """
    return [
        dict(origin_user),
        {
            "id": "near",
            "name": "Alex",
            "age": 29,
            "interests": ["Photography", "Coffee"],
            "activities": ["Running"],
            "location": {"latitude": 40.01, "longitude": -74.0},
        },
        {
            "id": "far",
            "name": "Jordan",
            "age": 40,
            "interests": ["Gaming"],
            "activities": ["Chess"],
            "location": {"latitude": 40.1, "longitude": -74.0},
        },
        {
            "id": "noloc",
            "name": "Riley",
            "age": 28,
            "interests": ["Coffee"],
        },
        {
            "id": "noage",
            "name": "Casey",
            "interests": ["Coffee"],
            "location": {"latitude": 40.005, "longitude": -74.0},
        },
    ]


@pytest.fixture
def sample_places():
    """Places north of 40.0, -74.0."""
    return [
        {
            "id": "cafe-1",
            "name": "Bean There",
            "category": "cafe",
            "location": {"lat": 40.005, "lng": -74.0},
            "rating": 4.5,
        },
        {
            "id": "bar-1",
            "name": "The Tap",
            "category": "bar",
            "location": {"lat": 40.005, "lng": -74.0},
            "rating": 4.8,
        },
        {
            "id": "gym-1",
            "name": "Iron Works",
            "category": "gym",
            "location": {"lat": 40.2, "lng": -74.0},
            "rating": 4.0,
        },
        {
            "id": "club-1",
            "name": "Night Owl",
            "category": "night_club",
            "location": {"lat": 40.02, "lng": -74.0},
            "rating": None,
        },
    ]
