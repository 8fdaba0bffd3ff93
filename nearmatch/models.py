"""Pydantic value types consumed by the proximity engine.

Profiles arrive from the mobile app with camelCase keys and optional tag
lists. The models normalize both at the boundary so scoring code never has
to check whether a field is present.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from nearmatch.utils.errors import InvalidInputError

PlaceCategory = Literal["bar", "club", "restaurant", "cafe", "park", "gym", "other"]
PLACE_CATEGORIES = ("bar", "club", "restaurant", "cafe", "park", "gym", "other")

ModelT = TypeVar("ModelT", bound=BaseModel)

USER_ID_KEYS = ("id", "uid", "user_id")


def lift_flat_location(data: Any) -> Any:
    """Nest locationLat/locationLng into a location mapping when absent."""

    # Some backends store the position as locationLat/locationLng.
    if isinstance(data, dict) and data.get("location") is None:
        lat = data.get("locationLat")
        lng = data.get("locationLng")
        if lat is not None and lng is not None:
            return {**data, "location": {"latitude": lat, "longitude": lng}}
    return data


class Coordinate(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    latitude: float = Field(
        ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: float = Field(
        ge=-180, le=180, validation_alias=AliasChoices("longitude", "lng", "lon")
    )


class UserAttributes(BaseModel):
    """The slice of a user profile needed for compatibility scoring.

    ``age`` and ``location`` are required; a profile without them cannot be
    scored and is rejected instead of being given a guessed value.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    interests: frozenset[str] = frozenset()
    activities: frozenset[str] = frozenset()
    age: int = Field(ge=0)
    location: Coordinate

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_location(cls, data: Any) -> Any:
        return lift_flat_location(data)

    @field_validator("interests", "activities", mode="before")
    @classmethod
    def _empty_when_missing(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        return value


class UserProfile(UserAttributes):
    """A nearby-user candidate as ranked by the matching graph."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices(*USER_ID_KEYS))
    name: str = ""
    bio: str | None = None


class Place(BaseModel):
    """A point of interest returned by the places search."""

    model_config = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    id: str = Field(validation_alias=AliasChoices("id", "place_id"))
    name: str = ""
    category: PlaceCategory = "other"
    location: Coordinate
    rating: float = Field(default=0.0, ge=0)
    user_count: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("user_count", "userCount")
    )

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_location(cls, data: Any) -> Any:
        return lift_flat_location(data)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in PLACE_CATEGORIES:
            return value.lower()
        return "other"

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_default(cls, value: Any) -> Any:
        return 0.0 if value is None else value


def coerce_model(model_cls: type[ModelT], data: Any) -> ModelT:
    """Return data as a model_cls instance, validating mappings.

    Raises:
        InvalidInputError: If the payload does not satisfy the model.
    """

    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(
            f"Invalid {model_cls.__name__}: {exc.error_count()} error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in exc.errors()
            )
        ) from exc
