from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

VENUE_NAME_MAX_LENGTH = 100
CONDITIONS_MAX_LENGTH = 50
FORBIDDEN_CHARACTERS = set('<>"\'&')


class Category(str, Enum):
    ACTIVITY = "ACTIVITY"
    DINING = "DINING"
    CAFE = "CAFE"


class ProfileType(str, Enum):
    ALONE = "ALONE"
    COUPLE = "COUPLE"
    FAMILY = "FAMILY"


class TransportationMethod(str, Enum):
    WALK = "WALK"
    CAR = "CAR"
    BUS = "BUS"
    SUBWAY = "SUBWAY"


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue_name: str = Field(..., description="Event venue the places should be near")
    profile_type: ProfileType
    transportation_method: TransportationMethod
    custom_conditions: str = Field(..., description="Free-text preference, e.g. 분위기 있는 데이트 코스")

    @field_validator("venue_name")
    @classmethod
    def _check_venue_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("장소명을 입력해주세요.")
        if len(value) > VENUE_NAME_MAX_LENGTH:
            raise ValueError("장소명은 최대 100자까지 입력 가능합니다.")
        return value

    @field_validator("custom_conditions")
    @classmethod
    def _check_custom_conditions(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("사용자 조건을 입력해주세요.")
        if len(value) > CONDITIONS_MAX_LENGTH:
            raise ValueError("사용자 조건은 최대 50자까지 입력 가능합니다.")
        if FORBIDDEN_CHARACTERS & set(value):
            raise ValueError("특수문자 <, >, \", ', &는 사용할 수 없습니다.")
        return value


class Candidate(BaseModel):
    """A place returned by the search provider, before or after scoring."""

    id: str
    name: str | None = None
    description: str | None = None
    address: str | None = None
    category: Category
    latitude: float | None = None
    longitude: float | None = None
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    distance_km: float | None = Field(default=None, ge=0.0)
    phone: str | None = None
    place_url: str | None = None
    ai_reason: str | None = None
    score: float = 0.0

    def text(self) -> str:
        """Lower-cased name, description and address joined for keyword checks."""
        parts = [self.name or "", self.description or "", self.address or ""]
        return " ".join(parts).lower()


class PlaceOut(BaseModel):
    id: str
    name: str
    description: str | None
    address: str | None
    latitude: float | None
    longitude: float | None
    rating: float | None
    ai_reason: str | None
    distance_from_venue: float | None


class PlaceDetail(PlaceOut):
    category: Category
    phone: str | None = None
    place_url: str | None = None


class CategoryRecommendation(BaseModel):
    category: Category
    category_name: str
    places: list[PlaceOut]


class RecommendationResponse(BaseModel):
    greeting: str
    subtitle: str
    recommendations: list[CategoryRecommendation]


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
