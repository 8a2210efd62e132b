from __future__ import annotations

from .models import (
    Candidate,
    Category,
    CategoryRecommendation,
    PlaceOut,
    RecommendationResponse,
)

SUBTITLE = "인시트가 알려준 맞춤장소로 하루를 시작해보세요"

CATEGORY_NAMES = {
    Category.ACTIVITY: "엑티비티 추천",
    Category.DINING: "식사 장소 추천",
    Category.CAFE: "카페 장소 추천",
}


def greeting_for(display_name: str) -> str:
    return f"{display_name}님을 위한 오늘의 추천 장소 입니다."


def to_place_out(candidate: Candidate) -> PlaceOut:
    return PlaceOut(
        id=candidate.id,
        name=candidate.name or "",
        description=candidate.description,
        address=candidate.address,
        latitude=candidate.latitude,
        longitude=candidate.longitude,
        rating=candidate.rating,
        ai_reason=candidate.ai_reason,
        distance_from_venue=candidate.distance_km,
    )


def assemble(
    balanced: dict[Category, list[Candidate]],
    display_name: str,
) -> RecommendationResponse:
    """Package balanced places into the response, categories in fixed order."""
    recommendations = [
        CategoryRecommendation(
            category=category,
            category_name=CATEGORY_NAMES[category],
            places=[to_place_out(c) for c in balanced[category]],
        )
        for category in Category
        if balanced.get(category)
    ]
    return RecommendationResponse(
        greeting=greeting_for(display_name),
        subtitle=SUBTITLE,
        recommendations=recommendations,
    )
