from __future__ import annotations


class RecommendationError(Exception):
    """Base class for failures surfaced to the caller of the pipeline."""


class UserNotFoundError(RecommendationError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class PlacesUnavailableError(RecommendationError):
    """No category could be filled from the places provider."""
