"""Customer rating models.

Ratings live in their own flat DynamoDB table and have no relationship to
categories or items.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


class RatingInput(BaseModel):
    """A rating as submitted from the public rating page."""

    rating: int = Field(..., description="Star rating", ge=1, le=5)
    feedback: str = Field(..., description="Free text feedback")

    @field_validator("feedback")
    @classmethod
    def validate_feedback(cls, v: str) -> str:
        """Trim feedback and reject blank submissions."""
        v = v.strip()
        if not v:
            raise ValueError("feedback is required")
        return v


class Rating(BaseModel):
    """Stored customer rating."""

    id: str = Field(..., description="Unique rating identifier")
    rating: int = Field(..., description="Star rating", ge=1, le=5)
    feedback: str = Field(..., description="Free text feedback")
    created_at: datetime = Field(..., description="Submission timestamp")
    user_agent: str | None = Field(None, description="Browser that submitted the rating")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "rating_id": self.id,
            "rating": self.rating,
            "feedback": self.feedback,
            "created_at": self.created_at.isoformat(),
        }

        if self.user_agent is not None:
            item["user_agent"] = self.user_agent

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Rating":
        """Create Rating from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Rating: Parsed model instance
        """
        return cls(
            id=item["rating_id"],
            rating=int(item["rating"]),
            feedback=item["feedback"],
            created_at=datetime.fromisoformat(item["created_at"]),
            user_agent=item.get("user_agent"),
        )


class RatingStats(BaseModel):
    """Aggregate view over all ratings."""

    total: int = Field(..., description="Number of ratings", ge=0)
    average: float = Field(..., description="Mean star rating, 0 when there are none")
    breakdown: dict[int, int] = Field(..., description="Count of ratings per star value")

    @classmethod
    def from_ratings(cls, ratings: list[Rating]) -> "RatingStats":
        """Compute statistics for a list of ratings."""
        breakdown = {star: 0 for star in range(1, 6)}
        for rating in ratings:
            breakdown[rating.rating] = breakdown.get(rating.rating, 0) + 1

        total = len(ratings)
        average = sum(r.rating for r in ratings) / total if total else 0.0
        return cls(total=total, average=average, breakdown=breakdown)
