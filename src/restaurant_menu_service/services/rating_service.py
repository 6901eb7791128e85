"""Rating service for customer feedback."""

import logging

from restaurant_menu_service.models.rating_models import Rating, RatingInput, RatingStats
from restaurant_menu_service.observability.metrics import record_rating_submitted
from restaurant_menu_service.repositories.rating_repository import RatingRepository

logger = logging.getLogger(__name__)


class RatingService:
    """Service for submitting and reviewing customer ratings.

    Ratings are read straight from DynamoDB every time; they are not cached.
    """

    def __init__(self, rating_repository: RatingRepository) -> None:
        """Initialize the RatingService.

        Args:
            rating_repository: Repository for storing ratings
        """
        self.rating_repository = rating_repository

    async def submit_rating(self, rating_input: RatingInput, user_agent: str | None = None) -> str:
        """Store a customer rating.

        Args:
            rating_input: Validated rating and feedback
            user_agent: Browser user agent, if known

        Returns:
            The new rating id
        """
        rating_id = self.rating_repository.save_rating(rating_input, user_agent=user_agent)
        record_rating_submitted(rating_input.rating)
        logger.info(f"Rating {rating_id} submitted with {rating_input.rating} stars")
        return rating_id

    async def list_ratings(self, limit: int | None = None, offset: int = 0) -> list[Rating]:
        """List ratings newest first, optionally one page at a time.

        Args:
            limit: Maximum number of ratings to return (all when None)
            offset: Number of ratings to skip

        Returns:
            List of Rating objects, empty list if none found
        """
        ratings = self.rating_repository.list_ratings()
        end = offset + limit if limit is not None else None
        return ratings[offset:end]

    async def delete_rating(self, rating_id: str) -> None:
        """Delete a rating."""
        self.rating_repository.delete_rating(rating_id)

    async def get_stats(self) -> RatingStats:
        """Compute total, average and per-star breakdown over all ratings."""
        return RatingStats.from_ratings(self.rating_repository.list_ratings())
