"""DynamoDB repository for customer ratings."""

import logging
import uuid
from datetime import UTC, datetime

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_menu_service.exceptions import RemoteUnavailableError
from restaurant_menu_service.models.rating_models import Rating, RatingInput
from restaurant_menu_service.repositories.dynamodb_helpers import scan_all

logger = logging.getLogger(__name__)


class RatingRepository:
    """Repository for rating CRUD operations.

    Manages rating records in DynamoDB with rating_id as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def save_rating(self, rating_input: RatingInput, user_agent: str | None = None) -> str:
        """Store a new rating stamped with the current time.

        Args:
            rating_input: Validated rating submission
            user_agent: Browser user agent, if known

        Returns:
            str: Generated rating id
        """
        rating = Rating(
            id=uuid.uuid4().hex,
            rating=rating_input.rating,
            feedback=rating_input.feedback,
            created_at=datetime.now(UTC),
            user_agent=user_agent,
        )

        try:
            self.table.put_item(Item=rating.to_dynamodb_item())
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to save rating: {e}")
            raise RemoteUnavailableError("Failed to submit rating") from e

        return rating.id

    def list_ratings(self) -> list[Rating]:
        """List every rating, newest first.

        Returns:
            list: Ratings sorted by created_at descending
        """
        try:
            records = scan_all(self.table)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list ratings: {e}")
            raise RemoteUnavailableError("Failed to fetch ratings") from e

        ratings = [Rating.from_dynamodb_item(record) for record in records]
        return sorted(ratings, key=lambda rating: rating.created_at, reverse=True)

    def delete_rating(self, rating_id: str) -> None:
        """Delete a rating by id."""
        try:
            self.table.delete_item(Key={"rating_id": rating_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete rating {rating_id}: {e}")
            raise RemoteUnavailableError("Failed to delete rating") from e
