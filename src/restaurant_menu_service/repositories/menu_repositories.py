"""DynamoDB repository classes for categories and their menu items.

Categories live in one table keyed by category_id. A category's nested item
collection lives in a second table keyed by (category_id, item_id), so the
items of one category are a single partition.

Point lookups return None when the document is absent. Any SDK failure is
logged and raised as RemoteUnavailableError; callers are not expected to
retry.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_menu_service.exceptions import (
    NotFoundError,
    RemoteUnavailableError,
    ValidationFailedError,
)
from restaurant_menu_service.models.menu_models import (
    Category,
    CategoryData,
    MenuItem,
    MenuItemData,
)
from restaurant_menu_service.repositories.dynamodb_helpers import (
    build_update_expression,
    is_missing_item_error,
    query_all,
    scan_all,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class CategoryRepository:
    """Repository for category documents.

    Manages category records in DynamoDB with category_id as partition key.
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

    def list_categories(self) -> list[Category]:
        """List every category ordered by ``order`` ascending.

        Items are not loaded; each returned Category has ``items`` set to None.

        Returns:
            list: Categories sorted by display order

        Raises:
            RemoteUnavailableError: If the scan fails
        """
        try:
            records = scan_all(self.table)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list categories: {e}")
            raise RemoteUnavailableError("Failed to list categories") from e

        categories = [Category.from_dynamodb_item(record) for record in records]
        return sorted(categories, key=lambda category: category.order)

    def list_orders(self) -> list[int]:
        """Return the ``order`` value of every category document."""
        try:
            records = scan_all(
                self.table,
                ProjectionExpression="#order",
                ExpressionAttributeNames={"#order": "order"},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to scan category orders: {e}")
            raise RemoteUnavailableError("Failed to scan category orders") from e

        return [int(record["order"]) for record in records if "order" in record]

    def get_category(self, category_id: str) -> Category | None:
        """Retrieve a category document without its items.

        Args:
            category_id: Category identifier

        Returns:
            Category if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"category_id": category_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to get category {category_id}: {e}")
            raise RemoteUnavailableError(f"Failed to get category {category_id}") from e

        if "Item" not in response:
            return None

        return Category.from_dynamodb_item(response["Item"])

    def create_category(self, data: CategoryData) -> str:
        """Insert a new category document.

        Args:
            data: Category record; ``order`` must already be assigned

        Returns:
            str: Generated category id
        """
        if data.order is None:
            raise ValidationFailedError("Category order must be assigned before creation")

        category_id = _new_id()
        now = _now()
        item: dict[str, Any] = {
            "category_id": category_id,
            **data.to_dynamodb_fields(),
            "created_at": now,
            "updated_at": now,
        }

        try:
            self.table.put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to create category: {e}")
            raise RemoteUnavailableError("Failed to create category") from e

        logger.info(f"Created category {category_id} with order {data.order}")
        return category_id

    def update_category(self, category_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing category and refresh ``updated_at``.

        Args:
            category_id: Category identifier
            fields: Attributes to set; None values are removed

        Raises:
            NotFoundError: If the category does not exist
            RemoteUnavailableError: If the update fails
        """
        arguments = build_update_expression(
            {**fields, "updated_at": _now()}, key_attribute="category_id"
        )

        try:
            self.table.update_item(Key={"category_id": category_id}, **arguments)
        except ClientError as e:
            if is_missing_item_error(e):
                raise NotFoundError(f"Category {category_id} not found") from e
            logger.error(f"Failed to update category {category_id}: {e}")
            raise RemoteUnavailableError(f"Failed to update category {category_id}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to update category {category_id}: {e}")
            raise RemoteUnavailableError(f"Failed to update category {category_id}") from e

    def delete_category(self, category_id: str) -> None:
        """Delete a category document. Nested items are not touched."""
        try:
            self.table.delete_item(Key={"category_id": category_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete category {category_id}: {e}")
            raise RemoteUnavailableError(f"Failed to delete category {category_id}") from e


class MenuItemRepository:
    """Repository for the nested item collections of categories.

    Manages item records in DynamoDB with composite key (category_id, item_id).
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

    def list_items(self, category_id: str) -> list[MenuItem]:
        """List the items of one category ordered by ``order`` ascending.

        Args:
            category_id: Owning category

        Returns:
            list: Items sorted by display order (empty list if none)
        """
        try:
            records = query_all(
                self.table,
                KeyConditionExpression="category_id = :cid",
                ExpressionAttributeValues={":cid": category_id},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list items for category {category_id}: {e}")
            raise RemoteUnavailableError(
                f"Failed to list items for category {category_id}"
            ) from e

        items = [MenuItem.from_dynamodb_item(record) for record in records]
        return sorted(items, key=lambda item: item.order)

    def list_orders(self, category_id: str) -> list[int]:
        """Return the ``order`` value of every item in one category."""
        try:
            records = query_all(
                self.table,
                KeyConditionExpression="category_id = :cid",
                ExpressionAttributeValues={":cid": category_id},
                ProjectionExpression="#order",
                ExpressionAttributeNames={"#order": "order"},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to query item orders for category {category_id}: {e}")
            raise RemoteUnavailableError(
                f"Failed to query item orders for category {category_id}"
            ) from e

        return [int(record["order"]) for record in records if "order" in record]

    def get_item(self, category_id: str, item_id: str) -> MenuItem | None:
        """Retrieve one item from a category.

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"category_id": category_id, "item_id": item_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to get item {item_id}: {e}")
            raise RemoteUnavailableError(f"Failed to get item {item_id}") from e

        if "Item" not in response:
            return None

        return MenuItem.from_dynamodb_item(response["Item"])

    def create_item(self, category_id: str, data: MenuItemData) -> str:
        """Insert a new item into a category's collection.

        Args:
            category_id: Owning category
            data: Item record; ``order`` must already be assigned

        Returns:
            str: Generated item id
        """
        if data.order is None:
            raise ValidationFailedError("Item order must be assigned before creation")

        item_id = _new_id()
        now = _now()
        record: dict[str, Any] = {
            "category_id": category_id,
            "item_id": item_id,
            **data.to_dynamodb_fields(),
            "created_at": now,
            "updated_at": now,
        }

        try:
            self.table.put_item(Item=record)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to create item in category {category_id}: {e}")
            raise RemoteUnavailableError(f"Failed to create item in category {category_id}") from e

        logger.info(f"Created item {item_id} in category {category_id} with order {data.order}")
        return item_id

    def update_item(self, category_id: str, item_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing item and refresh ``updated_at``.

        Raises:
            NotFoundError: If the item does not exist in that category
            RemoteUnavailableError: If the update fails
        """
        arguments = build_update_expression(
            {**fields, "updated_at": _now()}, key_attribute="item_id"
        )

        try:
            self.table.update_item(
                Key={"category_id": category_id, "item_id": item_id}, **arguments
            )
        except ClientError as e:
            if is_missing_item_error(e):
                raise NotFoundError(f"Item {item_id} not found in category {category_id}") from e
            logger.error(f"Failed to update item {item_id}: {e}")
            raise RemoteUnavailableError(f"Failed to update item {item_id}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to update item {item_id}: {e}")
            raise RemoteUnavailableError(f"Failed to update item {item_id}") from e

    def delete_item(self, category_id: str, item_id: str) -> None:
        """Delete one item from a category's collection."""
        try:
            self.table.delete_item(Key={"category_id": category_id, "item_id": item_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete item {item_id}: {e}")
            raise RemoteUnavailableError(f"Failed to delete item {item_id}") from e
