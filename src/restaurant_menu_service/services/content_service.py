"""Content service: the single access point for category and item data."""

import logging

from restaurant_menu_service.models.menu_models import (
    Category,
    CategoryData,
    CategoryUpdate,
    MenuItem,
    MenuItemData,
    MenuItemUpdate,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import record_cache_hit, record_cache_miss
from restaurant_menu_service.repositories.menu_repositories import (
    CategoryRepository,
    MenuItemRepository,
)
from restaurant_menu_service.services.category_cache import CategoryCache

logger = logging.getLogger(__name__)


def _next_order(orders: list[int]) -> int:
    return max(orders) + 1 if orders else 1


class ContentService:
    """Service composing the category cache with the DynamoDB repositories.

    Reads of the full menu go through the cache; point reads used by edit
    screens always hit DynamoDB. Every mutation empties the cache, including
    mutations that fail part way, so a later read never returns the list as
    it was before the call.

    Order values are computed as max + 1 over the sibling documents. Two
    concurrent callers can receive the same value; nothing prevents
    duplicate orders.
    """

    def __init__(
        self,
        category_repository: CategoryRepository,
        item_repository: MenuItemRepository,
        cache: CategoryCache | None = None,
    ) -> None:
        """Initialize the ContentService.

        Args:
            category_repository: Repository for category documents
            item_repository: Repository for nested item collections
            cache: Category list cache owned by this service
        """
        self.category_repository = category_repository
        self.item_repository = item_repository
        self._cache = cache if cache is not None else CategoryCache()

    def invalidate_cache(self) -> None:
        """Drop the cached category list."""
        self._cache.invalidate()

    @traced("list_categories")
    async def list_categories(self) -> list[Category]:
        """Return every category with its items, both ordered by ``order``.

        Served from the cache while it is fresh. On a miss this costs one
        scan plus one query per category.

        Raises:
            RemoteUnavailableError: If any DynamoDB call fails; nothing is cached then
        """
        cached = self._cache.read()
        if cached is not None:
            record_cache_hit()
            return cached

        record_cache_miss()
        categories = [
            category.model_copy(update={"items": self.item_repository.list_items(category.id)})
            for category in self.category_repository.list_categories()
        ]

        self._cache.write(categories)
        logger.debug(f"Cached {len(categories)} categories")
        return categories

    async def get_category(self, category_id: str) -> Category | None:
        """Fetch one category with its items straight from DynamoDB.

        Does not read or fill the list cache.

        Returns:
            Category with items loaded, or None if it does not exist
        """
        category = self.category_repository.get_category(category_id)
        if category is None:
            return None

        return category.model_copy(update={"items": self.item_repository.list_items(category_id)})

    async def category_exists(self, category_id: str) -> bool:
        """Check that a category document exists, without loading its items."""
        return self.category_repository.get_category(category_id) is not None

    async def get_item(self, category_id: str, item_id: str) -> MenuItem | None:
        """Fetch one item straight from DynamoDB."""
        return self.item_repository.get_item(category_id, item_id)

    async def next_category_order(self) -> int:
        """Return 1 + the highest category order, or 1 when there are none."""
        return _next_order(self.category_repository.list_orders())

    async def next_item_order(self, category_id: str) -> int:
        """Return 1 + the highest item order in a category, or 1 when it is empty."""
        return _next_order(self.item_repository.list_orders(category_id))

    async def create_category(self, data: CategoryData) -> str:
        """Create a category, assigning the next order when none is given.

        Returns:
            str: New category id
        """
        if data.order is None:
            data = data.model_copy(update={"order": await self.next_category_order()})

        try:
            return self.category_repository.create_category(data)
        finally:
            self._cache.invalidate()

    async def update_category(self, category_id: str, update: CategoryUpdate) -> None:
        """Merge the explicitly set fields into a category.

        Raises:
            NotFoundError: If the category does not exist
        """
        try:
            self.category_repository.update_category(category_id, update.to_dynamodb_fields())
        finally:
            self._cache.invalidate()

    async def delete_category(self, category_id: str) -> None:
        """Delete every item of a category, then the category itself.

        Items are deleted one at a time. If one fails the error propagates
        and the category is left in place with some of its items gone.
        """
        try:
            for item in self.item_repository.list_items(category_id):
                self.item_repository.delete_item(category_id, item.id)
            self.category_repository.delete_category(category_id)
        finally:
            self._cache.invalidate()

        logger.info(f"Deleted category {category_id} and its items")

    async def create_item(self, category_id: str, data: MenuItemData) -> str:
        """Create an item in a category, assigning the next order when none is given.

        Returns:
            str: New item id
        """
        if data.order is None:
            data = data.model_copy(update={"order": await self.next_item_order(category_id)})

        try:
            return self.item_repository.create_item(category_id, data)
        finally:
            self._cache.invalidate()

    async def update_item(self, category_id: str, item_id: str, update: MenuItemUpdate) -> None:
        """Merge the explicitly set fields into an item.

        Raises:
            NotFoundError: If the item does not exist in that category
        """
        try:
            self.item_repository.update_item(category_id, item_id, update.to_dynamodb_fields())
        finally:
            self._cache.invalidate()

    async def delete_item(self, category_id: str, item_id: str) -> None:
        """Delete one item from a category."""
        try:
            self.item_repository.delete_item(category_id, item_id)
        finally:
            self._cache.invalidate()
