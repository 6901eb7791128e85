"""Shared pytest fixtures and configuration for all tests."""

import os

# Entry-point modules build the real application at import time unless in test mode
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import UTC, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from restaurant_menu_service.models.image_models import ImageUpload  # noqa: E402
from restaurant_menu_service.models.menu_models import (  # noqa: E402
    BilingualText,
    Category,
    MenuItem,
)

# Smallest valid PNG header followed by padding, about 2 KB
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 2040


@pytest.fixture
def png_bytes() -> bytes:
    """Fixture providing a small PNG payload."""
    return PNG_BYTES


@pytest.fixture
def image_upload() -> ImageUpload:
    """Fixture providing a valid image upload."""
    return ImageUpload(filename="burger.png", content_type="image/png", data=PNG_BYTES)


@pytest.fixture
def category_record() -> dict[str, Any]:
    """Fixture providing a category as stored in DynamoDB."""
    return {
        "category_id": "cat_1",
        "order": Decimal("1"),
        "main_image": "https://images.example.com/categories/cat_1/1700000000000.jpg",
        "title": {"en": "Burgers", "ar": "برغر"},
        "description": {"en": "Grilled to order", "ar": "مشوي حسب الطلب"},
        "tagline": {"en": "Best in town", "ar": "الأفضل"},
        "created_at": "2024-01-15T10:30:00+00:00",
        "updated_at": "2024-01-15T10:30:00+00:00",
    }


@pytest.fixture
def item_record() -> dict[str, Any]:
    """Fixture providing a menu item as stored in DynamoDB."""
    return {
        "category_id": "cat_1",
        "item_id": "item_1",
        "order": Decimal("1"),
        "name": {"en": "Cheeseburger", "ar": "برغر بالجبن"},
        "image": "",
        "price": Decimal("12.50"),
        "created_at": "2024-01-15T10:30:00+00:00",
        "updated_at": "2024-01-15T10:30:00+00:00",
    }


@pytest.fixture
def sample_item() -> MenuItem:
    """Fixture providing a menu item model."""
    return MenuItem(
        id="item_1",
        category_id="cat_1",
        order=1,
        name=BilingualText(en="Cheeseburger", ar="برغر بالجبن"),
        image="https://images.example.com/items/item_1/1700000000000.png",
        price=Decimal("12.50"),
    )


@pytest.fixture
def sample_category(sample_item: MenuItem) -> Category:
    """Fixture providing a category model with one loaded item."""
    return Category(
        id="cat_1",
        order=1,
        main_image="https://images.example.com/categories/cat_1/1700000000000.jpg",
        title=BilingualText(en="Burgers", ar="برغر"),
        description=BilingualText(en="Grilled to order", ar="مشوي حسب الطلب"),
        items=[sample_item],
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    )
