"""Fixtures wiring the real application to in-memory AWS stand-ins."""

import pytest
from fakes import ADMIN_SECRET, PUBLIC_BASE_URL, FakeClock, FakeDynamoDB, FakeS3
from fastapi import FastAPI
from fastapi.testclient import TestClient

from restaurant_menu_service.auth.admin_authorizer import SecretPathAuthorizer
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.repositories.image_store import S3ImageStore
from restaurant_menu_service.repositories.menu_repositories import (
    CategoryRepository,
    MenuItemRepository,
)
from restaurant_menu_service.repositories.rating_repository import RatingRepository
from restaurant_menu_service.services.category_cache import CategoryCache
from restaurant_menu_service.services.content_service import ContentService
from restaurant_menu_service.services.menu_workflows import MenuWorkflows
from restaurant_menu_service.services.rating_service import RatingService


@pytest.fixture
def dynamodb() -> FakeDynamoDB:
    """Fixture providing an empty in-memory DynamoDB."""
    return FakeDynamoDB()


@pytest.fixture
def s3() -> FakeS3:
    """Fixture providing an empty in-memory S3 bucket."""
    return FakeS3()


@pytest.fixture
def clock() -> FakeClock:
    """Fixture providing the cache clock."""
    return FakeClock()


@pytest.fixture
def content_service(dynamodb: FakeDynamoDB, clock: FakeClock) -> ContentService:
    """Fixture providing a content service over the in-memory tables."""
    return ContentService(
        category_repository=CategoryRepository(dynamodb, "menu-categories"),  # type: ignore[arg-type]
        item_repository=MenuItemRepository(dynamodb, "menu-items"),  # type: ignore[arg-type]
        cache=CategoryCache(clock=clock),
    )


@pytest.fixture
def image_store(s3: FakeS3) -> S3ImageStore:
    """Fixture providing an image store over the in-memory bucket."""
    return S3ImageStore(s3_client=s3, bucket="menu-images", public_base_url=PUBLIC_BASE_URL)  # type: ignore[arg-type]


@pytest.fixture
def workflows(content_service: ContentService, image_store: S3ImageStore) -> MenuWorkflows:
    """Fixture providing the write workflows."""
    return MenuWorkflows(content_service=content_service, image_store=image_store)


@pytest.fixture
def app(
    dynamodb: FakeDynamoDB, content_service: ContentService, workflows: MenuWorkflows
) -> FastAPI:
    """Fixture providing the full application over the in-memory stores."""
    return create_app(
        content_service=content_service,
        workflows=workflows,
        rating_service=RatingService(RatingRepository(dynamodb, "menu-ratings")),  # type: ignore[arg-type]
        admin_authorizer=SecretPathAuthorizer(ADMIN_SECRET),
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Fixture providing a test client for the full application."""
    return TestClient(app)
