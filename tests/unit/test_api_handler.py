"""Unit tests for the public and admin HTTP endpoints."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from restaurant_menu_service.auth.admin_authorizer import SecretPathAuthorizer
from restaurant_menu_service.exceptions import (
    NotFoundError,
    RemoteUnavailableError,
    ValidationFailedError,
    WorkflowError,
)
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.models.image_models import ImageUpload
from restaurant_menu_service.models.menu_models import Category, CategoryData, MenuItemUpdate
from restaurant_menu_service.models.rating_models import Rating, RatingInput, RatingStats
from restaurant_menu_service.services.content_service import ContentService
from restaurant_menu_service.services.menu_workflows import (
    MenuWorkflows,
    WorkflowResult,
    WorkflowStep,
)
from restaurant_menu_service.services.rating_service import RatingService

SECRET = "test-admin-secret"
ADMIN = f"/admin/{SECRET}"

CATEGORY_JSON = {
    "title": {"en": "Burgers", "ar": "برغر"},
    "description": {"en": "Grilled to order", "ar": "مشوي حسب الطلب"},
}


@pytest.fixture
def client() -> TestClient:
    """Create a test client with mocked services."""
    app = create_app(
        content_service=MagicMock(spec=ContentService),
        workflows=MagicMock(spec=MenuWorkflows),
        rating_service=MagicMock(spec=RatingService),
        admin_authorizer=SecretPathAuthorizer(SECRET),
    )
    return TestClient(app)


@pytest.mark.unit
class TestHealthEndpoint:
    """Test suite for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test health check endpoint returns 200."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


@pytest.mark.unit
class TestMenuEndpoint:
    """Test suite for the public menu."""

    def test_menu_defaults_to_english(self, client: TestClient, sample_category: Category) -> None:
        """Test the menu in the default language."""
        client.app.state.content_service.list_categories = AsyncMock(
            return_value=[sample_category]
        )

        response = client.get("/menu")

        assert response.status_code == 200
        data = response.json()
        assert data["language"] == "en"
        assert data["direction"] == "ltr"
        assert data["categories"][0]["title"]["en"] == "Burgers"
        item = data["categories"][0]["items"][0]
        assert Decimal(item["price"]) == Decimal("12.50")
        assert item["price_m"] is None

    def test_menu_language_from_query(self, client: TestClient) -> None:
        """Test that ?lang=ar selects Arabic right to left."""
        client.app.state.content_service.list_categories = AsyncMock(return_value=[])

        data = client.get("/menu", params={"lang": "ar"}).json()

        assert data["language"] == "ar"
        assert data["direction"] == "rtl"

    def test_menu_language_from_header(self, client: TestClient) -> None:
        """Test that Accept-Language is used when no query is given."""
        client.app.state.content_service.list_categories = AsyncMock(return_value=[])

        data = client.get("/menu", headers={"Accept-Language": "ar-SA,en;q=0.5"}).json()

        assert data["language"] == "ar"

    def test_query_wins_over_header(self, client: TestClient) -> None:
        """Test that the query parameter takes precedence."""
        client.app.state.content_service.list_categories = AsyncMock(return_value=[])

        data = client.get(
            "/menu", params={"lang": "en"}, headers={"Accept-Language": "ar"}
        ).json()

        assert data["language"] == "en"

    def test_menu_backend_unavailable(self, client: TestClient) -> None:
        """Test that DynamoDB failures map to 503."""
        client.app.state.content_service.list_categories = AsyncMock(
            side_effect=RemoteUnavailableError("Failed to list categories")
        )

        response = client.get("/menu")

        assert response.status_code == 503
        assert response.json()["detail"] == "Failed to list categories"


@pytest.mark.unit
class TestRatingEndpoints:
    """Test suite for rating submission and review."""

    def test_submit_rating(self, client: TestClient) -> None:
        """Test submitting a rating with the browser user agent."""
        client.app.state.rating_service.submit_rating = AsyncMock(return_value="r1")

        response = client.post(
            "/ratings",
            json={"rating": 5, "feedback": " Excellent "},
            headers={"User-Agent": "Mozilla/5.0"},
        )

        assert response.status_code == 201
        assert response.json() == {"id": "r1"}
        client.app.state.rating_service.submit_rating.assert_awaited_once_with(
            RatingInput(rating=5, feedback="Excellent"), user_agent="Mozilla/5.0"
        )

    def test_submit_invalid_rating(self, client: TestClient) -> None:
        """Test that out-of-range ratings are rejected before the service."""
        client.app.state.rating_service.submit_rating = AsyncMock()

        response = client.post("/ratings", json={"rating": 6, "feedback": "Too good"})

        assert response.status_code == 422
        client.app.state.rating_service.submit_rating.assert_not_awaited()

    def test_list_ratings_paged(self, client: TestClient) -> None:
        """Test listing ratings with limit and offset."""
        rating = Rating(
            id="r1", rating=4, feedback="Nice", created_at=datetime(2024, 1, 15, tzinfo=UTC)
        )
        client.app.state.rating_service.list_ratings = AsyncMock(return_value=[rating])

        response = client.get(f"{ADMIN}/ratings", params={"limit": 10, "offset": 20})

        assert response.status_code == 200
        assert response.json()[0]["id"] == "r1"
        client.app.state.rating_service.list_ratings.assert_awaited_once_with(limit=10, offset=20)

    def test_list_ratings_rejects_zero_limit(self, client: TestClient) -> None:
        """Test that the limit must be positive."""
        response = client.get(f"{ADMIN}/ratings", params={"limit": 0})

        assert response.status_code == 422

    def test_rating_stats(self, client: TestClient) -> None:
        """Test the statistics endpoint."""
        client.app.state.rating_service.get_stats = AsyncMock(
            return_value=RatingStats(total=1, average=5.0, breakdown={5: 1})
        )

        response = client.get(f"{ADMIN}/ratings/stats")

        assert response.status_code == 200
        assert response.json() == {"total": 1, "average": 5.0, "breakdown": {"5": 1}}

    def test_delete_rating(self, client: TestClient) -> None:
        """Test deleting a rating."""
        client.app.state.rating_service.delete_rating = AsyncMock(return_value=None)

        response = client.delete(f"{ADMIN}/ratings/r1")

        assert response.status_code == 204
        client.app.state.rating_service.delete_rating.assert_awaited_once_with("r1")


@pytest.mark.unit
class TestAdminGate:
    """Test suite for the secret path gate."""

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/admin/wrong/categories"),
            ("POST", "/admin/wrong/categories"),
            ("DELETE", "/admin/wrong/categories/cat_1/items/item_1"),
            ("GET", "/admin/wrong/ratings"),
        ],
    )
    def test_wrong_secret_redirects_home(self, client: TestClient, method: str, path: str) -> None:
        """Test that wrong secrets are redirected to the home page."""
        response = client.request(method, path, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/"
        client.app.state.workflows.create_category.assert_not_called()
        client.app.state.workflows.delete_item.assert_not_called()

    def test_correct_secret_is_accepted(self, client: TestClient) -> None:
        """Test that the configured secret reaches the route."""
        client.app.state.content_service.list_categories = AsyncMock(return_value=[])

        response = client.get(f"{ADMIN}/categories")

        assert response.status_code == 200
        assert response.json() == []


@pytest.mark.unit
class TestAdminCategoryEndpoints:
    """Test suite for category administration."""

    def test_get_category(self, client: TestClient, sample_category: Category) -> None:
        """Test fetching a category for editing."""
        client.app.state.content_service.get_category = AsyncMock(return_value=sample_category)

        response = client.get(f"{ADMIN}/categories/cat_1")

        assert response.status_code == 200
        assert response.json()["id"] == "cat_1"

    def test_get_missing_category(self, client: TestClient) -> None:
        """Test that missing categories are 404."""
        client.app.state.content_service.get_category = AsyncMock(return_value=None)

        response = client.get(f"{ADMIN}/categories/missing")

        assert response.status_code == 404

    def test_create_category_with_image(self, client: TestClient, png_bytes: bytes) -> None:
        """Test the multipart create form."""
        client.app.state.workflows.create_category = AsyncMock(
            return_value=WorkflowResult(
                document_id="cat_new",
                completed_steps=[
                    WorkflowStep.DOCUMENT_CREATED,
                    WorkflowStep.IMAGE_UPLOADED,
                    WorkflowStep.DOCUMENT_FINALIZED,
                ],
                image_url="https://images.example.com/categories/cat_new/1.png",
            )
        )

        response = client.post(
            f"{ADMIN}/categories",
            data={"data": json.dumps(CATEGORY_JSON)},
            files={"image": ("burgers.png", png_bytes, "image/png")},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["document_id"] == "cat_new"
        assert body["completed_steps"] == ["document_created", "image_uploaded", "document_finalized"]
        assert body["orphaned_images"] == []

        data, image = client.app.state.workflows.create_category.call_args.args
        assert isinstance(data, CategoryData)
        assert data.order is None
        assert image == ImageUpload(filename="burgers.png", content_type="image/png", data=png_bytes)

    def test_create_category_without_image(self, client: TestClient) -> None:
        """Test that the image part is optional."""
        client.app.state.workflows.create_category = AsyncMock(
            return_value=WorkflowResult(
                document_id="cat_new", completed_steps=[WorkflowStep.DOCUMENT_CREATED]
            )
        )

        response = client.post(f"{ADMIN}/categories", data={"data": json.dumps(CATEGORY_JSON)})

        assert response.status_code == 201
        assert client.app.state.workflows.create_category.call_args.args[1] is None

    def test_create_category_invalid_fields(self, client: TestClient) -> None:
        """Test that field limits are reported as 422."""
        client.app.state.workflows.create_category = AsyncMock()
        invalid = {**CATEGORY_JSON, "title": {"en": "x" * 21, "ar": "y"}}

        response = client.post(f"{ADMIN}/categories", data={"data": json.dumps(invalid)})

        assert response.status_code == 422
        client.app.state.workflows.create_category.assert_not_awaited()

    def test_create_category_rejected_image(self, client: TestClient) -> None:
        """Test that workflow validation failures are 422."""
        client.app.state.workflows.create_category = AsyncMock(
            side_effect=ValidationFailedError("File must be an image")
        )

        response = client.post(
            f"{ADMIN}/categories",
            data={"data": json.dumps(CATEGORY_JSON)},
            files={"image": ("menu.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "File must be an image"

    def test_workflow_failure_details(self, client: TestClient) -> None:
        """Test that a partial failure is reported with its steps."""
        client.app.state.workflows.create_category = AsyncMock(
            side_effect=WorkflowError(
                workflow="create_category",
                failed_step="image_uploaded",
                completed_steps=["document_created"],
                document_id="cat_new",
                message="create_category failed at image_uploaded: S3 down",
            )
        )

        response = client.post(f"{ADMIN}/categories", data={"data": json.dumps(CATEGORY_JSON)})

        assert response.status_code == 500
        body = response.json()
        assert body["failed_step"] == "image_uploaded"
        assert body["completed_steps"] == ["document_created"]
        assert body["document_id"] == "cat_new"
        assert body["partial"] is True

    def test_update_category_not_found(self, client: TestClient) -> None:
        """Test editing a category that does not exist."""
        client.app.state.workflows.update_category = AsyncMock(
            side_effect=NotFoundError("Category missing not found")
        )

        response = client.put(f"{ADMIN}/categories/missing", data={"data": '{"order": 3}'})

        assert response.status_code == 404

    def test_delete_category(self, client: TestClient) -> None:
        """Test deleting a category."""
        client.app.state.workflows.delete_category = AsyncMock(
            return_value=WorkflowResult(
                document_id="cat_1",
                completed_steps=[WorkflowStep.DOCUMENT_DELETED],
                orphaned_images=["https://images.example.com/categories/cat_1/1.jpg"],
            )
        )

        response = client.delete(f"{ADMIN}/categories/cat_1")

        assert response.status_code == 200
        assert response.json()["orphaned_images"] == [
            "https://images.example.com/categories/cat_1/1.jpg"
        ]


@pytest.mark.unit
class TestAdminItemEndpoints:
    """Test suite for item administration."""

    def test_get_missing_item(self, client: TestClient) -> None:
        """Test that missing items are 404."""
        client.app.state.content_service.get_item = AsyncMock(return_value=None)

        response = client.get(f"{ADMIN}/categories/cat_1/items/missing")

        assert response.status_code == 404

    def test_create_item(self, client: TestClient) -> None:
        """Test creating an item with sized prices."""
        client.app.state.workflows.create_item = AsyncMock(
            return_value=WorkflowResult(
                document_id="item_new", completed_steps=[WorkflowStep.DOCUMENT_CREATED]
            )
        )
        payload = {"name": {"en": "Lemonade", "ar": "ليموناضة"}, "price_m": "3", "price_l": "4.5"}

        response = client.post(
            f"{ADMIN}/categories/cat_1/items", data={"data": json.dumps(payload)}
        )

        assert response.status_code == 201
        category_id, data, image = client.app.state.workflows.create_item.call_args.args
        assert category_id == "cat_1"
        assert data.price_l == Decimal("4.5")
        assert image is None

    def test_update_item_move(self, client: TestClient) -> None:
        """Test that new_category_id is passed to the workflow."""
        client.app.state.workflows.update_item = AsyncMock(
            return_value=WorkflowResult(
                document_id="item_copy",
                completed_steps=[WorkflowStep.ITEM_MOVED, WorkflowStep.SOURCE_ITEM_DELETED],
            )
        )

        response = client.put(
            f"{ADMIN}/categories/cat_1/items/item_1",
            data={"data": '{"price": "9"}', "new_category_id": "cat_2"},
        )

        assert response.status_code == 200
        assert response.json()["document_id"] == "item_copy"
        client.app.state.workflows.update_item.assert_awaited_once_with(
            "cat_1",
            "item_1",
            MenuItemUpdate(price=Decimal("9")),
            image=None,
            new_category_id="cat_2",
        )

    def test_delete_item(self, client: TestClient) -> None:
        """Test deleting an item."""
        client.app.state.workflows.delete_item = AsyncMock(
            return_value=WorkflowResult(
                document_id="item_1",
                completed_steps=[WorkflowStep.IMAGE_DELETED, WorkflowStep.DOCUMENT_DELETED],
            )
        )

        response = client.delete(f"{ADMIN}/categories/cat_1/items/item_1")

        assert response.status_code == 200
        assert response.json()["completed_steps"] == ["image_deleted", "document_deleted"]
