"""FastAPI application for the public menu and the secret-path admin API."""

import logging

from fastapi import APIRouter, Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from restaurant_menu_service.auth.admin_authorizer import AdminAuthorizer
from restaurant_menu_service.auth.admin_dependencies import require_admin_secret
from restaurant_menu_service.exceptions import (
    NotFoundError,
    RemoteUnavailableError,
    ValidationFailedError,
    WorkflowError,
)
from restaurant_menu_service.models.image_models import ImageUpload
from restaurant_menu_service.models.menu_models import (
    Category,
    CategoryData,
    CategoryUpdate,
    Language,
    MenuItem,
    MenuItemData,
    MenuItemUpdate,
    resolve_language,
    text_direction,
)
from restaurant_menu_service.models.rating_models import Rating, RatingInput, RatingStats
from restaurant_menu_service.services.content_service import ContentService
from restaurant_menu_service.services.menu_workflows import MenuWorkflows, WorkflowResult
from restaurant_menu_service.services.rating_service import RatingService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MenuResponse(BaseModel):
    """Public menu with the language it should be rendered in."""

    language: Language
    direction: str
    categories: list[Category]


class CreatedResponse(BaseModel):
    """Response model for created documents."""

    id: str


class WorkflowResponse(BaseModel):
    """Response model for admin write workflows."""

    document_id: str
    completed_steps: list[str]
    image_url: str | None = None
    orphaned_images: list[str] = []

    @classmethod
    def from_result(cls, result: WorkflowResult) -> "WorkflowResponse":
        return cls(
            document_id=result.document_id,
            completed_steps=[step.value for step in result.completed_steps],
            image_url=result.image_url,
            orphaned_images=result.orphaned_images,
        )


async def _read_image(image: UploadFile | None) -> ImageUpload | None:
    """Turn an optional multipart file into an ImageUpload.

    Browsers send an empty part with no file name when no file was chosen.
    """
    if image is None or not image.filename:
        return None

    return ImageUpload(
        filename=image.filename,
        content_type=image.content_type or "",
        data=await image.read(),
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationFailedError)
    async def validation_failed_handler(
        _request: Request, exc: ValidationFailedError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def model_validation_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        errors = exc.errors(include_url=False, include_context=False)
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})

    @app.exception_handler(RemoteUnavailableError)
    async def remote_unavailable_handler(
        _request: Request, exc: RemoteUnavailableError
    ) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(_request: Request, exc: WorkflowError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "workflow": exc.workflow,
                "failed_step": exc.failed_step,
                "completed_steps": exc.completed_steps,
                "document_id": exc.document_id,
                "partial": exc.is_partial,
            },
        )


def create_app(
    content_service: ContentService,
    workflows: MenuWorkflows,
    rating_service: RatingService,
    admin_authorizer: AdminAuthorizer,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        content_service: Read/write access to categories and items
        workflows: Multi-step writes that include images
        rating_service: Customer ratings
        admin_authorizer: Predicate guarding the /admin/{secret} routes

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restaurant Menu Service",
        description="Bilingual menu content with a secret-path admin API",
        version="1.0.0",
    )

    # Store services in app state for access in route handlers
    app.state.content_service = content_service
    app.state.workflows = workflows
    app.state.rating_service = rating_service
    app.state.admin_authorizer = admin_authorizer

    _register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/menu", response_model=MenuResponse, tags=["Menu"])
    async def get_menu(
        lang: str | None = None,
        accept_language: str | None = Header(None),
    ) -> MenuResponse:
        """Return the full menu, ordered, in the visitor's language.

        The ``lang`` query parameter wins over the Accept-Language header.
        """
        language = resolve_language(lang or accept_language)
        categories = await app.state.content_service.list_categories()
        return MenuResponse(
            language=language,
            direction=text_direction(language),
            categories=categories,
        )

    @app.post("/ratings", response_model=CreatedResponse, status_code=201, tags=["Ratings"])
    async def submit_rating(
        rating_input: RatingInput,
        user_agent: str | None = Header(None),
    ) -> CreatedResponse:
        """Submit a customer rating."""
        rating_id = await app.state.rating_service.submit_rating(rating_input, user_agent=user_agent)
        return CreatedResponse(id=rating_id)

    def validate_admin_secret(secret: str) -> str:
        """Dependency to validate the secret path segment."""
        return require_admin_secret(secret, app.state.admin_authorizer)

    admin = APIRouter(prefix="/admin/{secret}", dependencies=[Depends(validate_admin_secret)])

    @admin.get("/categories", response_model=list[Category], tags=["Admin Categories"])
    async def list_categories() -> list[Category]:
        """List categories with their items."""
        categories: list[Category] = await app.state.content_service.list_categories()
        return categories

    @admin.get("/categories/{category_id}", response_model=Category, tags=["Admin Categories"])
    async def get_category(category_id: str) -> Category:
        """Fetch a category and its items, bypassing the cache."""
        category = await app.state.content_service.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    @admin.post(
        "/categories",
        response_model=WorkflowResponse,
        status_code=201,
        tags=["Admin Categories"],
    )
    async def create_category(
        data: str = Form(...),
        image: UploadFile | None = File(None),
    ) -> WorkflowResponse:
        """Create a category from a JSON ``data`` field and an optional image file."""
        category_data = CategoryData.model_validate_json(data)
        result = await app.state.workflows.create_category(category_data, await _read_image(image))
        return WorkflowResponse.from_result(result)

    @admin.put(
        "/categories/{category_id}",
        response_model=WorkflowResponse,
        tags=["Admin Categories"],
    )
    async def update_category(
        category_id: str,
        data: str = Form("{}"),
        image: UploadFile | None = File(None),
    ) -> WorkflowResponse:
        """Update a category; a new image file replaces the old one."""
        update = CategoryUpdate.model_validate_json(data)
        result = await app.state.workflows.update_category(
            category_id, update, await _read_image(image)
        )
        return WorkflowResponse.from_result(result)

    @admin.delete(
        "/categories/{category_id}",
        response_model=WorkflowResponse,
        tags=["Admin Categories"],
    )
    async def delete_category(category_id: str) -> WorkflowResponse:
        """Delete a category, its items and (best effort) its image."""
        result = await app.state.workflows.delete_category(category_id)
        return WorkflowResponse.from_result(result)

    @admin.get(
        "/categories/{category_id}/items/{item_id}",
        response_model=MenuItem,
        tags=["Admin Items"],
    )
    async def get_item(category_id: str, item_id: str) -> MenuItem:
        """Fetch one item, bypassing the cache."""
        item = await app.state.content_service.get_item(category_id, item_id)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found in category {category_id}")
        return item

    @admin.post(
        "/categories/{category_id}/items",
        response_model=WorkflowResponse,
        status_code=201,
        tags=["Admin Items"],
    )
    async def create_item(
        category_id: str,
        data: str = Form(...),
        image: UploadFile | None = File(None),
    ) -> WorkflowResponse:
        """Create an item from a JSON ``data`` field and an optional image file."""
        item_data = MenuItemData.model_validate_json(data)
        result = await app.state.workflows.create_item(
            category_id, item_data, await _read_image(image)
        )
        return WorkflowResponse.from_result(result)

    @admin.put(
        "/categories/{category_id}/items/{item_id}",
        response_model=WorkflowResponse,
        tags=["Admin Items"],
    )
    async def update_item(
        category_id: str,
        item_id: str,
        data: str = Form("{}"),
        new_category_id: str | None = Form(None),
        image: UploadFile | None = File(None),
    ) -> WorkflowResponse:
        """Update an item; ``new_category_id`` moves it to another category."""
        update = MenuItemUpdate.model_validate_json(data)
        result = await app.state.workflows.update_item(
            category_id,
            item_id,
            update,
            image=await _read_image(image),
            new_category_id=new_category_id,
        )
        return WorkflowResponse.from_result(result)

    @admin.delete(
        "/categories/{category_id}/items/{item_id}",
        response_model=WorkflowResponse,
        tags=["Admin Items"],
    )
    async def delete_item(category_id: str, item_id: str) -> WorkflowResponse:
        """Delete an item and (best effort) its image."""
        result = await app.state.workflows.delete_item(category_id, item_id)
        return WorkflowResponse.from_result(result)

    @admin.get("/ratings", response_model=list[Rating], tags=["Admin Ratings"])
    async def list_ratings(
        limit: int | None = Query(None, ge=1),
        offset: int = Query(0, ge=0),
    ) -> list[Rating]:
        """List ratings newest first."""
        ratings: list[Rating] = await app.state.rating_service.list_ratings(
            limit=limit, offset=offset
        )
        return ratings

    @admin.get("/ratings/stats", response_model=RatingStats, tags=["Admin Ratings"])
    async def rating_stats() -> RatingStats:
        """Rating count, average and per-star breakdown."""
        stats: RatingStats = await app.state.rating_service.get_stats()
        return stats

    @admin.delete("/ratings/{rating_id}", status_code=204, tags=["Admin Ratings"])
    async def delete_rating(rating_id: str) -> None:
        """Delete a rating."""
        await app.state.rating_service.delete_rating(rating_id)

    app.include_router(admin)
    return app
