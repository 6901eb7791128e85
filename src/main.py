"""Main application entry point for the restaurant menu service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_menu_service.auth.admin_authorizer import SecretPathAuthorizer
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.observability import configure_logging, setup_observability
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

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_SECRET = "change-this-to-a-unique-secret-key"


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB - use environment variables or defaults for credentials
        access_key = os.getenv("AWS_ACCESS_KEY_ID", "dummy")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY", "dummy")
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    # Production - boto3 will use default credential chain (IAM role, env vars, etc.)
    return boto3.resource("dynamodb", region_name=region)


def get_s3_client() -> Any:
    """Create S3 client, pointing at a local endpoint when S3_ENDPOINT is set.

    Returns:
        Boto3 S3 client configured for environment
    """
    endpoint_url = os.getenv("S3_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local S3 at {endpoint_url}")
        return boto3.client("s3", endpoint_url=endpoint_url, region_name=region)

    return boto3.client("s3", region_name=region)


def create_image_store(s3_client: Any) -> S3ImageStore:
    """Create the image store from environment configuration.

    Raises:
        ValueError: If IMAGES_BUCKET is not set
    """
    bucket = os.getenv("IMAGES_BUCKET")
    if not bucket:
        raise ValueError("IMAGES_BUCKET must be set in environment")

    region = os.getenv("AWS_REGION", "us-east-1")
    public_base_url = os.getenv(
        "IMAGES_PUBLIC_BASE_URL", f"https://{bucket}.s3.{region}.amazonaws.com"
    )

    logger.info(f"Image store configured - bucket: {bucket}, public URL: {public_base_url}")
    return S3ImageStore(s3_client=s3_client, bucket=bucket, public_base_url=public_base_url)


def get_admin_secret() -> str:
    """Read the admin path secret, warning when the shipped default is still in use."""
    secret = os.getenv("ADMIN_SECRET", "").strip()
    if not secret:
        logger.warning("No ADMIN_SECRET configured - using the default admin path secret")
        secret = DEFAULT_ADMIN_SECRET
    return secret


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates AWS clients
    3. Initializes repositories and the image store
    4. Creates services and workflows
    5. Creates FastAPI app with public and admin endpoints
    6. Sets up observability when enabled

    Returns:
        Configured FastAPI application instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Initializing restaurant menu service...")

    dynamodb_resource = get_dynamodb_resource()

    categories_table = os.getenv("DYNAMODB_CATEGORIES_TABLE", "menu-categories")
    items_table = os.getenv("DYNAMODB_ITEMS_TABLE", "menu-items")
    ratings_table = os.getenv("DYNAMODB_RATINGS_TABLE", "menu-ratings")

    category_repository = CategoryRepository(
        dynamodb_resource=dynamodb_resource, table_name=categories_table
    )
    item_repository = MenuItemRepository(
        dynamodb_resource=dynamodb_resource, table_name=items_table
    )
    rating_repository = RatingRepository(
        dynamodb_resource=dynamodb_resource, table_name=ratings_table
    )

    logger.info(
        f"Repositories configured - categories: {categories_table}, "
        f"items: {items_table}, ratings: {ratings_table}"
    )

    image_store = create_image_store(get_s3_client())

    cache_ttl = float(os.getenv("CATEGORY_CACHE_TTL_SECONDS", "300"))
    content_service = ContentService(
        category_repository=category_repository,
        item_repository=item_repository,
        cache=CategoryCache(ttl_seconds=cache_ttl),
    )
    workflows = MenuWorkflows(content_service=content_service, image_store=image_store)
    rating_service = RatingService(rating_repository=rating_repository)

    logger.info(f"Services initialized - category cache TTL: {cache_ttl}s")

    app = create_app(
        content_service=content_service,
        workflows=workflows,
        rating_service=rating_service,
        admin_authorizer=SecretPathAuthorizer(get_admin_secret()),
    )

    if os.getenv("ENABLE_OTEL", "false").lower() == "true":
        setup_observability(app)

    logger.info("Restaurant menu service initialized successfully")
    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
