"""Shared dependency factory for the Lambda handler.

This module provides cached dependency initialization to optimize Lambda cold starts.
Dependencies are created once and reused across invocations within the same Lambda
container, which also keeps the category cache alive between warm invocations.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_menu_service.auth.admin_authorizer import SecretPathAuthorizer
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.observability import configure_logging
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

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_content_service: ContentService | None = None
_workflows: MenuWorkflows | None = None
_rating_service: RatingService | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB - use environment variables
        access_key = os.getenv("AWS_ACCESS_KEY_ID")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def get_content_service() -> ContentService:
    """Create or retrieve cached content service.

    Returns:
        Configured ContentService instance
    """
    global _content_service

    if _content_service is not None:
        return _content_service

    dynamodb_resource = get_dynamodb_resource()

    categories_table = os.getenv("DYNAMODB_CATEGORIES_TABLE", "menu-categories")
    items_table = os.getenv("DYNAMODB_ITEMS_TABLE", "menu-items")
    cache_ttl = float(os.getenv("CATEGORY_CACHE_TTL_SECONDS", "300"))

    _content_service = ContentService(
        category_repository=CategoryRepository(
            dynamodb_resource=dynamodb_resource, table_name=categories_table
        ),
        item_repository=MenuItemRepository(
            dynamodb_resource=dynamodb_resource, table_name=items_table
        ),
        cache=CategoryCache(ttl_seconds=cache_ttl),
    )

    logger.info("Content service initialized")
    return _content_service


def get_workflows() -> MenuWorkflows:
    """Create or retrieve cached write workflows.

    Returns:
        Configured MenuWorkflows instance

    Raises:
        ValueError: If IMAGES_BUCKET is not set
    """
    global _workflows

    if _workflows is not None:
        return _workflows

    bucket = os.getenv("IMAGES_BUCKET")
    if not bucket:
        raise ValueError("IMAGES_BUCKET must be set in environment")

    region = os.getenv("AWS_REGION", "us-east-1")
    public_base_url = os.getenv(
        "IMAGES_PUBLIC_BASE_URL", f"https://{bucket}.s3.{region}.amazonaws.com"
    )

    image_store = S3ImageStore(
        s3_client=boto3.client("s3", region_name=region),
        bucket=bucket,
        public_base_url=public_base_url,
    )
    _workflows = MenuWorkflows(content_service=get_content_service(), image_store=image_store)

    logger.info("Write workflows initialized")
    return _workflows


def get_rating_service() -> RatingService:
    """Create or retrieve cached rating service.

    Returns:
        Configured RatingService instance
    """
    global _rating_service

    if _rating_service is not None:
        return _rating_service

    ratings_table = os.getenv("DYNAMODB_RATINGS_TABLE", "menu-ratings")
    _rating_service = RatingService(
        rating_repository=RatingRepository(
            dynamodb_resource=get_dynamodb_resource(), table_name=ratings_table
        )
    )

    logger.info("Rating service initialized")
    return _rating_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    admin_secret = os.getenv("ADMIN_SECRET", "").strip()
    if not admin_secret:
        logger.warning("No ADMIN_SECRET configured - using the default admin path secret")
        admin_secret = DEFAULT_ADMIN_SECRET

    _fastapi_app = create_app(
        content_service=get_content_service(),
        workflows=get_workflows(),
        rating_service=get_rating_service(),
        admin_authorizer=SecretPathAuthorizer(admin_secret),
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with logging.

    Should be called once during Lambda cold start.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Lambda environment initialized")
