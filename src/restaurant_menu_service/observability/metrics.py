"""Custom metrics for the menu content service."""

from opentelemetry import metrics

meter = metrics.get_meter("restaurant_menu_service")

category_cache_hits = meter.create_counter(
    name="category_cache_hits_total",
    description="Category list reads served from the in-memory cache",
    unit="1",
)

category_cache_misses = meter.create_counter(
    name="category_cache_misses_total",
    description="Category list reads that had to query DynamoDB",
    unit="1",
)

workflow_step_failures = meter.create_counter(
    name="workflow_step_failures_total",
    description="Write workflow failures by workflow and failed step",
    unit="1",
)

cleanup_failures = meter.create_counter(
    name="best_effort_cleanup_failures_total",
    description="Best-effort cleanup calls that failed and were swallowed",
    unit="1",
)

ratings_submitted = meter.create_counter(
    name="ratings_submitted_total",
    description="Customer ratings submitted by star value",
    unit="1",
)


def record_cache_hit() -> None:
    """Record a category list read served from cache."""
    category_cache_hits.add(1)


def record_cache_miss() -> None:
    """Record a category list read that went to DynamoDB."""
    category_cache_misses.add(1)


def record_workflow_failure(workflow: str, step: str, partial: bool) -> None:
    """Record a write workflow that stopped at a step.

    Args:
        workflow: Workflow name (e.g. "create_item")
        step: The step that failed
        partial: Whether earlier steps had already been applied
    """
    workflow_step_failures.add(
        1, {"workflow": workflow, "step": step, "partial": str(partial).lower()}
    )


def record_cleanup_failure(operation: str) -> None:
    """Record a swallowed best-effort cleanup failure.

    Args:
        operation: Short description of what was being cleaned up
    """
    cleanup_failures.add(1, {"operation": operation})


def record_rating_submitted(rating: int) -> None:
    """Record a submitted rating.

    Args:
        rating: Star value between 1 and 5
    """
    ratings_submitted.add(1, {"rating": str(rating)})
