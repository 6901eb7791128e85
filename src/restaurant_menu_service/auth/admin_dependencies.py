"""FastAPI dependency guarding the secret-path admin routes."""

from fastapi import HTTPException, status

from restaurant_menu_service.auth.admin_authorizer import AdminAuthorizer


def require_admin_secret(secret: str, authorizer: AdminAuthorizer) -> str:
    """Check the secret path segment of an admin request.

    Mirrors the admin site's behaviour of sending unknown visitors back to the
    home page: on mismatch the request is redirected to ``/`` instead of
    receiving an authentication error.

    Args:
        secret: The ``{secret}`` path parameter
        authorizer: Predicate deciding whether the segment is valid

    Returns:
        str: The accepted secret

    Raises:
        HTTPException: 307 redirect to ``/`` if the segment is not accepted
    """
    if not secret or not authorizer.is_authorized(secret):
        raise HTTPException(
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
            detail="Not found",
            headers={"Location": "/"},
        )

    return secret
