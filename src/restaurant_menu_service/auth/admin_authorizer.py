"""Authorization predicates for the admin routes.

Admin pages are reached through a URL containing a secret path segment.
Anyone who learns the URL (browser history, shared links, proxy logs) has
full admin access: this is an obscurity gate, not a security boundary.
Real authentication can be added by implementing AdminAuthorizer without
touching the routes.
"""

from abc import ABC, abstractmethod


class AdminAuthorizer(ABC):
    """Decides whether a request may use the admin routes."""

    @abstractmethod
    def is_authorized(self, path_token: str) -> bool:
        """Return True if the path token grants admin access.

        Args:
            path_token: The secret segment taken from the admin URL
        """


class SecretPathAuthorizer(AdminAuthorizer):
    """Grants access when the path token exactly equals a configured secret."""

    def __init__(self, secret: str) -> None:
        """Initialize with the configured admin secret.

        Args:
            secret: Expected path segment

        Raises:
            ValueError: If the secret is empty
        """
        if not secret:
            raise ValueError("An admin secret must be provided")

        self.secret = secret

    def is_authorized(self, path_token: str) -> bool:
        """Compare the token with the secret by exact string equality."""
        return path_token == self.secret
