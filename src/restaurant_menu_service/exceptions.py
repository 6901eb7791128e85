"""Exception types for the menu content service.

Repositories translate SDK failures into these types, services and workflows
propagate them, and only the HTTP layer turns them into responses.
"""


class MenuServiceError(Exception):
    """Base class for all menu service errors."""


class RemoteUnavailableError(MenuServiceError):
    """A DynamoDB or S3 call failed (network, permissions, quota)."""


class NotFoundError(MenuServiceError):
    """A document that was expected to exist could not be found."""


class ValidationFailedError(MenuServiceError):
    """Input rejected at the service boundary."""


class InvalidUrlFormatError(ValidationFailedError):
    """An image URL does not belong to the configured object store."""


class WorkflowError(MenuServiceError):
    """A multi-step write workflow stopped part way through.

    Nothing that already completed is rolled back. The attributes tell an
    operator what exists now so it can be reconciled by hand.

    Attributes:
        workflow: Name of the workflow that failed (e.g. 'create_category')
        failed_step: The step that raised
        completed_steps: Steps that finished before the failure, in order
        document_id: Id of the document involved, if one exists
    """

    def __init__(
        self,
        workflow: str,
        failed_step: str,
        completed_steps: list[str],
        document_id: str | None,
        message: str,
    ) -> None:
        super().__init__(message)
        self.workflow = workflow
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.document_id = document_id

    @property
    def is_partial(self) -> bool:
        """Whether some steps had already been applied when the failure occurred."""
        return bool(self.completed_steps)
