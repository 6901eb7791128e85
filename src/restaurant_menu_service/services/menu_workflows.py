"""Multi-step write workflows that keep documents and images in step.

An image's object key is derived from the id of the document it belongs
to, and that id only exists once the document has been created. Creating
a category or item with an image is therefore a sequence of separate
writes with no transaction around them:

    1. create the document with an empty image field
    2. upload the image under a key derived from the new id
    3. update the document with the public image URL

If step 2 or 3 fails the document stays behind without its image. Edits
delete the old image before uploading the new one, moving an item to
another category creates the copy before deleting the source item (a failure
in between leaves the item in both categories), and deletes remove the
image before the document. None of these windows are compensated: each
failure is raised as a WorkflowError naming the failed step and the steps
already applied so an operator can reconcile by hand.

Old-image deletion is best effort. Its failure is logged and reported in
``WorkflowResult.orphaned_images`` but never blocks the write.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from restaurant_menu_service.exceptions import NotFoundError, WorkflowError
from restaurant_menu_service.models.image_models import ImageUpload
from restaurant_menu_service.models.menu_models import (
    CategoryData,
    CategoryUpdate,
    MenuItem,
    MenuItemData,
    MenuItemUpdate,
)
from restaurant_menu_service.observability import traced
from restaurant_menu_service.observability.metrics import record_workflow_failure
from restaurant_menu_service.repositories.image_store import (
    CATEGORY_IMAGE_PREFIX,
    ITEM_IMAGE_PREFIX,
    S3ImageStore,
    build_image_path,
)
from restaurant_menu_service.services.cleanup import best_effort
from restaurant_menu_service.services.content_service import ContentService

logger = logging.getLogger(__name__)


class WorkflowStep(str, Enum):
    """Named outcomes of the individual workflow steps."""

    DOCUMENT_CREATED = "document_created"
    IMAGE_UPLOADED = "image_uploaded"
    DOCUMENT_FINALIZED = "document_finalized"
    OLD_IMAGE_DELETED = "old_image_deleted"
    ITEM_MOVED = "item_moved"
    SOURCE_ITEM_DELETED = "source_item_deleted"
    IMAGE_DELETED = "image_deleted"
    DOCUMENT_DELETED = "document_deleted"


@dataclass
class WorkflowResult:
    """Outcome of a workflow that ran to completion.

    Attributes:
        document_id: Id of the category or item that was written
        completed_steps: Steps that were applied, in order
        image_url: Image URL the document ends up with, if it changed
        orphaned_images: Image URLs whose best-effort deletion failed
    """

    document_id: str
    completed_steps: list[WorkflowStep] = field(default_factory=list)
    image_url: str | None = None
    orphaned_images: list[str] = field(default_factory=list)


class _WorkflowRun:
    """Tracks the steps of one workflow invocation."""

    def __init__(
        self,
        workflow: str,
        delete_image: Callable[[str], Any],
        document_id: str | None = None,
    ) -> None:
        self.workflow = workflow
        self._delete_image = delete_image
        self.document_id = document_id
        self.completed: list[WorkflowStep] = []
        self.image_url: str | None = None
        self.orphaned_images: list[str] = []

    async def step(self, step: WorkflowStep, func: Callable[..., Any], *args: Any) -> Any:
        """Run one step, converting any failure into a WorkflowError."""
        try:
            result = func(*args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise self._failure(step, e) from e

        self.completed.append(step)
        return result

    async def cleanup_image(self, url: str, step: WorkflowStep) -> None:
        """Best-effort delete of an image that is no longer referenced."""
        if await best_effort(f"{self.workflow} image deletion", self._delete_image, url):
            self.completed.append(step)
        else:
            self.orphaned_images.append(url)

    def result(self, document_id: str) -> WorkflowResult:
        return WorkflowResult(
            document_id=document_id,
            completed_steps=list(self.completed),
            image_url=self.image_url,
            orphaned_images=list(self.orphaned_images),
        )

    def _failure(self, step: WorkflowStep, error: Exception) -> WorkflowError:
        completed = [s.value for s in self.completed]
        logger.error(
            f"Workflow {self.workflow} failed at step {step.value} "
            f"(document: {self.document_id}, completed: {completed}): {error}"
        )
        record_workflow_failure(self.workflow, step.value, partial=bool(completed))
        return WorkflowError(
            workflow=self.workflow,
            failed_step=step.value,
            completed_steps=completed,
            document_id=self.document_id,
            message=f"{self.workflow} failed at {step.value}: {error}",
        )


class MenuWorkflows:
    """Create, edit and delete categories and items together with their images."""

    def __init__(
        self,
        content_service: ContentService,
        image_store: S3ImageStore,
        path_builder: Callable[[str, str, str], str] = build_image_path,
    ) -> None:
        """Initialize the workflows.

        Args:
            content_service: Service used for every document write
            image_store: Store for category and item images
            path_builder: Derives an object key from (prefix, document id, file name)
        """
        self.content_service = content_service
        self.image_store = image_store
        self.path_builder = path_builder

    def _start(self, workflow: str, document_id: str | None = None) -> _WorkflowRun:
        return _WorkflowRun(workflow, self.image_store.delete_image, document_id)

    async def _upload(
        self, run: _WorkflowRun, prefix: str, document_id: str, image: ImageUpload
    ) -> str:
        path = self.path_builder(prefix, document_id, image.filename)
        url: str = await run.step(WorkflowStep.IMAGE_UPLOADED, self.image_store.upload_image, image, path)
        run.image_url = url
        return url

    @traced("create_category_workflow")
    async def create_category(
        self, data: CategoryData, image: ImageUpload | None = None
    ) -> WorkflowResult:
        """Create a category and, when given, upload its main image.

        Args:
            data: Category record; order is auto-assigned when omitted
            image: Optional main image

        Returns:
            WorkflowResult for the new category

        Raises:
            ValidationFailedError: If the image is unacceptable (nothing is written)
            WorkflowError: If a step fails
        """
        if image is not None:
            image.validate_image()
            data = data.model_copy(update={"main_image": ""})

        run = self._start("create_category")
        category_id: str = await run.step(
            WorkflowStep.DOCUMENT_CREATED, self.content_service.create_category, data
        )
        run.document_id = category_id

        if image is None:
            return run.result(category_id)

        url = await self._upload(run, CATEGORY_IMAGE_PREFIX, category_id, image)
        await run.step(
            WorkflowStep.DOCUMENT_FINALIZED,
            self.content_service.update_category,
            category_id,
            CategoryUpdate(main_image=url),
        )

        logger.info(f"Created category {category_id} with image {url}")
        return run.result(category_id)

    @traced("update_category_workflow")
    async def update_category(
        self, category_id: str, update: CategoryUpdate, image: ImageUpload | None = None
    ) -> WorkflowResult:
        """Update a category, replacing its main image when a new one is given.

        Without a new image the stored image URL is left as it is.

        Raises:
            NotFoundError: If the category does not exist (nothing is written)
            WorkflowError: If a step fails
        """
        if image is not None:
            image.validate_image()

        current = await self.content_service.get_category(category_id)
        if current is None:
            raise NotFoundError(f"Category {category_id} not found")

        run = self._start("update_category", category_id)

        if image is not None:
            if current.main_image:
                await run.cleanup_image(current.main_image, WorkflowStep.OLD_IMAGE_DELETED)
            url = await self._upload(run, CATEGORY_IMAGE_PREFIX, category_id, image)
            update = CategoryUpdate(**{**update.model_dump(exclude_unset=True), "main_image": url})

        await run.step(
            WorkflowStep.DOCUMENT_FINALIZED,
            self.content_service.update_category,
            category_id,
            update,
        )
        return run.result(category_id)

    @traced("delete_category_workflow")
    async def delete_category(self, category_id: str) -> WorkflowResult:
        """Delete a category's main image (best effort), its items, then the category.

        Raises:
            NotFoundError: If the category does not exist
            WorkflowError: If deleting the documents fails
        """
        current = await self.content_service.get_category(category_id)
        if current is None:
            raise NotFoundError(f"Category {category_id} not found")

        run = self._start("delete_category", category_id)

        if current.main_image:
            await run.cleanup_image(current.main_image, WorkflowStep.IMAGE_DELETED)

        await run.step(
            WorkflowStep.DOCUMENT_DELETED, self.content_service.delete_category, category_id
        )
        return run.result(category_id)

    @traced("create_item_workflow")
    async def create_item(
        self, category_id: str, data: MenuItemData, image: ImageUpload | None = None
    ) -> WorkflowResult:
        """Create an item in a category and, when given, upload its image.

        Raises:
            ValidationFailedError: If the image is unacceptable (nothing is written)
            NotFoundError: If the category does not exist (nothing is written)
            WorkflowError: If a step fails
        """
        if image is not None:
            image.validate_image()
            data = data.model_copy(update={"image": ""})

        if not await self.content_service.category_exists(category_id):
            raise NotFoundError(f"Category {category_id} not found")

        run = self._start("create_item")
        item_id: str = await run.step(
            WorkflowStep.DOCUMENT_CREATED, self.content_service.create_item, category_id, data
        )
        run.document_id = item_id

        if image is None:
            return run.result(item_id)

        url = await self._upload(run, ITEM_IMAGE_PREFIX, item_id, image)
        await run.step(
            WorkflowStep.DOCUMENT_FINALIZED,
            self.content_service.update_item,
            category_id,
            item_id,
            MenuItemUpdate(image=url),
        )

        logger.info(f"Created item {item_id} in category {category_id} with image {url}")
        return run.result(item_id)

    @traced("update_item_workflow")
    async def update_item(
        self,
        category_id: str,
        item_id: str,
        update: MenuItemUpdate,
        image: ImageUpload | None = None,
        new_category_id: str | None = None,
    ) -> WorkflowResult:
        """Update an item, optionally replacing its image and moving it to another category.

        Moving creates a copy in the destination category (with the next
        order value there) and then deletes the source item, so the returned
        document id is the id of the copy. If the delete fails the item is
        left in both categories.

        Raises:
            NotFoundError: If the item or the destination category does not exist
            WorkflowError: If a step fails
        """
        if image is not None:
            image.validate_image()

        current = await self.content_service.get_item(category_id, item_id)
        if current is None:
            raise NotFoundError(f"Item {item_id} not found in category {category_id}")

        destination: str | None = None
        if new_category_id is not None and new_category_id != category_id:
            if not await self.content_service.category_exists(new_category_id):
                raise NotFoundError(f"Category {new_category_id} not found")
            destination = new_category_id

        run = self._start("update_item", item_id)

        if image is not None:
            if current.image:
                await run.cleanup_image(current.image, WorkflowStep.OLD_IMAGE_DELETED)
            url = await self._upload(run, ITEM_IMAGE_PREFIX, item_id, image)
            update = MenuItemUpdate(**{**update.model_dump(exclude_unset=True), "image": url})

        if destination is None:
            await run.step(
                WorkflowStep.DOCUMENT_FINALIZED,
                self.content_service.update_item,
                category_id,
                item_id,
                update,
            )
            return run.result(item_id)

        moved_id: str = await run.step(
            WorkflowStep.ITEM_MOVED,
            self._copy_to_category,
            destination,
            update,
            current,
        )
        run.document_id = moved_id
        await run.step(
            WorkflowStep.SOURCE_ITEM_DELETED,
            self.content_service.delete_item,
            category_id,
            item_id,
        )

        logger.info(
            f"Moved item {item_id} from category {category_id} "
            f"to {destination} as {moved_id}"
        )
        return run.result(moved_id)

    async def _copy_to_category(
        self, category_id: str, update: MenuItemUpdate, current: MenuItem
    ) -> str:
        data = update.to_item_data(current)
        order = await self.content_service.next_item_order(category_id)
        return await self.content_service.create_item(
            category_id, data.model_copy(update={"order": order})
        )

    @traced("delete_item_workflow")
    async def delete_item(self, category_id: str, item_id: str) -> WorkflowResult:
        """Delete an item's image (best effort), then the item.

        Raises:
            NotFoundError: If the item does not exist
            WorkflowError: If deleting the document fails
        """
        current = await self.content_service.get_item(category_id, item_id)
        if current is None:
            raise NotFoundError(f"Item {item_id} not found in category {category_id}")

        run = self._start("delete_item", item_id)

        if current.image:
            await run.cleanup_image(current.image, WorkflowStep.IMAGE_DELETED)

        await run.step(
            WorkflowStep.DOCUMENT_DELETED, self.content_service.delete_item, category_id, item_id
        )
        return run.result(item_id)
