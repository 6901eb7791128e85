"""S3-backed store for category and item images.

Images are addressed by object key and published under a public base URL
(the bucket's website/CDN origin). Deleting by URL maps the URL back to its
key by stripping that base and decoding the remaining path segment.
"""

import logging
import time
from collections.abc import Callable
from urllib.parse import quote, unquote, urlsplit

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3 import S3Client

from restaurant_menu_service.exceptions import InvalidUrlFormatError, RemoteUnavailableError
from restaurant_menu_service.models.image_models import ImageUpload

logger = logging.getLogger(__name__)

CATEGORY_IMAGE_PREFIX = "categories"
ITEM_IMAGE_PREFIX = "items"


def _now_millis() -> int:
    return int(time.time() * 1000)


def build_image_path(
    prefix: str,
    document_id: str,
    filename: str,
    clock: Callable[[], int] = _now_millis,
) -> str:
    """Derive the object key for an image upload.

    The key combines the owning document's id, the upload time in
    milliseconds and the original file extension, so repeated uploads for
    the same document never collide.

    Args:
        prefix: Key prefix ('categories' or 'items')
        document_id: Id of the category or item the image belongs to
        filename: Original file name
        clock: Millisecond clock, injectable for tests

    Returns:
        str: Object key such as 'items/abc123/1718000000000.png'
    """
    extension = filename.rsplit(".", 1)[-1]
    return f"{prefix}/{document_id}/{clock()}.{extension}"


class S3ImageStore:
    """Uploads and deletes menu images in an S3 bucket."""

    def __init__(self, s3_client: S3Client, bucket: str, public_base_url: str) -> None:
        """Initialize the image store.

        Args:
            s3_client: Boto3 S3 client
            bucket: Bucket holding the images
            public_base_url: URL prefix under which objects are publicly readable
        """
        self.s3 = s3_client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, key: str) -> str:
        """Return the public URL of an object key."""
        return f"{self.public_base_url}/{quote(key)}"

    def key_for_url(self, url: str) -> str:
        """Map a public image URL back to its object key.

        Raises:
            InvalidUrlFormatError: If the URL was not issued by this store
        """
        prefix = f"{self.public_base_url}/"
        if not url.startswith(prefix):
            raise InvalidUrlFormatError(f"Invalid storage URL format: {url}")

        encoded_path = urlsplit(url[len(prefix):]).path
        key = unquote(encoded_path)
        if not key:
            raise InvalidUrlFormatError(f"Invalid storage URL format: {url}")
        return key

    def upload_image(self, image: ImageUpload, path: str) -> str:
        """Upload image bytes to a key and return the public URL.

        Args:
            image: Validated image upload
            path: Object key, usually from build_image_path

        Returns:
            str: Public URL of the uploaded image

        Raises:
            ValidationFailedError: If the file is not an acceptable image
            RemoteUnavailableError: If the upload fails
        """
        image.validate_image()

        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=image.data,
                ContentType=image.content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload image to {path}: {e}")
            raise RemoteUnavailableError(f"Failed to upload image to {path}") from e

        logger.info(f"Uploaded image {path} ({len(image.data)} bytes)")
        return self.public_url(path)

    def delete_image(self, url: str) -> None:
        """Delete the object behind a public image URL.

        Raises:
            InvalidUrlFormatError: If the URL was not issued by this store
            RemoteUnavailableError: If the delete fails
        """
        key = self.key_for_url(url)

        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete image {key}: {e}")
            raise RemoteUnavailableError(f"Failed to delete image {key}") from e
