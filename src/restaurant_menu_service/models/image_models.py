"""Image upload model."""

from pydantic import BaseModel, Field

from restaurant_menu_service.exceptions import ValidationFailedError

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class ImageUpload(BaseModel):
    """An image file received from the admin forms."""

    filename: str = Field(..., description="Original file name, used for its extension")
    content_type: str = Field(..., description="MIME type reported by the client")
    data: bytes = Field(..., description="Raw file bytes")

    def validate_image(self) -> None:
        """Check the upload before any workflow step runs.

        Raises:
            ValidationFailedError: If the file is empty, not an image, or over 10 MiB
        """
        if not self.content_type.startswith("image/"):
            raise ValidationFailedError("File must be an image")
        if not self.data:
            raise ValidationFailedError("Image file is empty")
        if len(self.data) > MAX_IMAGE_BYTES:
            raise ValidationFailedError("Image size must be less than 10MB")
