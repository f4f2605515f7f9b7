"""Caller-side checks run before a photo upload is submitted."""

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/webp",
    }
)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class UploadRejected(ValueError):
    """The selected file cannot be uploaded."""


def validate_upload(content_type: str, size: int) -> None:
    """Raise UploadRejected unless the file is an accepted image under the limit."""
    if content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise UploadRejected(
            "Please select a valid image file (JPEG, PNG, GIF, BMP, WebP)"
        )
    if size <= 0:
        raise UploadRejected("The selected file is empty")
    if size > MAX_UPLOAD_BYTES:
        raise UploadRejected("File size must be less than 10MB")
