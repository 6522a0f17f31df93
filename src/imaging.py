"""Encoded rooftop image payloads for the upload and camera paths."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError


MAX_IMAGE_BYTES = 10 * 1024 * 1024
CAMERA_JPEG_QUALITY = 80
UPLOAD_FILE_TYPES = ["png", "jpg", "jpeg", "webp", "gif", "bmp"]


def format_megabytes(max_bytes: int) -> str:
    return f"{int(max_bytes) / (1024 * 1024):g}MB"


def too_large_message(max_bytes: int) -> str:
    return f"File size should be less than {format_megabytes(max_bytes)}"


IMAGE_TOO_LARGE_MESSAGE = too_large_message(MAX_IMAGE_BYTES)
IMAGE_INVALID_MESSAGE = "Please select a valid image file"


class ImageRejected(ValueError):
    """Raised when a candidate rooftop image fails the upload rules."""


@dataclass(frozen=True)
class ImagePayload:
    """A self-contained encoded image: MIME type plus raw bytes."""

    mime_type: str
    data: bytes
    source: str = "upload"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def _verify_image_bytes(data: bytes) -> str:
    try:
        with Image.open(BytesIO(data)) as img:
            fmt = str(img.format or "").upper()
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageRejected(IMAGE_INVALID_MESSAGE) from exc
    return fmt


def decode_upload(
    mime_type: str | None,
    data: bytes,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> ImagePayload:
    """Validate an uploaded file and wrap it as an ``ImagePayload``.

    Size is checked before type, so an oversized non-image reports the size error.
    """
    if len(data) > int(max_bytes):
        raise ImageRejected(too_large_message(max_bytes))
    mime = str(mime_type or "").strip().lower()
    if not mime.startswith("image/"):
        raise ImageRejected(IMAGE_INVALID_MESSAGE)
    _verify_image_bytes(data)
    return ImagePayload(mime_type=mime, data=bytes(data), source="upload")


def encode_camera_frame(frame: bytes, quality: int = CAMERA_JPEG_QUALITY) -> ImagePayload:
    """Re-encode a captured camera frame as JPEG."""
    try:
        with Image.open(BytesIO(frame)) as img:
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageRejected(IMAGE_INVALID_MESSAGE) from exc
    buf = BytesIO()
    rgb.save(buf, format="JPEG", quality=int(quality))
    return ImagePayload(mime_type="image/jpeg", data=buf.getvalue(), source="camera")


def to_jpeg_bytes(payload: ImagePayload) -> tuple[bytes, int, int]:
    """Return JPEG bytes and pixel size for embedding in documents."""
    with Image.open(BytesIO(payload.data)) as img:
        rgb = img.convert("RGB")
    buf = BytesIO()
    rgb.save(buf, format="JPEG", quality=CAMERA_JPEG_QUALITY)
    return buf.getvalue(), rgb.width, rgb.height
