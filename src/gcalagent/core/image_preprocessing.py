"""Image preprocessing for faster uploads and more reliable extraction.

Pillow is imported only inside the preprocessing functions.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

from gcalagent.config.constants import DEFAULT_IMAGE_MIME_TYPE
from gcalagent.core.gemini_client import ImagePayload

logger = logging.getLogger(__name__)


# Conservative defaults: reduce huge images without hurting flyer readability.
DEFAULT_MAX_EDGE_PX = 2560
DEFAULT_JPEG_QUALITY = 88
DEFAULT_MAX_BYTES = 2_500_000

# Leading bytes of the formats we can name without Pillow
_MAGIC_NUMBERS = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)

_PIL_FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Guess an image MIME type from its magic number."""
    for magic, mime in _MAGIC_NUMBERS:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def preprocess_image_bytes(
    data: bytes,
    mime_type: Optional[str] = None,
    *,
    max_edge_px: int = DEFAULT_MAX_EDGE_PX,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> ImagePayload:
    """Prepare raw image bytes for the vision model.

    Strategy:
    - Fix orientation via EXIF transpose.
    - Downscale only if the largest edge exceeds max_edge_px.
    - Preserve PNG for PNG inputs/alpha; otherwise write JPEG.
    - If nothing needed changing, or the result isn't smaller, keep original.

    Bytes that Pillow cannot decode are passed through with a sniffed (or
    default) MIME type; the model may still read formats Pillow lacks.

    Args:
        data: Raw image bytes.
        mime_type: Caller-provided MIME type (best-effort hint).
        max_edge_px: Maximum width/height of the output image.
        jpeg_quality: JPEG quality for lossy output.

    Returns:
        ImagePayload with the bytes and MIME type to send.
    """
    original_mime = (mime_type or sniff_mime_type(data) or DEFAULT_IMAGE_MIME_TYPE).lower()
    original = ImagePayload(data=data, mime_type=original_mime)

    from PIL import Image, ImageOps, UnidentifiedImageError

    try:
        with Image.open(io.BytesIO(data)) as image:
            detected_mime = _PIL_FORMAT_MIME.get(image.format or "", original_mime)
            original = ImagePayload(data=data, mime_type=detected_mime)

            if getattr(image, "is_animated", False):
                return original

            image = ImageOps.exif_transpose(image)

            resized = max(image.size) > max_edge_px
            if not resized and len(data) <= DEFAULT_MAX_BYTES:
                return original

            if resized:
                resample = getattr(Image, "Resampling", Image).LANCZOS
                image.thumbnail((max_edge_px, max_edge_px), resample=resample)

            has_alpha = image.mode in ("RGBA", "LA") or (
                image.mode == "P" and "transparency" in image.info
            )
            if has_alpha or detected_mime == "image/png":
                out_format, out_mime, save_kwargs = "PNG", "image/png", {}
            else:
                out_format, out_mime = "JPEG", "image/jpeg"
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                save_kwargs = {
                    "quality": jpeg_quality,
                    "optimize": True,
                    "progressive": True,
                }

            buffer = io.BytesIO()
            image.save(buffer, format=out_format, **save_kwargs)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("Image preprocessing failed, sending original bytes: %s", exc)
        return original

    output = buffer.getvalue()
    if not resized and len(output) >= len(data):
        return original

    logger.debug(
        "Preprocessed image: %d -> %d bytes (%s)", len(data), len(output), out_mime
    )
    return ImagePayload(data=output, mime_type=out_mime)
