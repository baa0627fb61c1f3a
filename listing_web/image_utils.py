"""Label photo handling.

Decodes the uploaded photo, enforces the size limit, and converts it to PNG
so any format the browser sends (including HEIC from phones) can be attached
to the model request.
"""

import base64
import binascii
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from .config import MAX_IMAGE_SIZE
from .logging_utils import log_interaction
from .models import LabelImage

__all__ = ["process_label_image", "MAX_IMAGE_SIZE", "UNREADABLE_IMAGE_MESSAGE"]

UNREADABLE_IMAGE_MESSAGE = "Could not read the label image. Please upload a JPEG, PNG or HEIC photo."

register_heif_opener()


def _strip_data_url(raw: str) -> Optional[str]:
    """Return the base64 payload of a data URL, or the input unchanged."""
    if not raw.startswith("data:"):
        return raw
    # Format: data:image/jpeg;base64,/9j/4AAQ...
    _, sep, payload = raw.partition(",")
    return payload if sep else None


def process_label_image(
    image_base64: Optional[str],
) -> Tuple[Optional[LabelImage], Optional[str]]:
    """Decode and normalize an uploaded label photo.

    Args:
        image_base64: Base64 string, with or without a data URL prefix.

    Returns:
        Tuple of (image, error_message).
        - If successful: (LabelImage with PNG bytes, None)
        - If there is no image: (None, None)
        - If it is too large or cannot be read: (None, "error message for user")
    """
    if not image_base64:
        return None, None
    if not isinstance(image_base64, str):
        return None, UNREADABLE_IMAGE_MESSAGE

    raw = image_base64.strip()
    if not raw:
        return None, None

    clean = _strip_data_url(raw)
    if not clean:
        log_interaction("image_processing_error", {"error": "empty data URL payload"})
        return None, UNREADABLE_IMAGE_MESSAGE

    try:
        decoded = base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError):
        log_interaction("image_processing_error", {"error": "invalid base64 payload"})
        return None, UNREADABLE_IMAGE_MESSAGE

    if len(decoded) > MAX_IMAGE_SIZE:
        size_mb = len(decoded) / (1024 * 1024)
        return None, f"Image too large ({size_mb:.1f}MB). Please use an image smaller than 5MB."

    try:
        img = Image.open(BytesIO(decoded))

        # Flatten transparency onto white; the model reads labels better without alpha
        if img.mode in ("RGBA", "LA", "P"):
            if img.mode == "P":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        output = BytesIO()
        img.save(output, format="PNG")
        png_data = output.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        log_interaction("image_processing_error", {"error": str(e)})
        return None, UNREADABLE_IMAGE_MESSAGE

    if len(png_data) > MAX_IMAGE_SIZE:
        size_mb = len(png_data) / (1024 * 1024)
        return None, f"Image too large after processing ({size_mb:.1f}MB). Please use a smaller image."

    return LabelImage(data=png_data, mime_type="image/png"), None
