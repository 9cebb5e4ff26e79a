"""
Disk storage for item photos and PDF receipts.

Photos are normalised with Pillow: EXIF orientation applied, shrunk to fit
inside 800x600 (never enlarged) and re-encoded as WEBP. Receipts are stored
as-is.
"""

import logging
import os
import random
import re
import time
from io import BytesIO
from typing import Dict, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

PHOTO_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
RECEIPT_CONTENT_TYPE = "application/pdf"
MAX_RECEIPTS_PER_REQUEST = 10

PHOTO_MAX_SIZE = (800, 600)
PHOTO_WEBP_QUALITY = 85

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class UploadError(ValueError):
    pass


def sanitize_filename(name: Optional[str]) -> str:
    safe = _UNSAFE_CHARS.sub("_", os.path.basename(name or ""))
    return safe or "upload"


def unique_filename(original_name: Optional[str]) -> str:
    millis = int(time.time() * 1000)
    return f"{millis}-{random.randint(0, 10**9)}-{sanitize_filename(original_name)}"


def _check_size(data: bytes, max_bytes: int, label: str) -> None:
    if not data:
        raise UploadError(f"{label} is empty")
    if len(data) > max_bytes:
        raise UploadError(f"{label} must be smaller than {max_bytes // (1024 * 1024)}MB")


def save_photo(data: bytes, content_type: Optional[str], original_name: Optional[str], photos_dir: str, max_bytes: int) -> str:
    """Resize and store a photo, returning the stored WEBP filename."""
    content_type = (content_type or "").strip().lower()
    if content_type not in PHOTO_CONTENT_TYPES:
        raise UploadError("Only JPEG/PNG/WEBP images are allowed")
    _check_size(data, max_bytes, "Photo")

    try:
        with Image.open(BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            img.thumbnail(PHOTO_MAX_SIZE)
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")

            stem = os.path.splitext(unique_filename(original_name))[0]
            filename = f"{stem}.webp"
            os.makedirs(photos_dir, exist_ok=True)
            img.save(os.path.join(photos_dir, filename), "WEBP", quality=PHOTO_WEBP_QUALITY)
    except (UnidentifiedImageError, OSError) as e:
        logger.error("Photo processing failed for %s: %s", original_name, e)
        raise UploadError("Uploaded photo could not be processed") from e

    return filename


def save_receipt(data: bytes, content_type: Optional[str], original_name: Optional[str], receipts_dir: str, max_bytes: int) -> Dict:
    """Store a PDF receipt and return the metadata row to persist."""
    content_type = (content_type or "").strip().lower()
    if content_type != RECEIPT_CONTENT_TYPE:
        raise UploadError("Only PDF files are allowed")
    _check_size(data, max_bytes, "Receipt")

    filename = unique_filename(original_name)
    os.makedirs(receipts_dir, exist_ok=True)
    with open(os.path.join(receipts_dir, filename), "wb") as f:
        f.write(data)

    return {
        "filename": filename,
        "original_name": original_name or filename,
        "mime_type": content_type,
        "size_bytes": len(data),
    }


def remove_file(directory: str, filename: Optional[str]) -> bool:
    """Delete a stored upload; failures are logged, not raised."""
    if not filename:
        return False
    path = os.path.join(directory, os.path.basename(filename))
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to delete %s: %s", path, e)
        return False


def stored_path(directory: str, filename: str) -> Optional[str]:
    """Resolve a stored upload by name, refusing anything outside `directory`."""
    safe = os.path.basename(filename or "")
    if not safe or safe != filename:
        return None
    path = os.path.join(directory, safe)
    return path if os.path.isfile(path) else None
