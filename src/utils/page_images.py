"""Page-image helpers: spread detection, spread splitting and naming.

Magazine scans mix single pages with two-page spreads.  A rendered page
wider than ``spread_threshold`` times its height is treated as a spread and
cut vertically at ``floor(width / 2)``; the two halves' widths always sum
to the original width.
"""

from __future__ import annotations

import io

from PIL import Image

DEFAULT_SPREAD_THRESHOLD = 1.2


def detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with 89 50 4E 47 0D 0A 1A 0A, WEBP with RIFF....WEBP and
    JPEG with FF D8.  Anything else is assumed to be PNG, the format pages
    are rendered in.
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    return "image/png"


def is_spread(width: int, height: int, threshold: float = DEFAULT_SPREAD_THRESHOLD) -> bool:
    """Return ``True`` when a page of this size is a two-page spread."""
    if height <= 0:
        return False
    return width / height > threshold


def split_spread(image: Image.Image) -> tuple[Image.Image, Image.Image]:
    """Cut a spread into its left and right pages.

    The left half covers ``[0, floor(w/2))`` and the right half
    ``[floor(w/2), w)``, so an odd pixel column goes to the right page.
    """
    width, height = image.size
    half = width // 2
    left = image.crop((0, 0, half, height))
    right = image.crop((half, 0, width, height))
    return left, right


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def page_filename(page_number: int) -> str:
    """``page-001.png`` style file name for a logical page."""
    return f"page-{page_number:03d}.png"


def page_web_path(pages_subdir: str, magazine_id: int, page_number: int) -> str:
    """Path of a page image relative to the web root, e.g. ``/pages/7/page-001.png``."""
    return f"/{pages_subdir.strip('/')}/{magazine_id}/{page_filename(page_number)}"
