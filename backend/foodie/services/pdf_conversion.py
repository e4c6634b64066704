"""
Image to PDF conversion for recipe cards.

Recipe PDFs can be uploaded as a photo of the recipe card (JPEG). The photo
is placed on a single A4 page, centred inside a 20pt margin, and the page is
turned landscape for wide photos.
"""

from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError


# A4 in PDF points (1/72 inch)
A4_PORTRAIT = (595, 842)
A4_LANDSCAPE = (842, 595)
PAGE_MARGIN = 20
LANDSCAPE_ASPECT_RATIO = 1.2

# Pages are drawn at print resolution and saved with the same dpi, so the
# PDF page still measures A4 in points
PDF_RESOLUTION = 300.0
POINTS_PER_INCH = 72.0


def page_size_for(width: int, height: int) -> Tuple[int, int]:
    """A4 landscape for images wider than 1.2:1, portrait otherwise."""
    if height and width / height > LANDSCAPE_ASPECT_RATIO:
        return A4_LANDSCAPE
    return A4_PORTRAIT


def to_pixels(points: float) -> int:
    """Convert PDF points to pixels at the render resolution."""
    return int(round(points * PDF_RESOLUTION / POINTS_PER_INCH))


def fit_within(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """Scale (width, height) to fit the box, keeping the aspect ratio."""
    scale = min(max_width / width, max_height / height)
    return max(1, int(width * scale)), max(1, int(height * scale))


def image_to_pdf(image_bytes: bytes, title: str = "") -> bytes:
    """
    Convert a JPEG image into a one-page A4 PDF.

    Args:
        image_bytes: Raw image file contents
        title: PDF document title (usually the recipe name)

    Returns:
        PDF file contents

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Invalid image file: {e}")

    if image.mode != "RGB":
        image = image.convert("RGB")

    page_width, page_height = (to_pixels(size) for size in page_size_for(*image.size))
    margin = to_pixels(PAGE_MARGIN)
    target = fit_within(image.width, image.height, page_width - 2 * margin, page_height - 2 * margin)
    resized = image.resize(target, Image.Resampling.LANCZOS)

    page = Image.new("RGB", (page_width, page_height), "white")
    offset = ((page_width - target[0]) // 2, (page_height - target[1]) // 2)
    page.paste(resized, offset)

    output = BytesIO()
    page.save(output, format="PDF", resolution=PDF_RESOLUTION, title=title or "Recipe")
    return output.getvalue()
