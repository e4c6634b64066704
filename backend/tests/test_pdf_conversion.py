"""Tests for JPEG to PDF conversion."""

import re
from io import BytesIO

import pytest
from PIL import Image

from foodie.services.pdf_conversion import (
    A4_LANDSCAPE,
    A4_PORTRAIT,
    fit_within,
    image_to_pdf,
    page_size_for,
    to_pixels,
)


def _jpeg(width, height):
    buffer = BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()


def test_page_orientation():
    assert page_size_for(1300, 1000) == A4_LANDSCAPE
    assert page_size_for(1000, 1000) == A4_PORTRAIT
    assert page_size_for(800, 1200) == A4_PORTRAIT


def test_fit_within_keeps_aspect_ratio():
    assert fit_within(2000, 1000, 800, 800) == (800, 400)
    assert fit_within(100, 400, 555, 802) == (200, 802)


def test_image_to_pdf_produces_pdf():
    pdf = image_to_pdf(_jpeg(640, 480), title="Chicken Curry")
    assert pdf.startswith(b"%PDF")


def test_image_to_pdf_rejects_garbage():
    with pytest.raises(ValueError):
        image_to_pdf(b"definitely not an image")


def _media_box(pdf):
    match = re.search(rb"/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]", pdf)
    return float(match.group(1)), float(match.group(2))


def test_to_pixels_uses_print_resolution():
    assert to_pixels(72) == 300
    assert (to_pixels(595), to_pixels(842)) == (2479, 3508)


def test_pdf_page_is_a4_in_points_at_300_dpi():
    pdf = image_to_pdf(_jpeg(640, 480))
    width, height = _media_box(pdf)
    assert abs(width - 595) < 1 and abs(height - 842) < 1
    assert b"/Width 2479" in pdf
    assert b"/Height 3508" in pdf


def test_wide_image_gets_landscape_page():
    width, height = _media_box(image_to_pdf(_jpeg(1600, 900)))
    assert abs(width - 842) < 1 and abs(height - 595) < 1
