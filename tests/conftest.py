import io
from datetime import datetime, timezone

import pytest
from PIL import Image
from reportlab.lib.pagesizes import A4, letter
from reportlab.pdfgen import canvas

FIXED_TIME = datetime(2024, 3, 1, 12, 30, 45, tzinfo=timezone.utc)


def make_pdf(*page_sizes, title=None) -> bytes:
    """Builds a PDF with one page per (width, height) entry."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, invariant=1)
    if title:
        c.setTitle(title)
    for i, size in enumerate(page_sizes):
        c.setPageSize(size)
        c.drawString(72, 72, f"Page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image(fmt="PNG", size=(300, 100), mode="RGBA") -> bytes:
    color = (10, 20, 200, 255) if mode == "RGBA" else (10, 20, 200)
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def letter_pdf() -> bytes:
    return make_pdf(letter)


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf(letter, A4, letter, title="Contract")


@pytest.fixture
def signature_png() -> bytes:
    return make_image()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME
