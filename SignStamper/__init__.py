"""
SignStamper - place a raster signature on a PDF page.

The placement UI reports where the signature's top-left corner was dropped in
a fixed-width viewport; this package converts that point into PDF page
coordinates, composites the image onto the page and returns the new PDF.

Library usage:

    from SignStamper import stamp
    signed = stamp(pdf_bytes, png_bytes, page_number=1, viewport_x=100, viewport_y=100)
"""

from .StampConfig import (
    StampConfig,
    StampError,
    InvalidInputError,
    DocumentParseError,
    ImageDecodeError,
    PageOutOfRangeError,
    SerializationError,
)
from .PlacementCalculator import ViewportPoint, PlacementRect, compute_placement
from .PDFStamper import PDFStamper, stamp
from .DocumentLibrary import (
    DocumentLibrary,
    DocumentRecord,
    DocumentStatus,
    LibraryError,
    DocumentNotFoundError,
    DocumentStateError,
)

__all__ = [
    "StampConfig",
    "StampError",
    "InvalidInputError",
    "DocumentParseError",
    "ImageDecodeError",
    "PageOutOfRangeError",
    "SerializationError",
    "ViewportPoint",
    "PlacementRect",
    "compute_placement",
    "PDFStamper",
    "stamp",
    "DocumentLibrary",
    "DocumentRecord",
    "DocumentStatus",
    "LibraryError",
    "DocumentNotFoundError",
    "DocumentStateError",
]
