"""
Signature Stamper - Configuration & Errors

Holds the exception hierarchy shared by every stage of the stamping pipeline
and the configuration object describing the reference viewport and the
signature footprint.

Geometry values are expressed in viewport units: the placement UI renders
pages at a fixed width (600 by default) and every coordinate it reports is
relative to that width.
"""

from dataclasses import dataclass
from typing import Tuple

# ==========================================
# Custom Exceptions
# ==========================================

class StampError(Exception):
    """Base exception for all stamping operations."""
    pass

class InvalidInputError(StampError):
    """Raised when configuration values are invalid."""
    pass

class DocumentParseError(StampError):
    """Raised when the source bytes are not a readable PDF."""
    pass

class ImageDecodeError(StampError):
    """Raised when the signature bytes are not a decodable raster image."""
    pass

class PageOutOfRangeError(StampError):
    """Raised when the requested page is outside [1, page_count]."""
    pass

class SerializationError(StampError):
    """Raised when the modified document cannot be written back out."""
    pass

# ==========================================
# Constants
# ==========================================

REFERENCE_VIEWPORT_WIDTH = 600.0
SIGNATURE_FOOTPRINT = (150.0, 50.0)

# ==========================================
# Configuration Data Class
# ==========================================

@dataclass(frozen=True)
class StampConfig:
    """
    Geometry and metadata settings for a stamping run.

    The footprint is the size the signature occupies in viewport units; the
    decoded image is stretched to it regardless of its pixel dimensions.
    """

    # --- Geometry (viewport units) ---
    viewport_width: float = REFERENCE_VIEWPORT_WIDTH
    footprint_width: float = SIGNATURE_FOOTPRINT[0]
    footprint_height: float = SIGNATURE_FOOTPRINT[1]

    # --- Document information ---
    author: str = "DocSigner App"
    producer: str = "SignStamper"

    # --- Accepted signature formats (Pillow format names) ---
    image_formats: Tuple[str, ...] = ("PNG", "JPEG")

    def __post_init__(self):
        """Validates configuration after initialization."""
        self._validate_geometry()
        self._validate_formats()

    def _validate_geometry(self):
        """Viewport width and footprint must be positive finite numbers."""
        for name in ("viewport_width", "footprint_width", "footprint_height"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidInputError(f"{name} must be a number, got {value!r}")
            if not (0.0 < float(value) < float("inf")):
                raise InvalidInputError(f"{name} must be a positive finite number, got {value}")

    def _validate_formats(self):
        if not self.image_formats:
            raise InvalidInputError("At least one signature image format must be accepted.")
        # Pillow reports formats upper-case
        object.__setattr__(self, "image_formats", tuple(f.upper() for f in self.image_formats))
