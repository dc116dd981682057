import logging
import math
from dataclasses import dataclass

from .StampConfig import StampConfig

logger = logging.getLogger(__name__)

# ==========================================
# Placement Geometry
# ==========================================

@dataclass(frozen=True)
class ViewportPoint:
    """A point reported by the placement UI. Origin top-left, y grows downward."""
    x: float
    y: float


@dataclass(frozen=True)
class PlacementRect:
    """Where the signature lands on the page, in PDF points. Origin bottom-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height


def clamp(value: float, lower: float, upper: float) -> float:
    """
    Constrains value to [lower, upper].

    An inverted range (upper < lower) pins to lower, and so does NaN.
    """
    if math.isnan(value):
        return lower
    return max(lower, min(value, upper))


def compute_placement(
    page_width: float,
    page_height: float,
    point: ViewportPoint,
    config: StampConfig = StampConfig(),
) -> PlacementRect:
    """
    Converts a viewport point into a clamped rectangle on a PDF page.

    Steps:
    1. Scale viewport units to points using page_width / viewport_width.
    2. Scale the fixed footprint by the same ratio.
    3. Flip the y axis (viewport top-left -> PDF bottom-left); the point marks
       the top-left corner of the signature so the footprint height is
       subtracted as well.
    4. Clamp so the rectangle stays on the page. If the footprint is larger
       than the page the coordinate is pinned to 0.
    """
    ratio = page_width / config.viewport_width

    scaled_x = point.x * ratio
    scaled_y = point.y * ratio

    sig_width = config.footprint_width * ratio
    sig_height = config.footprint_height * ratio

    raw_y = page_height - scaled_y - sig_height

    final_x = clamp(scaled_x, 0.0, page_width - sig_width)
    final_y = clamp(raw_y, 0.0, page_height - sig_height)

    logger.debug(
        "placement: ratio=%s scaled=(%s, %s) raw_y=%s final=(%s, %s) size=(%s, %s)",
        ratio, scaled_x, scaled_y, raw_y, final_x, final_y, sig_width, sig_height,
    )
    return PlacementRect(final_x, final_y, sig_width, sig_height)
