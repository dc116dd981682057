import io
import logging

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader, PageObject
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .PlacementCalculator import PlacementRect
from .StampConfig import StampConfig, ImageDecodeError

logger = logging.getLogger(__name__)

# ==========================================
# Signature Renderer
# ==========================================

class SignatureRenderer:
    """
    Builds the overlay page that carries the signature image.

    This class is responsible for:
    1. Decoding the signature bytes with Pillow (alpha preserved).
    2. Creating an in-memory, page-sized PDF with ReportLab.
    3. Drawing the image stretched to the placement rectangle.
    """

    def __init__(self, config: StampConfig):
        self.config = config

    def decode_image(self, image_bytes: bytes) -> Image.Image:
        """Decodes and fully loads the signature, returning an RGBA copy."""
        if not image_bytes:
            raise ImageDecodeError("Signature image is empty.")

        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                if img.format not in self.config.image_formats:
                    raise ImageDecodeError(
                        f"Unsupported signature format {img.format!r}; "
                        f"expected one of {', '.join(self.config.image_formats)}"
                    )
                img.load()
                return img.convert("RGBA")
        except ImageDecodeError:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise ImageDecodeError(f"Failed to decode signature image: {e}") from e

    def render_overlay(
        self,
        image: Image.Image,
        rect: PlacementRect,
        page_width: float,
        page_height: float,
    ) -> PageObject:
        """Draws the image on a fresh page of the target page's size."""
        packet = io.BytesIO()

        # invariant=1 keeps ReportLab from embedding the current time and a random ID
        c = canvas.Canvas(packet, pagesize=(page_width, page_height), invariant=1)
        c.drawImage(
            ImageReader(image),
            rect.x,
            rect.y,
            width=rect.width,
            height=rect.height,
            mask="auto",
            preserveAspectRatio=False,
        )
        c.save()
        packet.seek(0)

        logger.debug("rendered overlay %sx%s with image at %s", page_width, page_height, rect)
        return PdfReader(packet).pages[0]
