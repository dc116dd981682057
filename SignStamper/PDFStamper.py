import io
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pypdf import PasswordType, PdfReader, PdfWriter, PageObject

from .PlacementCalculator import PlacementRect, ViewportPoint, compute_placement
from .SignatureRenderer import SignatureRenderer
from .StampConfig import (
    StampConfig,
    DocumentParseError,
    PageOutOfRangeError,
    SerializationError,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def pdf_date(moment: datetime) -> str:
    """Formats a datetime as a PDF date string (D:YYYYMMDDHHmmSS+00'00'), in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("D:%Y%m%d%H%M%S+00'00'")

# ==========================================
# PDF Stamper
# ==========================================

class PDFStamper:
    """
    Places a signature image on one page of a PDF and returns the new PDF.

    Responsibilities:
    1. Loading the source bytes (and decrypting them if needed).
    2. Validating the 1-based page number.
    3. Converting the viewport point into page coordinates.
    4. Merging the rendered signature overlay and writing metadata.

    The stamper keeps no per-call state, so one instance can serve
    concurrent calls. The clock only feeds /ModDate.
    """

    def __init__(self, config: Optional[StampConfig] = None, clock: Optional[Clock] = None):
        self.config = config or StampConfig()
        self.clock = clock or utc_now
        self.renderer = SignatureRenderer(self.config)

    def stamp(
        self,
        pdf_bytes: bytes,
        signature_image_bytes: bytes,
        page_number: int,
        viewport_x: float,
        viewport_y: float,
        password: Optional[str] = None,
    ) -> bytes:
        """Returns the bytes of a new PDF with the signature merged onto page_number."""
        with io.BytesIO(pdf_bytes) as source:
            reader = self._load(source, password)

            page_index = self._page_index(page_number, len(reader.pages))
            signature = self.renderer.decode_image(signature_image_bytes)

            writer = PdfWriter()
            for i, page in enumerate(reader.pages):
                # Merge onto the writer's copy, never the reader's page
                try:
                    target = writer.add_page(page)
                except Exception as e:
                    raise DocumentParseError(f"Failed to copy page {i + 1}: {e}") from e
                if i == page_index:
                    rect = self._apply_signature(target, signature, ViewportPoint(viewport_x, viewport_y))

            self._write_metadata(writer, reader)
            output = self._serialize(writer)

        logger.info(
            "stamped page %d/%d at (%.2f, %.2f) size %.2fx%.2f",
            page_number, len(reader.pages), rect.x, rect.y, rect.width, rect.height,
        )
        return output

    def _load(self, source: io.BytesIO, password: Optional[str]) -> PdfReader:
        """Parses the PDF and handles decryption if necessary."""
        try:
            reader = PdfReader(source)

            if reader.is_encrypted:
                # Empty password opens owner-restricted PDFs
                result = reader.decrypt(password if password is not None else "")
                if result == PasswordType.NOT_DECRYPTED:
                    raise DocumentParseError("PDF is encrypted. Please provide a valid password.")

            if len(reader.pages) == 0:
                raise DocumentParseError("PDF has no pages.")
        except DocumentParseError:
            raise
        except Exception as e:
            raise DocumentParseError(f"Failed to load PDF: {e}") from e

        return reader

    @staticmethod
    def _page_index(page_number: int, page_count: int) -> int:
        """Converts the 1-based page number into a checked 0-based index."""
        if isinstance(page_number, bool) or not isinstance(page_number, int):
            raise PageOutOfRangeError(f"Page number must be an integer, got {page_number!r}")
        if not 1 <= page_number <= page_count:
            raise PageOutOfRangeError(
                f"Page {page_number} is out of range; document has {page_count} page(s)"
            )
        return page_number - 1

    def _apply_signature(self, page: PageObject, signature, point: ViewportPoint) -> PlacementRect:
        """Merges the signature overlay on top of a single page."""
        try:
            box = page.mediabox
            # float() cast ensures compatibility with reportlab
            left, bottom = float(box.left), float(box.bottom)
            page_width, page_height = float(box.width), float(box.height)
        except Exception as e:
            raise DocumentParseError(f"Unreadable page geometry: {e}") from e

        rect = compute_placement(page_width, page_height, point, self.config)
        # Overlay content is in absolute user space; shift onto the visible box
        placed = PlacementRect(rect.x + left, rect.y + bottom, rect.width, rect.height)
        overlay = self.renderer.render_overlay(signature, placed, left + page_width, bottom + page_height)

        try:
            page.merge_page(overlay)
        except Exception as e:
            raise DocumentParseError(f"Failed to merge signature onto page: {e}") from e
        return placed

    def _write_metadata(self, writer: PdfWriter, reader: PdfReader):
        if reader.metadata:
            writer.add_metadata(reader.metadata)
        writer.add_metadata({
            "/Author": self.config.author,
            "/Producer": self.config.producer,
            "/ModDate": pdf_date(self.clock()),
        })

    @staticmethod
    def _serialize(writer: PdfWriter) -> bytes:
        try:
            with io.BytesIO() as out:
                writer.write(out)
                return out.getvalue()
        except Exception as e:
            raise SerializationError(f"Failed to write signed PDF: {e}") from e


def stamp(
    pdf_bytes: bytes,
    signature_image_bytes: bytes,
    page_number: int,
    viewport_x: float,
    viewport_y: float,
    *,
    config: Optional[StampConfig] = None,
    clock: Optional[Clock] = None,
    password: Optional[str] = None,
) -> bytes:
    """Stamps with a throwaway PDFStamper; see PDFStamper.stamp."""
    stamper = PDFStamper(config, clock)
    return stamper.stamp(pdf_bytes, signature_image_bytes, page_number,
                         viewport_x, viewport_y, password=password)
