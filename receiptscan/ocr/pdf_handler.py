"""Native text extraction and rasterization for PDF documents.

Reads the positioned characters of the first page and rebuilds reading
order from their coordinates, so words and lines are recovered without
relying on line-break markers in the source. When a PDF has no usable
text layer, the first page can be rendered to an image for OCR.
"""

import functools
import io
from dataclasses import dataclass

import numpy as np
import pdfplumber
from pdf2image import convert_from_bytes

from receiptscan.exceptions import AcquisitionError, PdfTextError
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

_POINTS_PER_INCH = 72


@dataclass(frozen=True)
class TextFragment:
    """A run of text at a position on the page (PDF units, origin bottom-left)."""

    text: str
    x: float
    y: float
    width: float


def reconstruct_text(
    fragments: list[TextFragment],
    line_threshold: float = 5.0,
    gap_threshold: float = 1.0,
) -> str:
    """Rebuild page text from positioned fragments.

    Fragments are ordered top to bottom, then left to right. A vertical jump
    larger than ``line_threshold`` starts a new line; a horizontal gap larger
    than ``gap_threshold`` between the end of one fragment and the start of
    the next inserts a single space.

    Args:
        fragments: Positioned text fragments from one page.
        line_threshold: Vertical distance that separates two lines.
        gap_threshold: Horizontal gap that separates two words.

    Returns:
        Reconstructed text with ``\\n`` between lines.
    """

    def reading_order(a: TextFragment, b: TextFragment) -> float:
        y_diff = b.y - a.y
        if abs(y_diff) > line_threshold:
            return y_diff
        return a.x - b.x

    ordered = sorted(fragments, key=functools.cmp_to_key(reading_order))

    parts: list[str] = []
    last: TextFragment | None = None
    for fragment in ordered:
        if last is not None:
            if abs(fragment.y - last.y) > line_threshold:
                parts.append("\n")
            elif fragment.x - (last.x + last.width) > gap_threshold:
                parts.append(" ")
        parts.append(fragment.text)
        last = fragment

    return "".join(parts)


class PDFHandler:
    """Reads or renders the first page of a PDF.

    Args:
        render_scale: Zoom factor for rasterization (1.0 renders at 72 DPI).
        line_threshold: Vertical distance that separates two text lines.
        gap_threshold: Horizontal gap that separates two words.
    """

    def __init__(
        self,
        render_scale: float = 1.5,
        line_threshold: float = 5.0,
        gap_threshold: float = 1.0,
    ) -> None:
        self.render_scale = render_scale
        self.line_threshold = line_threshold
        self.gap_threshold = gap_threshold

    @property
    def dpi(self) -> int:
        return round(_POINTS_PER_INCH * self.render_scale)

    def extract_text(self, pdf_bytes: bytes) -> str:
        """Extract the first page's text layer in reading order.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Reconstructed text, or an empty string for pages without text.

        Raises:
            PdfTextError: If the PDF cannot be opened or parsed
                (including encrypted documents).
        """
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                if not pdf.pages:
                    return ""
                chars = pdf.pages[0].chars
                fragments = [
                    TextFragment(
                        text=char["text"],
                        x=float(char["x0"]),
                        y=float(char["y0"]),
                        width=float(char["width"]),
                    )
                    for char in chars
                    if char.get("text")
                ]
        except Exception as exc:
            raise PdfTextError(f"PDF text extraction failed: {exc}") from exc

        text = reconstruct_text(fragments, self.line_threshold, self.gap_threshold)
        logger.info("Extracted %d characters from PDF text layer", len(text))
        return text

    def render_first_page(self, pdf_bytes: bytes) -> np.ndarray:
        """Rasterize the first page for OCR.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            RGB image as a numpy array.

        Raises:
            AcquisitionError: If the page cannot be rendered.
        """
        try:
            pages = convert_from_bytes(
                pdf_bytes, dpi=self.dpi, first_page=1, last_page=1
            )
        except Exception as exc:
            raise AcquisitionError(f"PDF rendering failed: {exc}") from exc

        if not pages:
            raise AcquisitionError("PDF rendering produced no pages")

        image = np.array(pages[0].convert("RGB"))
        logger.info("Rendered first PDF page at %d DPI", self.dpi)
        return image
