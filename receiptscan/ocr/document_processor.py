"""Unified text acquisition for PDFs and images.

PDFs are read through their native text layer first; when that yields
nothing the first page is rendered and sent through OCR. Images go straight
to OCR. Either way the caller receives a single :class:`ExtractedText`.
"""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from receiptscan.exceptions import AcquisitionError, PdfTextError
from receiptscan.models import ExtractedText, MediaKind, RawDocument
from receiptscan.preprocessing.pipeline import PreprocessingPipeline
from receiptscan.utils.config import AppConfig
from receiptscan.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .tesseract_engine import TesseractEngine
from .worker_pool import OCRWorkerPool

logger = get_logger(__name__)


class DocumentProcessor:
    """Turns a :class:`RawDocument` into readable text.

    Holds the OCR worker pool, so one processor should be shared by every
    caller that needs OCR.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(
            render_scale=config.pdf.render_scale,
            line_threshold=config.pdf.line_break_threshold,
            gap_threshold=config.pdf.word_gap_threshold,
        )
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.pool: OCRWorkerPool[TesseractEngine] = OCRWorkerPool(
            self._new_engine, capacity=config.ocr.pool_size
        )

    def acquire(self, document: RawDocument) -> ExtractedText:
        """Extract the readable text of a document.

        Args:
            document: The uploaded document.

        Returns:
            Extracted text; ``confidence`` is set only when OCR was used.

        Raises:
            AcquisitionError: If the document cannot be decoded, rendered,
                or recognized, or OCR finds no text at all.
        """
        logger.info("Acquiring text from %s (%s)", document.name, document.kind)

        if document.kind == MediaKind.PDF:
            text = self._pdf_text(document)
            if text.strip():
                return ExtractedText(text=text, confidence=None, source="pdf-text")
            image = self.pdf_handler.render_first_page(document.data)
        else:
            image = self._decode_image(document)

        return self._recognize(image, document.name)

    def _pdf_text(self, document: RawDocument) -> str:
        try:
            return self.pdf_handler.extract_text(document.data)
        except PdfTextError as exc:
            logger.warning(
                "No text layer in %s, falling back to OCR: %s", document.name, exc
            )
            return ""

    def _decode_image(self, document: RawDocument) -> np.ndarray:
        try:
            with Image.open(io.BytesIO(document.data)) as img:
                return np.array(img.convert("RGB"))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise AcquisitionError(
                f"Cannot decode image {document.name}: {exc}"
            ) from exc

    def _recognize(self, image: np.ndarray, name: str) -> ExtractedText:
        processed = self.preprocessing.process(image)
        try:
            with self.pool.worker() as engine:
                result = engine.recognize(processed)
        except Exception as exc:
            raise AcquisitionError(f"OCR failed for {name}: {exc}") from exc

        if not result.text.strip():
            raise AcquisitionError(f"OCR found no text in {name}")

        return ExtractedText(
            text=result.text, confidence=result.confidence, source="ocr"
        )

    def close(self) -> None:
        """Drop idle OCR workers. The processor stays usable afterwards."""
        self.pool.shutdown()

    def _new_engine(self) -> TesseractEngine:
        return TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            default_lang=self.config.ocr.default_lang,
            psm=self.config.ocr.psm,
            timeout=self.config.ocr.recognition_timeout,
        )
