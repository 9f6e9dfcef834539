"""Tests for PDF handling and document text acquisition."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from receiptscan.exceptions import AcquisitionError, PdfTextError
from receiptscan.models import MediaKind, RawDocument
from receiptscan.ocr.document_processor import DocumentProcessor
from receiptscan.ocr.pdf_handler import PDFHandler, TextFragment, reconstruct_text
from receiptscan.ocr.tesseract_engine import OCRResult
from receiptscan.utils.config import AppConfig


def _mock_pil_image(width: int = 300, height: int = 200) -> Image.Image:
    """Create a mock PIL image."""
    return Image.fromarray(np.zeros((height, width, 3), dtype=np.uint8))


def _char(text: str, x0: float, y0: float, width: float = 5.0) -> dict:
    return {"text": text, "x0": x0, "y0": y0, "width": width}


def _mock_pdf(mock_pdfplumber: MagicMock, chars: list[dict]) -> None:
    page = MagicMock()
    page.chars = chars
    pdf = mock_pdfplumber.open.return_value.__enter__.return_value
    pdf.pages = [page]


def _pdf_document(data: bytes = b"%PDF-1.4 fake") -> RawDocument:
    return RawDocument(data=data, kind=MediaKind.PDF, name="bill.pdf")


class TestReconstructText:
    """Tests for reading-order reconstruction from positioned fragments."""

    def test_orders_top_to_bottom_then_left_to_right(self) -> None:
        fragments = [
            TextFragment("Total", x=0, y=680, width=25),
            TextFragment("there", x=15, y=700, width=25),
            TextFragment("Hi", x=0, y=700, width=10),
        ]
        assert reconstruct_text(fragments) == "Hi there\nTotal"

    def test_adjacent_fragments_join_without_space(self) -> None:
        fragments = [
            TextFragment("W", x=0, y=500, width=6),
            TextFragment("M", x=6, y=500, width=6),
        ]
        assert reconstruct_text(fragments) == "WM"

    def test_small_vertical_jitter_stays_on_line(self) -> None:
        fragments = [
            TextFragment("$15.50", x=100, y=398, width=30),
            TextFragment("Total", x=0, y=400, width=25),
        ]
        assert reconstruct_text(fragments) == "Total $15.50"

    def test_custom_thresholds(self) -> None:
        fragments = [
            TextFragment("a", x=0, y=100, width=5),
            TextFragment("b", x=8, y=93, width=5),
        ]
        assert reconstruct_text(fragments, line_threshold=10) == "a b"
        assert reconstruct_text(fragments, line_threshold=5) == "a\nb"

    def test_empty(self) -> None:
        assert reconstruct_text([]) == ""


class TestPDFHandler:
    """Tests for the PDFHandler class."""

    def test_default_dpi(self) -> None:
        assert PDFHandler().dpi == 108

    def test_custom_scale(self) -> None:
        assert PDFHandler(render_scale=2.0).dpi == 144

    @patch("receiptscan.ocr.pdf_handler.pdfplumber")
    def test_extract_text(self, mock_pdfplumber: MagicMock) -> None:
        _mock_pdf(
            mock_pdfplumber,
            [
                _char("T", 0, 700),
                _char("o", 5, 700),
                _char("t", 10, 700),
                _char("a", 15, 700),
                _char("l", 20, 700),
                _char("9", 40, 700),
                _char("A", 0, 650),
            ],
        )
        text = PDFHandler().extract_text(b"%PDF-1.4 fake")
        assert text == "Total 9\nA"

    @patch("receiptscan.ocr.pdf_handler.pdfplumber")
    def test_extract_text_no_chars(self, mock_pdfplumber: MagicMock) -> None:
        _mock_pdf(mock_pdfplumber, [])
        assert PDFHandler().extract_text(b"%PDF-1.4 fake") == ""

    @patch("receiptscan.ocr.pdf_handler.pdfplumber")
    def test_extract_text_failure_raises(self, mock_pdfplumber: MagicMock) -> None:
        mock_pdfplumber.open.side_effect = ValueError("encrypted")
        with pytest.raises(PdfTextError):
            PDFHandler().extract_text(b"%PDF-1.4 fake")

    @patch("receiptscan.ocr.pdf_handler.convert_from_bytes")
    def test_render_first_page(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image()]
        image = PDFHandler().render_first_page(b"%PDF-1.4 fake")

        assert isinstance(image, np.ndarray)
        assert image.shape == (200, 300, 3)
        mock_convert.assert_called_once_with(
            b"%PDF-1.4 fake", dpi=108, first_page=1, last_page=1
        )

    @patch("receiptscan.ocr.pdf_handler.convert_from_bytes")
    def test_render_failure_raises(self, mock_convert: MagicMock) -> None:
        mock_convert.side_effect = RuntimeError("poppler missing")
        with pytest.raises(AcquisitionError):
            PDFHandler().render_first_page(b"%PDF-1.4 fake")

    @patch("receiptscan.ocr.pdf_handler.convert_from_bytes")
    def test_render_no_pages_raises(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = []
        with pytest.raises(AcquisitionError):
            PDFHandler().render_first_page(b"%PDF-1.4 fake")


@patch("receiptscan.ocr.document_processor.TesseractEngine")
@patch("receiptscan.ocr.document_processor.PDFHandler")
class TestDocumentProcessor:
    """Tests for the DocumentProcessor class."""

    def test_pdf_with_text_layer_skips_ocr(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.extract_text.return_value = "Walmart\nTotal 9.99"
        processor = DocumentProcessor(AppConfig())

        extracted = processor.acquire(_pdf_document())

        assert extracted.text == "Walmart\nTotal 9.99"
        assert extracted.confidence is None
        assert extracted.source == "pdf-text"
        mock_ocr_cls.assert_not_called()
        mock_pdf_cls.return_value.render_first_page.assert_not_called()

    def test_pdf_without_text_falls_back_to_ocr(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        handler = mock_pdf_cls.return_value
        handler.extract_text.return_value = "  \n "
        handler.render_first_page.return_value = np.zeros((50, 80, 3), np.uint8)
        mock_ocr_cls.return_value.recognize.return_value = OCRResult(
            "Total 5.00", 0.9, "eng"
        )
        processor = DocumentProcessor(AppConfig())

        extracted = processor.acquire(_pdf_document())

        assert extracted.text == "Total 5.00"
        assert extracted.confidence == 0.9
        assert extracted.source == "ocr"
        handler.render_first_page.assert_called_once()

    def test_pdf_text_error_falls_back_to_ocr(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        handler = mock_pdf_cls.return_value
        handler.extract_text.side_effect = PdfTextError("broken")
        handler.render_first_page.return_value = np.zeros((50, 80, 3), np.uint8)
        mock_ocr_cls.return_value.recognize.return_value = OCRResult(
            "Evergy", 0.7, "eng"
        )

        extracted = DocumentProcessor(AppConfig()).acquire(_pdf_document())
        assert extracted.text == "Evergy"

    def test_image_goes_to_ocr(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.return_value.recognize.return_value = OCRResult(
            "Starbucks", 0.8, "eng"
        )
        processor = DocumentProcessor(AppConfig())

        extracted = processor.acquire(image_document)

        assert extracted.text == "Starbucks"
        mock_pdf_cls.return_value.extract_text.assert_not_called()
        processed = mock_ocr_cls.return_value.recognize.call_args[0][0]
        assert processed.ndim == 2

    def test_engine_created_with_config(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.return_value.recognize.return_value = OCRResult("x", 0.5, "eng")
        config = AppConfig()
        config.ocr.default_lang = "deu"
        processor = DocumentProcessor(config)

        processor.acquire(image_document)
        processor.acquire(image_document)

        mock_ocr_cls.assert_called_once_with(
            tesseract_cmd=None, default_lang="deu", psm=3, timeout=60.0
        )
        assert processor.pool.created == 1

    def test_undecodable_image_raises(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        document = RawDocument(data=b"not an image", kind=MediaKind.IMAGE, name="x.png")
        with pytest.raises(AcquisitionError, match="Cannot decode"):
            DocumentProcessor(AppConfig()).acquire(document)

    def test_blank_ocr_raises(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.return_value.recognize.return_value = OCRResult("\n", 0.0, "eng")
        with pytest.raises(AcquisitionError, match="no text"):
            DocumentProcessor(AppConfig()).acquire(image_document)

    def test_engine_failure_raises_and_releases_worker(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.return_value.recognize.side_effect = RuntimeError("timeout")
        processor = DocumentProcessor(AppConfig())

        with pytest.raises(AcquisitionError, match="OCR failed"):
            processor.acquire(image_document)
        assert processor.pool.idle == 1

    def test_engine_creation_failure_raises(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.side_effect = OSError("tesseract not installed")
        processor = DocumentProcessor(AppConfig())

        with pytest.raises(AcquisitionError):
            processor.acquire(image_document)
        assert processor.pool.created == 0

    def test_oversized_image_raises(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(AcquisitionError, match="Cannot decode"):
            DocumentProcessor(AppConfig()).acquire(image_document)
        mock_ocr_cls.assert_not_called()

    def test_close_drops_idle_workers(
        self,
        mock_pdf_cls: MagicMock,
        mock_ocr_cls: MagicMock,
        image_document: RawDocument,
    ) -> None:
        mock_ocr_cls.return_value.recognize.return_value = OCRResult("x", 0.5, "eng")
        processor = DocumentProcessor(AppConfig())
        processor.acquire(image_document)

        processor.close()

        assert processor.pool.idle == 0
        assert processor.pool.created == 0
