"""Tesseract OCR engine wrapper.

One :class:`TesseractEngine` is one OCR worker. Constructing it checks that
the Tesseract binary is available, which is the costly part of getting a
worker ready; the pool in :mod:`receiptscan.ocr.worker_pool` reuses them.
"""

from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Text recognized on one image."""

    text: str
    confidence: float
    language: str


class TesseractEngine:
    """Wrapper around Tesseract OCR for receipt images.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
        timeout: Seconds allowed per recognition call; ``0`` disables it.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
        timeout: float = 0,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self.timeout = timeout
        version = pytesseract.get_tesseract_version()
        logger.debug("Started Tesseract worker (version %s)", version)

    def recognize(self, image: np.ndarray, lang: str | None = None) -> OCRResult:
        """Recognize the text in an image.

        Args:
            image: Input image as a numpy array.
            lang: OCR language code. Defaults to the engine default.

        Returns:
            OCRResult with the full text and mean word confidence (0..1).

        Raises:
            pytesseract.TesseractError: If Tesseract fails.
            RuntimeError: If the call exceeds the configured timeout.
        """
        lang = lang or self.default_lang
        config = f"--psm {self.psm}"

        pil_image = Image.fromarray(image)
        text = pytesseract.image_to_string(
            pil_image, lang=lang, config=config, timeout=self.timeout
        )
        data = pytesseract.image_to_data(
            pil_image,
            lang=lang,
            config=config,
            timeout=self.timeout,
            output_type=pytesseract.Output.DICT,
        )

        scores = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and word.strip()
        ]
        confidence = sum(scores) / len(scores) / 100.0 if scores else 0.0

        logger.info(
            "OCR recognized %d words with average confidence %.2f",
            len(scores),
            confidence,
        )
        return OCRResult(text=text, confidence=confidence, language=lang)
