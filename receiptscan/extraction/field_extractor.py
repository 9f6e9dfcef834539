"""Field extraction engine.

Runs every field heuristic over a document's text and resolves the result
against file name hints. Each extractor returns ``None`` on a miss, so a
field is only populated when a specific rule found evidence for it.
"""

from decimal import Decimal
from pathlib import Path

from receiptscan.models import FieldGuess, Provenance, ScanResult
from receiptscan.utils.config import ExtractionConfig
from receiptscan.utils.logger import get_logger

from .address import extract_account_number, extract_address
from .amounts import extract_amount
from .classifier import classify_document
from .dates import extract_date
from .filename_parser import FilenameGuess
from .merchant import (
    KNOWN_VENDOR_PATTERNS,
    extract_merchant,
    load_vendor_patterns,
)

logger = get_logger(__name__)


def _wrap(value: str | None, provenance: Provenance) -> FieldGuess[str] | None:
    return FieldGuess(value, provenance) if value is not None else None


class FieldExtractor:
    """Derives structured fields from full document text.

    Args:
        config: Extraction configuration. Defaults are used when ``None``.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.vendors = (
            load_vendor_patterns(Path(self.config.vendors_path))
            if self.config.vendors_path
            else KNOWN_VENDOR_PATTERNS
        )

    def extract(
        self,
        text: str,
        hints: FilenameGuess | None = None,
        confidence: float | None = None,
    ) -> ScanResult:
        """Extract amount, date, merchant, address and account number.

        A file name date always wins over a date found in the text. A
        high-confidence file name merchant wins over every text heuristic;
        a lower-confidence one is left to the caller as advisory.

        Args:
            text: Full document text.
            hints: File name hints parsed before extraction.
            confidence: OCR confidence of ``text``, if it came from OCR.

        Returns:
            Extracted fields with the rule that produced each one.
        """
        cfg = self.config
        kind = classify_document(text, cfg.statement_threshold)
        result = ScanResult(raw_text=text, confidence=confidence, document_kind=kind)

        money = extract_amount(text, kind, Decimal(str(cfg.amount_ceiling)))
        if money is not None:
            result.apply("amount", FieldGuess(money.value.value, money.provenance))
            result.currency = money.value.currency

        if hints is not None and hints.date is not None:
            result.apply("date", FieldGuess(hints.date, Provenance.FILENAME))
        else:
            result.apply("date", extract_date(text, cfg.day_first))

        if hints is not None and hints.merchant and hints.is_high_confidence:
            result.apply("merchant", FieldGuess(hints.merchant, Provenance.FILENAME))
        else:
            result.apply(
                "merchant",
                extract_merchant(
                    text,
                    self.vendors,
                    cfg.header_window,
                    cfg.merchant_scan_lines,
                    cfg.max_merchant_length,
                ),
            )

        result.apply("address", _wrap(extract_address(text), Provenance.PATTERN))
        result.apply(
            "account_number", _wrap(extract_account_number(text), Provenance.KEYWORD)
        )

        logger.info(
            "Extracted %s fields from %s text: %s",
            len(result.sources),
            kind,
            ", ".join(sorted(result.sources)) or "none",
        )
        return result
