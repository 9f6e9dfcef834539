"""Receipt scanning orchestrator.

Sequences the pipeline for one document: file name hints, content hash and
duplicate lookup, text acquisition, field extraction, and merchant and
category resolution against history. Batches are processed strictly one
document at a time so that duplicate detection always sees the documents
scanned before it.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from receiptscan.extraction.field_extractor import FieldExtractor
from receiptscan.extraction.filename_parser import FilenameGuess, parse_filename
from receiptscan.identity.hashing import compute_content_hash
from receiptscan.identity.history import (
    ExpenseHistory,
    ExpenseRecord,
    find_duplicate,
    predict_category,
)
from receiptscan.identity.matcher import find_merchant_in_text
from receiptscan.models import FieldGuess, Provenance, RawDocument, ScanResult
from receiptscan.ocr.document_processor import DocumentProcessor
from receiptscan.utils.config import AppConfig
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ScanOutcome:
    """Everything the expense form needs to pre-fill one document."""

    result: ScanResult
    file_hash: str
    filename_guess: FilenameGuess
    currency: str
    category: str | None = None
    is_duplicate: bool = False
    duplicate_of: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Flat, JSON-friendly view of the outcome."""
        result = self.result
        return {
            "merchant": result.merchant,
            "amount": str(result.amount) if result.amount is not None else None,
            "currency": self.currency,
            "date": result.date.isoformat() if result.date else None,
            "address": result.address,
            "account_number": result.account_number,
            "category": self.category,
            "document_kind": str(result.document_kind),
            "confidence": result.confidence,
            "file_hash": self.file_hash,
            "is_duplicate": self.is_duplicate,
            "duplicate_of": self.duplicate_of,
            "sources": {k: str(v) for k, v in result.sources.items()},
        }


@dataclass
class BatchItem:
    """Result of one document in a batch."""

    filename: str
    status: str
    outcome: ScanOutcome | None = None
    error: str | None = None


class ReceiptScanner:
    """Runs the full scanning pipeline.

    Args:
        config: Application configuration object.
        processor: Text acquisition component. Built from ``config`` when
            omitted; pass a shared one to share its OCR worker pool.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        processor: DocumentProcessor | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.processor = processor or DocumentProcessor(self.config)
        self.extractor = FieldExtractor(self.config.extraction)

    def scan(
        self,
        document: RawDocument,
        history: ExpenseHistory,
        currency: str | None = None,
        editing_id: int | None = None,
    ) -> ScanOutcome:
        """Scan one document.

        Args:
            document: The uploaded document.
            history: The user's expense history.
            currency: Currency to report when none is printed on the document.
            editing_id: ID of the expense being edited, excluded from
                duplicate detection.

        Returns:
            Extracted fields, duplicate flag and predicted category.

        Raises:
            AcquisitionError: If no text can be read from the document.
        """
        logger.info("Scanning %s", document.name)
        guess = parse_filename(document.name)

        file_hash = compute_content_hash(
            document, self.config.identity.hash_algorithm
        )
        duplicate = find_duplicate(file_hash, history, exclude_id=editing_id)
        if duplicate is not None:
            logger.warning(
                "%s looks like a duplicate of expense %s", document.name, duplicate.id
            )

        extracted = self.processor.acquire(document)
        result = self.extractor.extract(extracted.text, guess, extracted.confidence)

        if result.merchant is None:
            result.apply("merchant", self._resolve_merchant(result, guess, history))

        category = None
        if result.merchant:
            category = predict_category(result.merchant, history)

        return ScanOutcome(
            result=result,
            file_hash=file_hash,
            filename_guess=guess,
            currency=result.currency or currency or self.config.default_currency,
            category=category,
            is_duplicate=duplicate is not None,
            duplicate_of=duplicate.id if duplicate is not None else None,
        )

    def _resolve_merchant(
        self, result: ScanResult, guess: FilenameGuess, history: ExpenseHistory
    ) -> FieldGuess[str] | None:
        known = find_merchant_in_text(
            result.raw_text, history.merchants(), self.config.identity.fuzzy_window
        )
        if known is not None:
            return FieldGuess(known, Provenance.HISTORY_MATCH)
        if guess.merchant:
            return FieldGuess(guess.merchant, Provenance.FILENAME)
        return None

    def scan_item(
        self,
        document: RawDocument,
        history: ExpenseHistory,
        currency: str | None = None,
        record: bool = False,
    ) -> BatchItem:
        """Scan one document of a batch, reporting failure instead of raising.

        Args:
            document: The uploaded document.
            history: The user's expense history.
            currency: Currency to report when none is printed on the document.
            record: Add the scan to ``history`` when it succeeds.

        Returns:
            A ``ready`` or ``duplicate`` item, or a ``failed`` item with the
            error message.
        """
        try:
            outcome = self.scan(document, history, currency)
        except Exception as exc:
            logger.error("Failed to scan %s: %s", document.name, exc)
            return BatchItem(document.name, "failed", error=str(exc))

        if record:
            history.add(
                ExpenseRecord(
                    merchant=outcome.result.merchant or "",
                    category=outcome.category,
                    file_hash=outcome.file_hash,
                )
            )

        status = "duplicate" if outcome.is_duplicate else "ready"
        return BatchItem(document.name, status, outcome=outcome)

    def scan_batch(
        self,
        documents: Iterable[RawDocument],
        history: ExpenseHistory,
        currency: str | None = None,
        record: bool = False,
    ) -> list[BatchItem]:
        """Scan documents one after another.

        A document that fails is reported and the batch carries on. With
        ``record`` set, every scanned document is added to ``history`` so a
        file submitted twice in the same batch is flagged the second time.

        Args:
            documents: Documents in submission order.
            history: The user's expense history.
            currency: Currency to report when none is printed on a document.
            record: Add each successful scan to ``history``.

        Returns:
            One item per document, in the same order.
        """
        items = [
            self.scan_item(document, history, currency, record)
            for document in documents
        ]
        log_batch_summary(items)
        return items

    def close(self) -> None:
        """Release the OCR workers held by the processor."""
        self.processor.close()


def log_batch_summary(items: list[BatchItem]) -> None:
    logger.info(
        "Batch complete: %d scanned, %d failed",
        sum(1 for i in items if i.status != "failed"),
        sum(1 for i in items if i.status == "failed"),
    )
