"""Receipt vs. recurring statement classification."""

from receiptscan.models import DocumentKind
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

STATEMENT_INDICATORS: tuple[str, ...] = (
    "statement closing date",
    "payment due date",
    "minimum payment",
    "credit limit",
    "available credit",
    "billing cycle",
    "previous balance",
    "new balance",
    "summary of account",
    "annual summary",
)


def count_statement_indicators(text: str) -> int:
    """Number of distinct statement indicator phrases present in ``text``."""
    lowered = text.lower()
    return sum(1 for phrase in STATEMENT_INDICATORS if phrase in lowered)


def classify_document(text: str, threshold: int = 3) -> DocumentKind:
    """Classify text as a recurring statement or a point-of-sale receipt.

    Args:
        text: Full document text.
        threshold: Distinct indicators required for a statement.

    Returns:
        ``DocumentKind.STATEMENT`` when at least ``threshold`` indicators
        are present, else ``DocumentKind.RECEIPT``.
    """
    count = count_statement_indicators(text)
    kind = DocumentKind.STATEMENT if count >= threshold else DocumentKind.RECEIPT
    logger.debug("Found %d statement indicators, classified as %s", count, kind)
    return kind
