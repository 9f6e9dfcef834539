"""Date and merchant hints from a document's file name.

A cheap, content-independent pass that runs before any text extraction.
Files exported from banking and shopping sites are often named like
``2024-08-19_Starbucks_Receipt.pdf``, which is enough to pre-fill a form.
"""

import datetime
import re
from dataclasses import dataclass

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

DATE_CONFIDENCE = 0.4
MERCHANT_CONFIDENCE = 0.4
HIGH_CONFIDENCE = 0.8

_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")

JUNK_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"eReceipt",
        r"Receipt",
        r"DirectInvoice",
        r"Invoice",
        r"Statement",
        r"Bill",
        r"aspx",
        r"contract",
        r"Page \d+ Of \d+",
        r"data \d+",
    )
)

_MIN_WORD_LENGTH = 2
_ID_MAX_LENGTH = 8
_NOISE_RE = re.compile(r"^[\W\d_]+$")


@dataclass(frozen=True)
class FilenameGuess:
    """Hints recovered from a file name."""

    date: datetime.date | None = None
    merchant: str | None = None
    confidence: float = 0.0

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= HIGH_CONFIDENCE


def _looks_like_id(word: str) -> bool:
    has_digit = any(ch.isdigit() for ch in word)
    return (
        (len(word) > _ID_MAX_LENGTH and has_digit)
        or (word.startswith("st") and has_digit)
        or word.startswith("tmp")
    )


def _capitalize_words(text: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def parse_filename(filename: str) -> FilenameGuess:
    """Extract a date and merchant guess from a file name.

    An embedded ``YYYY-MM-DD`` date and a merchant name each contribute 0.4
    confidence. The merchant is what remains after removing the extension,
    the date, document words such as "Receipt" or "Statement", ID-like
    tokens and short or numeric tokens.

    Args:
        filename: File name, with or without extension.

    Returns:
        Date and merchant hints with a confidence in [0, 1].

    Example:
        >>> guess = parse_filename("2024-08-19_Starbucks_Receipt.pdf")
        >>> guess.date, guess.merchant, guess.confidence
        (datetime.date(2024, 8, 19), 'Starbucks', 0.8)
    """
    date: datetime.date | None = None
    confidence = 0.0

    name = _EXTENSION_RE.sub("", filename)

    date_match = _DATE_RE.search(name)
    if date_match:
        try:
            date = datetime.date(*(int(part) for part in date_match.groups()))
        except ValueError:
            logger.debug("Ignoring invalid date in file name %s", filename)
        else:
            confidence += DATE_CONFIDENCE
        name = name.replace(date_match.group(0), "", 1)

    for pattern in JUNK_PATTERNS:
        name = pattern.sub("", name)

    name = re.sub(r"\s+", " ", name.replace("_", " ").replace("-", " "))

    words = [
        word
        for word in name.split(" ")
        if len(word) > _MIN_WORD_LENGTH
        and not _looks_like_id(word)
        and not _NOISE_RE.match(word)
    ]

    merchant = None
    if words:
        merchant = _capitalize_words(" ".join(words).strip())
        confidence += MERCHANT_CONFIDENCE

    guess = FilenameGuess(date=date, merchant=merchant, confidence=round(confidence, 2))
    logger.debug("Parsed file name %r as %s", filename, guess)
    return guess
