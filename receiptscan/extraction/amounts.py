"""Total amount extraction.

Looks for the amount next to a "total"-style label first, using a keyword
list chosen by document kind, then falls back to the largest monetary
figure in the document. The fallback assumes the largest plausible figure
on a receipt is its total, which is a simplification: an account number
printed like a price can win it.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from receiptscan.models import DocumentKind, FieldGuess, Provenance
from receiptscan.utils.logger import get_logger

from .search import find_line_with_word, keyword_search

logger = get_logger(__name__)

AMOUNT_CEILING = Decimal("100000")

_MONEY_RE = re.compile(r"([$£€])?\s?(\d{1,3}(?:,\d{3})*\.\d{2}|\d+\.\d{2})")

_CURRENCY_SYMBOLS = {"$": "USD", "£": "GBP", "€": "EUR"}

STATEMENT_AMOUNT_KEYWORDS: tuple[str, ...] = (
    "new balance",
    "statement balance",
    "total balance",
    "minimum payment due",
    "total amount due",
    "amount due",
    "balance due",
)

RECEIPT_AMOUNT_KEYWORDS: tuple[str, ...] = (
    "total amount due",
    "amount due",
    "total due",
    "balance due",
    "account balance",
    "total",
    "amount",
)

AMOUNT_SKIP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"page\s*\d+\s*of\s*\d+", re.IGNORECASE),
    re.compile(r"number\s*of\s*pages", re.IGNORECASE),
    re.compile(r"payment\s*received", re.IGNORECASE),
    re.compile(r"thank\s*you\s*for\s*your\s*payment", re.IGNORECASE),
    re.compile(r"credits?\s*[-−]", re.IGNORECASE),
    re.compile(r"payments?\s*and\s*credits", re.IGNORECASE),
)


@dataclass(frozen=True)
class MoneyToken:
    """A monetary figure and the currency its symbol implies, if any."""

    value: Decimal
    currency: str | None = None


def money_tokens(text: str) -> list[MoneyToken]:
    """All monetary figures in ``text``, in order of appearance."""
    tokens = []
    for match in _MONEY_RE.finditer(text):
        try:
            value = Decimal(match.group(2).replace(",", ""))
        except InvalidOperation:
            continue
        tokens.append(MoneyToken(value, _CURRENCY_SYMBOLS.get(match.group(1) or "")))
    return tokens


def _largest(tokens: list[MoneyToken]) -> MoneyToken | None:
    return max(tokens, key=lambda t: t.value) if tokens else None


def extract_money(line: str, ceiling: Decimal = AMOUNT_CEILING) -> MoneyToken | None:
    """Largest plausible amount on a single line.

    Lines that match a skip pattern (page numbering, payments received,
    credits) never yield an amount. Values of 1.00 or less and values at
    or above ``ceiling`` are ignored.
    """
    if any(pattern.search(line) for pattern in AMOUNT_SKIP_PATTERNS):
        return None
    return _largest(
        [t for t in money_tokens(line) if Decimal(1) < t.value < ceiling]
    )


def extract_amount(
    text: str,
    kind: DocumentKind = DocumentKind.RECEIPT,
    ceiling: Decimal = AMOUNT_CEILING,
) -> FieldGuess[MoneyToken] | None:
    """Find the total amount of a receipt or statement.

    Args:
        text: Full document text.
        kind: Document classification; statements use balance keywords.
        ceiling: Exclusive upper bound for plausible amounts.

    Returns:
        The amount with its provenance, or ``None`` if no figure was found.
    """
    lines = text.split("\n")
    keywords = (
        STATEMENT_AMOUNT_KEYWORDS
        if kind == DocumentKind.STATEMENT
        else RECEIPT_AMOUNT_KEYWORDS
    )

    found = keyword_search(
        lines,
        keywords,
        lambda line: extract_money(line, ceiling),
        find_line=find_line_with_word,
    )
    if found is not None:
        logger.debug("Amount %s found next to a keyword", found.value)
        return FieldGuess(found, Provenance.KEYWORD)

    fallback = _largest([t for t in money_tokens(text) if t.value < ceiling])
    if fallback is not None:
        logger.debug("Amount %s taken as largest figure in document", fallback.value)
        return FieldGuess(fallback, Provenance.GLOBAL_FALLBACK)
    return None
