"""Merchant identity matching against a user's merchant history.

Used when structured extraction found no merchant. Tiers run from most to
least strict and the first hit wins: exact inclusion, inclusion after
removing punctuation and spaces, fuzzy token matching that tolerates OCR
character errors, and a small alias table for names the other tiers miss.
"""

import re
from collections.abc import Iterable

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

ALIASES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("waste management", "wm corporate"), ("WM", "Waste Management")),
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def squash(text: str) -> str:
    """Lowercase ``text`` and drop everything except letters and digits."""
    return _NON_ALNUM_RE.sub("", text.lower())


def levenshtein(a: str, b: str) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def fuzzy_threshold(squashed_merchant: str) -> int:
    """Allowed edit distance: 1 for names of up to 6 characters, else 2."""
    return 2 if len(squashed_merchant) > 6 else 1


def _exact(text: str, merchants: list[str]) -> str | None:
    lowered = text.lower()
    for merchant in merchants:
        if len(merchant) >= 2 and merchant.lower() in lowered:
            return merchant
    return None


def _normalized(text: str, merchants: list[str]) -> str | None:
    squashed_text = squash(text)
    for merchant in merchants:
        squashed = squash(merchant)
        if len(squashed) >= 3 and squashed in squashed_text:
            return merchant
    return None


def _fuzzy(text: str, merchants: list[str], window: int) -> str | None:
    tokens = [t for t in _TOKEN_SPLIT_RE.split(text[:window].lower()) if len(t) > 2]
    for merchant in merchants:
        if len(merchant) < 4:
            continue
        squashed = squash(merchant)
        threshold = fuzzy_threshold(squashed)
        for token in tokens:
            if abs(len(token) - len(squashed)) > 2:
                continue
            if levenshtein(token, squashed) <= threshold:
                logger.debug("Fuzzy matched %r to merchant %r", token, merchant)
                return merchant
    return None


def _alias(text: str, merchants: list[str]) -> str | None:
    lowered = text.lower()
    for phrases, names in ALIASES:
        if any(phrase in lowered for phrase in phrases):
            for merchant in merchants:
                if merchant in names:
                    return merchant
    return None


def find_merchant_in_text(
    text: str, known_merchants: Iterable[str], fuzzy_window: int = 1000
) -> str | None:
    """Find a known merchant mentioned in raw document text.

    Longer merchant names are tried first within each tier, so "Home Depot"
    wins over "Home" when both occur.

    Args:
        text: Extracted document text.
        known_merchants: Distinct merchant names from the user's history.
        fuzzy_window: Leading characters of ``text`` used for fuzzy matching.

    Returns:
        The matching merchant exactly as it appears in history, or ``None``.
    """
    merchants = sorted(known_merchants, key=len, reverse=True)
    if not text or not merchants:
        return None

    tiers = (
        ("exact", lambda: _exact(text, merchants)),
        ("normalized", lambda: _normalized(text, merchants)),
        ("fuzzy", lambda: _fuzzy(text, merchants, fuzzy_window)),
        ("alias", lambda: _alias(text, merchants)),
    )
    for name, tier in tiers:
        merchant = tier()
        if merchant is not None:
            logger.info("Matched merchant %r from history (%s)", merchant, name)
            return merchant
    return None
