"""Merchant name extraction from document text.

Known vendors are matched first, in priority order: utilities, banks and
service providers come before general retailers, because bills carry more
boilerplate that could accidentally match a retailer's pattern. Unknown
vendors are recognised by corporate suffixes, and as a last resort the
first meaningful line of the document is used.
"""

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from receiptscan.models import FieldGuess, Provenance
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class VendorPattern:
    """A recognisable text pattern and the canonical merchant it names."""

    pattern: re.Pattern[str]
    name: str

    @classmethod
    def compile(cls, pattern: str, name: str) -> "VendorPattern":
        return cls(re.compile(pattern, re.IGNORECASE), name)


KNOWN_VENDOR_PATTERNS: tuple[VendorPattern, ...] = (
    # Utilities, banks and service providers
    VendorPattern.compile(r"navy\s*federal", "Navy Federal"),
    VendorPattern.compile(r"kansas\s*gas(?:\s*service)?", "Kansas Gas Service"),
    VendorPattern.compile(r"water\s*one", "WaterOne"),
    VendorPattern.compile(
        r"waste\s*management|deffenbaugh|wm\s*corporate|\bwm\b", "Waste Management"
    ),
    VendorPattern.compile(r"\bvyde\b", "Vyde"),
    VendorPattern.compile(r"\bevergy\b", "Evergy"),
    VendorPattern.compile(r"dot\s*loop|showingtime", "Dot Loop"),
    VendorPattern.compile(r"\bchase\b", "Chase"),
    # Retailers
    VendorPattern.compile(r"home\s*depot", "Home Depot"),
    VendorPattern.compile(r"starbucks", "Starbucks"),
    VendorPattern.compile(r"amazon", "Amazon"),
    VendorPattern.compile(r"walmart", "Walmart"),
    VendorPattern.compile(r"\btarget\b", "Target"),
    VendorPattern.compile(r"costco", "Costco"),
    VendorPattern.compile(r"micro\s*center", "Micro Center"),
    VendorPattern.compile(r"\bat\s*&\s*t\b", "AT&T"),
    VendorPattern.compile(r"\bverizon\b", "Verizon"),
    VendorPattern.compile(r"\bsprint\b|\bt-?mobile\b", "T-Mobile"),
)

_CORPORATE_SUFFIX_RE = re.compile(
    r"\b(?:LLC|Inc|Corp|Company|Co\.|Services?)(?![A-Za-z])"
)

_NOT_A_NAME: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d+$"),
    re.compile(r"^page\s*\d", re.IGNORECASE),
    re.compile(r"^\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"),
    re.compile(r"^invoice", re.IGNORECASE),
)


def load_vendor_patterns(path: Path) -> tuple[VendorPattern, ...]:
    """Load an ordered vendor table from YAML.

    The file holds a list of ``{pattern: ..., name: ...}`` entries, highest
    priority first. A missing or empty file yields the built-in table.

    Args:
        path: Path to the vendor YAML file.

    Returns:
        Vendor patterns in file order.
    """
    if not path.exists():
        logger.debug("No vendor file at %s, using built-in vendors", path)
        return KNOWN_VENDOR_PATTERNS
    with open(path) as f:
        entries = yaml.safe_load(f) or []
    if not entries:
        return KNOWN_VENDOR_PATTERNS
    logger.info("Loaded %d vendor patterns from %s", len(entries), path)
    return tuple(VendorPattern.compile(e["pattern"], e["name"]) for e in entries)


def match_known_vendor(
    text: str, vendors: tuple[VendorPattern, ...] = KNOWN_VENDOR_PATTERNS
) -> str | None:
    """Canonical name of the first vendor whose pattern occurs in ``text``."""
    for vendor in vendors:
        if vendor.pattern.search(text):
            return vendor.name
    return None


def find_corporate_line(
    lines: list[str], max_lines: int = 15, max_length: int = 50
) -> str | None:
    """First header line that carries a corporate suffix such as LLC or Inc."""
    for line in lines[:max_lines]:
        stripped = line.strip()
        if len(stripped) < 60 and _CORPORATE_SUFFIX_RE.search(stripped):
            return stripped[:max_length]
    return None


def find_first_name_line(lines: list[str], max_length: int = 50) -> str | None:
    """First line that looks like a name rather than a number, page or date."""
    for line in lines:
        stripped = line.strip()
        if len(stripped) < 3:
            continue
        if any(pattern.search(stripped) for pattern in _NOT_A_NAME):
            continue
        return stripped[:max_length]
    return None


def extract_merchant(
    text: str,
    vendors: tuple[VendorPattern, ...] = KNOWN_VENDOR_PATTERNS,
    header_window: int = 3000,
    scan_lines: int = 15,
    max_length: int = 50,
) -> FieldGuess[str] | None:
    """Find the merchant that issued a document.

    Args:
        text: Full document text.
        vendors: Ordered known-vendor table.
        header_window: Characters from the top searched for known vendors.
        scan_lines: Lines from the top searched for corporate suffixes.
        max_length: Maximum length of a merchant taken from a text line.

    Returns:
        The merchant with its provenance, or ``None``.
    """
    known = match_known_vendor(text[:header_window], vendors)
    if known is not None:
        return FieldGuess(known, Provenance.KNOWN_PATTERN)

    lines = text.split("\n")
    corporate = find_corporate_line(lines, scan_lines, max_length)
    if corporate is not None:
        return FieldGuess(corporate, Provenance.CORPORATE_SUFFIX)

    first = find_first_name_line(lines, max_length)
    if first is not None:
        return FieldGuess(first, Provenance.FIRST_LINE)
    return None
